"""
Attendance & Reward Ledger

Attendance converts into reward points through the event's Level, which is
created on the first attendance mark (CORE events earn more).

Grant semantics differ on purpose between the two entry points:
- team marking grants to every member only if NO member already holds XP
  for the level (bulk, all-or-nothing)
- solo marking grants per user, skipping users that already hold XP

Revocation removes the XP rows of every affected user for the level.
"""
import logging
from typing import List, Optional

from sqlalchemy import select, delete, func
from sqlalchemy.ext.asyncio import AsyncSession

from festreg.config import settings
from festreg.errors import InvariantViolationError, NotFoundError, ErrorCode
from festreg.orm.user import User
from festreg.orm.event import Event, EventCategory
from festreg.orm.team import Team, TeamMember, TeamStatus
from festreg.orm.reward import Level, XP
from festreg.services.authorization import Operation, check_role, authorize
from festreg.services.store import commit_or_conflict, flush_or_conflict, get_event, get_team, get_user

logger = logging.getLogger(__name__)


def points_for(event: Event) -> int:
    if event.category == EventCategory.CORE:
        return settings.CORE_EVENT_POINTS
    return settings.DEFAULT_EVENT_POINTS


async def find_level(db: AsyncSession, event_id: int) -> Optional[Level]:
    result = await db.execute(select(Level).where(Level.event_id == event_id))
    return result.scalar_one_or_none()


async def get_or_create_level(db: AsyncSession, event: Event) -> Level:
    level = await find_level(db, event.id)
    if level is None:
        level = Level(event_id=event.id, point=points_for(event))
        db.add(level)
        await flush_or_conflict(db, "create reward level")
        logger.info(f"Created reward level for event {event.id} ({level.point} points)")
    return level


async def _holders(db: AsyncSession, level_id: int, user_ids: List[int]) -> List[int]:
    if not user_ids:
        return []
    result = await db.execute(
        select(XP.user_id).where(XP.level_id == level_id, XP.user_id.in_(user_ids))
    )
    return list(result.scalars().all())


async def _revoke(db: AsyncSession, level: Optional[Level], user_ids: List[int]) -> None:
    if level is None or not user_ids:
        return
    await db.execute(delete(XP).where(XP.level_id == level.id, XP.user_id.in_(user_ids)))


async def grant_user(db: AsyncSession, event: Event, user_id: int) -> bool:
    """Per-user grant without committing. Returns False if already granted."""
    level = await get_or_create_level(db, event)
    if await _holders(db, level.id, [user_id]):
        return False
    db.add(XP(user_id=user_id, level_id=level.id))
    return True


async def _member_ids(db: AsyncSession, team_id: int) -> List[int]:
    result = await db.execute(select(TeamMember.user_id).where(TeamMember.team_id == team_id))
    return list(result.scalars().all())


def _ensure_confirmed(team: Team) -> None:
    if team.status != TeamStatus.CONFIRMED:
        raise InvariantViolationError("Team is not confirmed", code=ErrorCode.TEAM_NOT_CONFIRMED)


async def organizer_mark_attendance(
    db: AsyncSession, user: Optional[User], team_id: int, attended: bool
) -> Team:
    user = check_role(user, Operation.ORGANIZER_MARK_ATTENDANCE)
    team = await get_team(db, team_id)
    await authorize(db, user, Operation.ORGANIZER_MARK_ATTENDANCE, event_id=team.event_id)
    _ensure_confirmed(team)

    event = await get_event(db, team.event_id)
    member_ids = await _member_ids(db, team.id)

    if attended:
        level = await get_or_create_level(db, event)
        if not await _holders(db, level.id, member_ids):
            for member_id in member_ids:
                db.add(XP(user_id=member_id, level_id=level.id))
            logger.info(f"Granted {level.point} points to {len(member_ids)} members of team {team.id}")
    else:
        await _revoke(db, await find_level(db, event.id), member_ids)

    team.attended = attended
    await commit_or_conflict(db, "mark attendance")

    logger.info(f"Organizer {user.id} marked team {team.id} attended={attended}")
    return team


async def organizer_mark_attendance_solo(
    db: AsyncSession, user: Optional[User], event_id: int, user_id: int, attended: bool
) -> int:
    """
    Mark one participant across their confirmed teams in the event.

    Returns the number of teams updated.
    """
    user = check_role(user, Operation.ORGANIZER_MARK_ATTENDANCE_SOLO)
    event = await get_event(db, event_id)
    await authorize(db, user, Operation.ORGANIZER_MARK_ATTENDANCE_SOLO, event_id=event.id)
    participant = await get_user(db, user_id)

    result = await db.execute(
        select(Team)
        .join(TeamMember, TeamMember.team_id == Team.id)
        .where(
            Team.event_id == event.id,
            Team.status == TeamStatus.CONFIRMED,
            TeamMember.user_id == participant.id,
        )
    )
    teams = list(result.scalars().all())
    if not teams:
        raise NotFoundError("Team", f"user {participant.id} in event {event.id}")

    if attended:
        await grant_user(db, event, participant.id)
    else:
        await _revoke(db, await find_level(db, event.id), [participant.id])

    for team in teams:
        team.attended = attended
    await commit_or_conflict(db, "mark attendance")

    logger.info(f"Organizer {user.id} marked user {participant.id} attended={attended} in event {event.id}")
    return len(teams)


async def get_user_xp(db: AsyncSession, user_id: int) -> int:
    """Total reward points held by a user."""
    await get_user(db, user_id)
    result = await db.execute(
        select(func.coalesce(func.sum(Level.point), 0))
        .select_from(XP)
        .join(Level, Level.id == XP.level_id)
        .where(XP.user_id == user_id)
    )
    return int(result.scalar_one())
