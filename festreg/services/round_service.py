"""
Round Progression Engine

Rounds are numbered 1..N per event with no gaps: creation appends N+1 and
only round N can be deleted. Judges of a round complete it, toggle its
selection visibility and move teams across its boundary while it is PENDING.

Subscribers are told about changes after the commit, on a best-effort basis.
"""
import logging
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import select, delete, func
from sqlalchemy.ext.asyncio import AsyncSession

from festreg.errors import InvariantViolationError, ErrorCode
from festreg.orm.user import User
from festreg.orm.team import Team, TeamStatus
from festreg.orm.round import Round, Judge
from festreg.orm.judging import Criteria
from festreg.realtime.notifier import Notifier, get_notifier
from festreg.services.authorization import Operation, check_role, authorize
from festreg.services.store import commit_or_conflict, get_event, get_round, get_team
from festreg.state_machines import round_state

logger = logging.getLogger(__name__)


async def round_count(db: AsyncSession, event_id: int) -> int:
    result = await db.execute(
        select(func.count()).select_from(Round).where(Round.event_id == event_id)
    )
    return result.scalar_one()


async def last_round(db: AsyncSession, event_id: int) -> Optional[Round]:
    result = await db.execute(
        select(Round).where(Round.event_id == event_id).order_by(Round.round_no.desc()).limit(1)
    )
    return result.scalar_one_or_none()


async def list_rounds(db: AsyncSession, event_id: int):
    await get_event(db, event_id)
    result = await db.execute(
        select(Round).where(Round.event_id == event_id).order_by(Round.round_no)
    )
    return list(result.scalars().all())


def team_payload(team: Team) -> Dict[str, Any]:
    return {
        "id": team.id,
        "name": team.name,
        "eventId": team.event_id,
        "roundNo": team.round_no,
        "confirmed": team.confirmed,
        "attended": team.attended,
    }


async def create_round(
    db: AsyncSession, user: Optional[User], event_id: int, date: Optional[datetime] = None
) -> Round:
    user = check_role(user, Operation.CREATE_ROUND)
    event = await get_event(db, event_id)
    await authorize(db, user, Operation.CREATE_ROUND, event_id=event.id)

    latest = await last_round(db, event.id)
    round_obj = Round(
        event_id=event.id,
        round_no=(latest.round_no if latest else 0) + 1,
        date=date,
    )
    db.add(round_obj)
    await commit_or_conflict(db, "create round")

    logger.info(f"Round {round_obj.round_no} created for event {event.id} by organizer {user.id}")
    return round_obj


async def delete_round(db: AsyncSession, user: Optional[User], event_id: int) -> Round:
    """Remove the highest-numbered round."""
    user = check_role(user, Operation.DELETE_ROUND)
    event = await get_event(db, event_id)
    await authorize(db, user, Operation.DELETE_ROUND, event_id=event.id)

    round_obj = await last_round(db, event.id)
    if round_obj is None:
        raise InvariantViolationError("No rounds found", code=ErrorCode.NO_ROUNDS)

    # a team may sit at most one past the last remaining round
    result = await db.execute(
        select(func.count()).select_from(Team).where(
            Team.event_id == event.id,
            Team.round_no > round_obj.round_no,
        )
    )
    if result.scalar_one() > 0:
        raise InvariantViolationError(
            f"Teams have advanced beyond round {round_obj.round_no}",
            code=ErrorCode.ROUND_IN_USE,
        )

    await db.execute(delete(Judge).where(Judge.round_id == round_obj.id))
    await db.execute(delete(Criteria).where(Criteria.round_id == round_obj.id))
    await db.delete(round_obj)
    await commit_or_conflict(db, "delete round")

    logger.info(f"Round {round_obj.round_no} of event {event.id} deleted by organizer {user.id}")
    return round_obj


async def complete_round(
    db: AsyncSession,
    user: Optional[User],
    event_id: int,
    round_no: int,
    notifier: Optional[Notifier] = None,
) -> Round:
    user = check_role(user, Operation.COMPLETE_ROUND)
    round_obj = await get_round(db, event_id, round_no)
    await authorize(db, user, Operation.COMPLETE_ROUND, event_id=event_id, round_id=round_obj.id)

    changed = round_state.complete(round_obj)
    if changed:
        await commit_or_conflict(db, "complete round")
        logger.info(f"Round {round_no} of event {event_id} completed by judge {user.id}")

    await (notifier or get_notifier()).round_status_changed(event_id, round_no)
    return round_obj


async def change_select_status(
    db: AsyncSession,
    user: Optional[User],
    event_id: int,
    round_no: int,
    notifier: Optional[Notifier] = None,
) -> Round:
    user = check_role(user, Operation.CHANGE_SELECT_STATUS)
    round_obj = await get_round(db, event_id, round_no)
    await authorize(db, user, Operation.CHANGE_SELECT_STATUS, event_id=event_id, round_id=round_obj.id)

    round_obj.select_status = not round_obj.select_status
    await commit_or_conflict(db, "change select status")

    logger.info(f"Round {round_no} of event {event_id} select_status={round_obj.select_status}")
    await (notifier or get_notifier()).round_status_changed(event_id, round_no)
    return round_obj


async def promote_to_next_round(
    db: AsyncSession,
    user: Optional[User],
    team_id: int,
    round_no: int,
    selected: bool,
    notifier: Optional[Notifier] = None,
) -> Team:
    """
    Move a team across the boundary between round_no and round_no + 1.

    selected=True advances a team sitting in round_no, selected=False brings
    a team in round_no + 1 back. Anything else is a no-op.
    """
    user = check_role(user, Operation.PROMOTE_TO_NEXT_ROUND)
    team = await get_team(db, team_id)

    # the last round has no next round to promote into
    total = await round_count(db, team.event_id)
    if round_no <= 0 or round_no >= total:
        raise InvariantViolationError(
            f"Invalid round number {round_no} for {total} rounds",
            code=ErrorCode.ROUND_OUT_OF_RANGE,
        )

    round_obj = await get_round(db, team.event_id, round_no)
    round_state.ensure_open_for_promotion(round_obj)
    await authorize(
        db, user, Operation.PROMOTE_TO_NEXT_ROUND,
        event_id=team.event_id, round_id=round_obj.id,
    )
    if team.status != TeamStatus.CONFIRMED:
        raise InvariantViolationError("Team is not confirmed", code=ErrorCode.TEAM_NOT_CONFIRMED)

    previous = team.round_no
    team.round_no = round_state.next_team_round(team.round_no, round_no, selected)
    await commit_or_conflict(db, "promote team")

    logger.info(
        f"Judge {user.id} moved team {team.id} from round {previous} to {team.round_no} "
        f"(round {round_no}, selected={selected})"
    )
    await (notifier or get_notifier()).team_updated(team.event_id, round_no, team_payload(team))
    return team
