"""
Team Membership Manager

Creates, joins, leaves, confirms and deletes teams, for participants and for
organizers acting on their behalf.

Invariants enforced here:
- membership of a team only changes while it is OPEN
- min_team_size <= members <= max_team_size at confirmation
- confirmed teams per event <= max_teams
- members share the leader's college unless the event disables the rule
- one registration per user in TEAM / INDIVIDUAL events

Every capacity check is backed by a unique constraint (member slot,
confirmation slot, exclusive event) so a racing writer that passed the same
check is rejected by the store with ConflictOnWrite instead of over-filling.
"""
import logging
from typing import List, Optional

from sqlalchemy import select, delete, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from festreg.errors import InvariantViolationError, NotFoundError, ErrorCode
from festreg.orm.user import User, UserRole
from festreg.orm.event import Event, EventType
from festreg.orm.team import Team, TeamMember, TeamStatus
from festreg.services import attendance_service
from festreg.services.authorization import Operation, check_role, authorize
from festreg.services.eligibility import ensure_eligible
from festreg.services.store import (
    commit_or_conflict, flush_or_conflict, first_free_slot,
    get_event, get_team, get_user,
)
from festreg.state_machines import team_state

logger = logging.getLogger(__name__)

NON_PARTICIPANT_ROLES = (UserRole.USER, UserRole.JUDGE, UserRole.JURY)


# ============================================================================
# Queries
# ============================================================================

async def get_members(db: AsyncSession, team_id: int) -> List[TeamMember]:
    result = await db.execute(
        select(TeamMember).where(TeamMember.team_id == team_id).order_by(TeamMember.slot)
    )
    return list(result.scalars().all())


async def member_count(db: AsyncSession, team_id: int) -> int:
    result = await db.execute(
        select(func.count()).select_from(TeamMember).where(TeamMember.team_id == team_id)
    )
    return result.scalar_one()


async def confirmed_team_count(db: AsyncSession, event_id: int) -> int:
    result = await db.execute(
        select(func.count()).select_from(Team).where(
            Team.event_id == event_id,
            Team.status == TeamStatus.CONFIRMED,
        )
    )
    return result.scalar_one()


async def get_team_detail(db: AsyncSession, team_id: int) -> Team:
    """Team with a freshly loaded member list."""
    result = await db.execute(
        select(Team)
        .where(Team.id == team_id)
        .options(selectinload(Team.members))
        .execution_options(populate_existing=True)
    )
    team = result.scalar_one_or_none()
    if team is None:
        raise NotFoundError("Team", team_id)
    return team


async def list_event_teams(db: AsyncSession, event_id: int, confirmed_only: bool = False) -> List[Team]:
    await get_event(db, event_id)
    query = select(Team).where(Team.event_id == event_id).order_by(Team.id)
    if confirmed_only:
        query = query.where(Team.status == TeamStatus.CONFIRMED)
    result = await db.execute(query.execution_options(populate_existing=True))
    return list(result.scalars().all())


async def user_teams_in_event(db: AsyncSession, user_id: int, event_id: int) -> List[Team]:
    result = await db.execute(
        select(Team)
        .join(TeamMember, TeamMember.team_id == Team.id)
        .where(Team.event_id == event_id, TeamMember.user_id == user_id)
    )
    return list(result.scalars().all())


# ============================================================================
# Rule helpers (no commits)
# ============================================================================

def _ensure_team_event(event: Event) -> None:
    if event.event_type.is_individual:
        raise InvariantViolationError("Event is individual", code=ErrorCode.WRONG_EVENT_TYPE)


def _ensure_individual_event(event: Event) -> None:
    if event.event_type.is_team:
        raise InvariantViolationError("Event is a team event", code=ErrorCode.WRONG_EVENT_TYPE)


def _ensure_participant(participant: User) -> None:
    if participant.role in NON_PARTICIPANT_ROLES:
        raise NotFoundError("Participant", participant.id)


async def _ensure_not_registered(db: AsyncSession, user_id: int, event: Event) -> None:
    """Single-entry events allow one team per user."""
    if not event.event_type.single_entry:
        return
    if await user_teams_in_event(db, user_id, event.id):
        raise InvariantViolationError("Already registered", code=ErrorCode.ALREADY_REGISTERED)


async def _ensure_event_not_full(db: AsyncSession, event: Event) -> None:
    if not event.has_team_limit:
        return
    if await confirmed_team_count(db, event.id) >= event.max_teams:
        raise InvariantViolationError("Event is full", code=ErrorCode.EVENT_FULL)


async def _ensure_name_available(db: AsyncSession, event_id: int, name: str) -> None:
    result = await db.execute(
        select(Team.id).where(Team.event_id == event_id, Team.name == name)
    )
    if result.scalar_one_or_none() is not None:
        raise InvariantViolationError("Team name already exists", code=ErrorCode.TEAM_NAME_TAKEN)


async def _ensure_same_college(db: AsyncSession, event: Event, team: Team, user: User) -> None:
    if not event.enforce_college_homogeneity or team.leader_id is None:
        return
    leader = await db.get(User, team.leader_id)
    if leader is not None and leader.college_id != user.college_id:
        raise InvariantViolationError(
            "Team members should belong to same college",
            code=ErrorCode.COLLEGE_MISMATCH,
        )


async def _find_membership(db: AsyncSession, team_id: int, user_id: int) -> Optional[TeamMember]:
    result = await db.execute(
        select(TeamMember).where(TeamMember.team_id == team_id, TeamMember.user_id == user_id)
    )
    return result.scalar_one_or_none()


async def _add_member(db: AsyncSession, team: Team, event: Event, user_id: int) -> TeamMember:
    """Append a member into the first free slot, or fail if the team is full."""
    members = await get_members(db, team.id)
    if any(m.user_id == user_id for m in members):
        raise InvariantViolationError("Already a member of this team", code=ErrorCode.ALREADY_REGISTERED)

    slot = first_free_slot((m.slot for m in members), limit=event.max_team_size)
    if len(members) >= event.max_team_size or slot is None:
        raise InvariantViolationError("Team is full", code=ErrorCode.TEAM_FULL)

    member = TeamMember(
        user_id=user_id,
        team_id=team.id,
        slot=slot,
        exclusive_event_id=event.id if event.event_type.single_entry else None,
    )
    db.add(member)
    return member


async def _claim_confirmation(db: AsyncSession, event: Event, team: Team) -> Team:
    """OPEN -> CONFIRMED, taking one of the event's max_teams slots."""
    if event.has_team_limit:
        result = await db.execute(
            select(Team.confirmed_slot).where(
                Team.event_id == event.id,
                Team.status == TeamStatus.CONFIRMED,
                Team.id != team.id,
            )
        )
        slot = first_free_slot(result.scalars().all(), limit=event.max_teams)
        if slot is None:
            raise InvariantViolationError("Event is full", code=ErrorCode.EVENT_FULL)
        team.confirmed_slot = slot
    return team_state.transition(team, TeamStatus.CONFIRMED)


async def _ensure_min_size(db: AsyncSession, event: Event, team: Team) -> None:
    if await member_count(db, team.id) < event.min_team_size:
        raise InvariantViolationError(
            f"Team is not full need at least {event.min_team_size} members",
            code=ErrorCode.TEAM_TOO_SMALL,
        )


async def _solo_team_name(db: AsyncSession, event: Event, user_id: int) -> str:
    """Solo teams are named after their member; repeat entries get a suffix."""
    base = str(user_id)
    result = await db.execute(
        select(Team.name).where(Team.event_id == event.id, Team.name.like(f"{base}%"))
    )
    taken = set(result.scalars().all())
    if base not in taken:
        return base
    n = 2
    while f"{base}-{n}" in taken:
        n += 1
    return f"{base}-{n}"


async def _delete_team_rows(db: AsyncSession, team: Team) -> None:
    await db.execute(delete(TeamMember).where(TeamMember.team_id == team.id))
    await db.delete(team)


# ============================================================================
# Participant operations
# ============================================================================

async def create_team(db: AsyncSession, user: Optional[User], event_id: int, name: str) -> Team:
    user = check_role(user, Operation.CREATE_TEAM)
    event = await get_event(db, event_id)
    await authorize(db, user, Operation.CREATE_TEAM, event_id=event.id)

    await ensure_eligible(db, user, event)
    _ensure_team_event(event)
    if event.event_type == EventType.TEAM:
        await _ensure_not_registered(db, user.id, event)
    await _ensure_event_not_full(db, event)
    await _ensure_name_available(db, event.id, name)

    team = Team(name=name, event_id=event.id, leader_id=user.id, status=TeamStatus.OPEN)
    db.add(team)
    await flush_or_conflict(db, "create team")
    await _add_member(db, team, event, user.id)
    await commit_or_conflict(db, "create team")

    logger.info(f"Team {team.id} '{name}' created for event {event.id} by user {user.id}")
    return team


async def join_team(db: AsyncSession, user: Optional[User], team_id: int) -> TeamMember:
    user = check_role(user, Operation.JOIN_TEAM)
    team = await get_team(db, team_id)
    await authorize(db, user, Operation.JOIN_TEAM, event_id=team.event_id, team=team)

    team_state.ensure_membership_mutable(team)
    event = await get_event(db, team.event_id)
    await ensure_eligible(db, user, event)
    _ensure_team_event(event)
    if event.event_type == EventType.TEAM:
        await _ensure_not_registered(db, user.id, event)
    await _ensure_same_college(db, event, team, user)

    member = await _add_member(db, team, event, user.id)
    await commit_or_conflict(db, "join team")

    logger.info(f"User {user.id} joined team {team.id}")
    return member


async def leave_team(db: AsyncSession, user: Optional[User], team_id: int) -> TeamMember:
    """The leader may leave too; leadership is not reassigned."""
    user = check_role(user, Operation.LEAVE_TEAM)
    team = await get_team(db, team_id)
    await authorize(db, user, Operation.LEAVE_TEAM, event_id=team.event_id, team=team)

    membership = await _find_membership(db, team.id, user.id)
    if membership is None:
        raise InvariantViolationError("Not a member of team", code=ErrorCode.NOT_A_MEMBER)
    team_state.ensure_membership_mutable(team)

    await db.delete(membership)
    await commit_or_conflict(db, "leave team")

    logger.info(f"User {user.id} left team {team.id}")
    return membership


async def remove_team_member(db: AsyncSession, user: Optional[User], team_id: int, user_id: int) -> TeamMember:
    user = check_role(user, Operation.REMOVE_TEAM_MEMBER)
    team = await get_team(db, team_id)
    await authorize(db, user, Operation.REMOVE_TEAM_MEMBER, event_id=team.event_id, team=team)

    membership = await _find_membership(db, team.id, user_id)
    if membership is None:
        raise InvariantViolationError("User does not belong to this team", code=ErrorCode.NOT_A_MEMBER)
    team_state.ensure_membership_mutable(team)

    await db.delete(membership)
    await commit_or_conflict(db, "remove team member")

    logger.info(f"Leader {user.id} removed user {user_id} from team {team.id}")
    return membership


async def confirm_team(db: AsyncSession, user: Optional[User], team_id: int) -> Team:
    user = check_role(user, Operation.CONFIRM_TEAM)
    team = await get_team(db, team_id)
    await authorize(db, user, Operation.CONFIRM_TEAM, event_id=team.event_id, team=team)

    event = await get_event(db, team.event_id)
    _ensure_team_event(event)
    team_state.ensure_membership_mutable(team)
    await _ensure_event_not_full(db, event)
    if event.is_paid:
        raise InvariantViolationError("Event is paid", code=ErrorCode.EVENT_PAID)
    await _ensure_min_size(db, event, team)

    await _claim_confirmation(db, event, team)
    await commit_or_conflict(db, "confirm team")

    logger.info(f"Team {team.id} confirmed for event {event.id}")
    return team


async def delete_team(db: AsyncSession, user: Optional[User], team_id: int) -> Team:
    user = check_role(user, Operation.DELETE_TEAM)
    team = await get_team(db, team_id)
    await authorize(db, user, Operation.DELETE_TEAM, event_id=team.event_id, team=team)

    team_state.ensure_deletable(team)
    await _delete_team_rows(db, team)
    await commit_or_conflict(db, "delete team")

    logger.info(f"Team {team.id} deleted by leader {user.id}")
    return team


async def register_solo_event(db: AsyncSession, user: Optional[User], event_id: int) -> Team:
    """
    Single-member registration. Free events confirm immediately; paid events
    stay OPEN until the payment collaborator calls settle_team_payment.
    """
    user = check_role(user, Operation.REGISTER_SOLO_EVENT)
    event = await get_event(db, event_id)
    await authorize(db, user, Operation.REGISTER_SOLO_EVENT, event_id=event.id)

    await ensure_eligible(db, user, event)
    _ensure_individual_event(event)
    if event.event_type == EventType.INDIVIDUAL:
        await _ensure_not_registered(db, user.id, event)
    await _ensure_event_not_full(db, event)

    team = Team(
        name=await _solo_team_name(db, event, user.id),
        event_id=event.id,
        leader_id=user.id,
        status=TeamStatus.OPEN,
    )
    db.add(team)
    await flush_or_conflict(db, "register for event")
    await _add_member(db, team, event, user.id)
    if not event.is_paid:
        await _claim_confirmation(db, event, team)
    await commit_or_conflict(db, "register for event")

    logger.info(f"User {user.id} registered for solo event {event.id} (confirmed={team.confirmed})")
    return team


async def settle_team_payment(db: AsyncSession, team_id: int) -> Team:
    """
    Called by the payment collaborator once an order is settled.
    Idempotent: an already confirmed team is returned unchanged.
    """
    team = await get_team(db, team_id)
    if team.confirmed:
        return team
    event = await get_event(db, team.event_id)
    await _ensure_min_size(db, event, team)
    await _claim_confirmation(db, event, team)
    await commit_or_conflict(db, "confirm paid team")

    logger.info(f"Team {team.id} confirmed after payment for event {event.id}")
    return team


# ============================================================================
# Organizer operations
# ============================================================================

async def organizer_create_team(db: AsyncSession, user: Optional[User], event_id: int, name: str) -> Team:
    """Creates an empty OPEN team; the first member added becomes its leader."""
    user = check_role(user, Operation.ORGANIZER_CREATE_TEAM)
    event = await get_event(db, event_id)
    await authorize(db, user, Operation.ORGANIZER_CREATE_TEAM, event_id=event.id)

    await _ensure_event_not_full(db, event)
    await _ensure_name_available(db, event.id, name)

    team = Team(name=name, event_id=event.id, leader_id=None, status=TeamStatus.OPEN)
    db.add(team)
    await commit_or_conflict(db, "create team")

    logger.info(f"Organizer {user.id} created team {team.id} '{name}' for event {event.id}")
    return team


async def organizer_add_team_member(
    db: AsyncSession, user: Optional[User], team_id: int, user_id: int
) -> TeamMember:
    user = check_role(user, Operation.ORGANIZER_ADD_TEAM_MEMBER)
    team = await get_team(db, team_id)
    await authorize(db, user, Operation.ORGANIZER_ADD_TEAM_MEMBER, event_id=team.event_id)

    event = await get_event(db, team.event_id)
    participant = await get_user(db, user_id)
    _ensure_participant(participant)
    team_state.ensure_membership_mutable(team)
    await ensure_eligible(db, participant, event)
    await _ensure_not_registered(db, participant.id, event)

    if await member_count(db, team.id) == 0:
        team.leader_id = participant.id
    else:
        await _ensure_same_college(db, event, team, participant)

    member = await _add_member(db, team, event, participant.id)
    await commit_or_conflict(db, "add team member")

    logger.info(f"Organizer {user.id} added user {participant.id} to team {team.id}")
    return member


async def organizer_delete_team(db: AsyncSession, user: Optional[User], team_id: int) -> Team:
    """Organizers may withdraw a team in any state."""
    user = check_role(user, Operation.ORGANIZER_DELETE_TEAM)
    team = await get_team(db, team_id)
    await authorize(db, user, Operation.ORGANIZER_DELETE_TEAM, event_id=team.event_id)

    await _delete_team_rows(db, team)
    await commit_or_conflict(db, "delete team")

    logger.info(f"Organizer {user.id} deleted team {team.id}")
    return team


async def organizer_delete_team_member(
    db: AsyncSession, user: Optional[User], team_id: int, user_id: int
) -> TeamMember:
    user = check_role(user, Operation.ORGANIZER_DELETE_TEAM_MEMBER)
    team = await get_team(db, team_id)
    await authorize(db, user, Operation.ORGANIZER_DELETE_TEAM_MEMBER, event_id=team.event_id)

    membership = await _find_membership(db, team.id, user_id)
    if membership is None:
        raise InvariantViolationError("User does not belong to this team", code=ErrorCode.NOT_A_MEMBER)
    team_state.ensure_membership_mutable(team)

    await db.delete(membership)
    await commit_or_conflict(db, "delete team member")

    logger.info(f"Organizer {user.id} removed user {user_id} from team {team.id}")
    return membership


async def organizer_confirm_team(db: AsyncSession, user: Optional[User], team_id: int) -> Team:
    """Desk confirmation: fees are collected in person, so paid events are allowed."""
    user = check_role(user, Operation.ORGANIZER_CONFIRM_TEAM)
    team = await get_team(db, team_id)
    await authorize(db, user, Operation.ORGANIZER_CONFIRM_TEAM, event_id=team.event_id)

    event = await get_event(db, team.event_id)
    team_state.ensure_membership_mutable(team)
    await _ensure_event_not_full(db, event)
    await _ensure_min_size(db, event, team)

    await _claim_confirmation(db, event, team)
    await commit_or_conflict(db, "confirm team")

    logger.info(f"Organizer {user.id} confirmed team {team.id}")
    return team


async def organizer_register_solo(
    db: AsyncSession, user: Optional[User], event_id: int, user_id: int
) -> Team:
    """
    On-the-spot registration at the venue: the participant is present, so the
    team is created confirmed and attendance is recorded in the same commit.
    """
    user = check_role(user, Operation.ORGANIZER_REGISTER_SOLO)
    event = await get_event(db, event_id)
    await authorize(db, user, Operation.ORGANIZER_REGISTER_SOLO, event_id=event.id)

    _ensure_individual_event(event)
    participant = await get_user(db, user_id)
    _ensure_participant(participant)
    await ensure_eligible(db, participant, event)
    if event.event_type == EventType.INDIVIDUAL:
        await _ensure_not_registered(db, participant.id, event)
    await _ensure_event_not_full(db, event)

    team = Team(
        name=await _solo_team_name(db, event, participant.id),
        event_id=event.id,
        leader_id=participant.id,
        status=TeamStatus.OPEN,
    )
    db.add(team)
    await flush_or_conflict(db, "register participant")
    await _add_member(db, team, event, participant.id)
    await _claim_confirmation(db, event, team)
    team.attended = True
    await attendance_service.grant_user(db, event, participant.id)
    await commit_or_conflict(db, "register participant")

    logger.info(f"Organizer {user.id} registered user {participant.id} for event {event.id}")
    return team
