"""
Event administration: events, organizers, judges and branch representatives.

Appointments change the appointee's role, since role is the only signal the
authorization policy reads:
- organizer:  PARTICIPANT -> ORGANIZER, reverted when the last assignment goes
- judge:      USER / PARTICIPANT -> JUDGE, reverted to USER likewise
- branch rep: any -> BRANCH_REP, reverted to USER
"""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from festreg.errors import InvariantViolationError, NotFoundError, ErrorCode
from festreg.orm.user import User, UserRole
from festreg.orm.event import Event, BranchRep, Organizer
from festreg.orm.round import Judge
from festreg.services.authorization import Operation, check_role, authorize
from festreg.services.store import commit_or_conflict, get_branch, get_event, get_round, get_user

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = (
    "name", "description", "venue", "category", "event_type",
    "min_team_size", "max_team_size", "max_teams", "fees",
    "enforce_college_homogeneity",
)

JUDGE_CANDIDATE_ROLES = (UserRole.USER, UserRole.PARTICIPANT, UserRole.JUDGE)
ORGANIZER_CANDIDATE_ROLES = (UserRole.PARTICIPANT, UserRole.ORGANIZER)


def _validate_capacity(event: Event) -> None:
    if event.min_team_size < 1 or event.max_team_size < event.min_team_size:
        raise InvariantViolationError(
            "Team size bounds must satisfy 1 <= min_team_size <= max_team_size",
            details={"min_team_size": event.min_team_size, "max_team_size": event.max_team_size},
        )
    if event.max_teams is not None and event.max_teams < 0:
        raise InvariantViolationError("max_teams cannot be negative")
    if event.fees < 0:
        raise InvariantViolationError("fees cannot be negative")


async def list_events(db: AsyncSession, published_only: bool = True) -> List[Event]:
    query = select(Event).order_by(Event.id)
    if published_only:
        query = query.where(Event.published.is_(True))
    result = await db.execute(query)
    return list(result.scalars().all())


# ============================================================================
# Events
# ============================================================================

async def create_event(db: AsyncSession, user: Optional[User], fields: Dict[str, Any]) -> Event:
    user = check_role(user, Operation.CREATE_EVENT)
    await authorize(db, user, Operation.CREATE_EVENT)

    result = await db.execute(select(BranchRep).where(BranchRep.user_id == user.id))
    rep = result.scalar_one()

    values = {k: v for k, v in fields.items() if k in EDITABLE_FIELDS and v is not None}
    values.setdefault("min_team_size", 1)
    values.setdefault("max_team_size", values["min_team_size"])
    values.setdefault("fees", 0)
    event = Event(branch_id=rep.branch_id, **values)
    _validate_capacity(event)

    db.add(event)
    await commit_or_conflict(db, "create event")

    logger.info(f"Event {event.id} '{event.name}' created by branch rep {user.id}")
    return event


async def update_event(
    db: AsyncSession, user: Optional[User], event_id: int, changes: Dict[str, Any]
) -> Event:
    """Fields left as None are not touched."""
    user = check_role(user, Operation.UPDATE_EVENT)
    event = await get_event(db, event_id)
    await authorize(db, user, Operation.UPDATE_EVENT, event_id=event.id, branch_id=event.branch_id)

    for key, value in changes.items():
        if key in EDITABLE_FIELDS and value is not None:
            setattr(event, key, value)
    _validate_capacity(event)

    await commit_or_conflict(db, "update event")
    logger.info(f"Event {event.id} updated by user {user.id}")
    return event


async def delete_event(db: AsyncSession, user: Optional[User], event_id: int) -> Event:
    user = check_role(user, Operation.DELETE_EVENT)
    event = await get_event(db, event_id)
    await authorize(db, user, Operation.DELETE_EVENT, event_id=event.id, branch_id=event.branch_id)

    if event.published:
        raise InvariantViolationError("Event is already published", code=ErrorCode.EVENT_PUBLISHED)

    await db.delete(event)
    await commit_or_conflict(db, "delete event")
    logger.info(f"Event {event.id} deleted by user {user.id}")
    return event


async def publish_event(db: AsyncSession, user: Optional[User], event_id: int) -> Event:
    user = check_role(user, Operation.PUBLISH_EVENT)
    event = await get_event(db, event_id)
    await authorize(db, user, Operation.PUBLISH_EVENT, event_id=event.id)

    event.published = True
    await commit_or_conflict(db, "publish event")
    logger.info(f"Event {event.id} published by admin {user.id}")
    return event


# ============================================================================
# Organizers
# ============================================================================

async def _organizer_row(db: AsyncSession, user_id: int, event_id: int) -> Optional[Organizer]:
    result = await db.execute(
        select(Organizer).where(Organizer.user_id == user_id, Organizer.event_id == event_id)
    )
    return result.scalar_one_or_none()


async def add_organizer(db: AsyncSession, user: Optional[User], event_id: int, user_id: int) -> Organizer:
    user = check_role(user, Operation.ADD_ORGANIZER)
    event = await get_event(db, event_id)
    await authorize(db, user, Operation.ADD_ORGANIZER, event_id=event.id, branch_id=event.branch_id)

    appointee = await get_user(db, user_id)
    if appointee.role not in ORGANIZER_CANDIDATE_ROLES:
        raise InvariantViolationError(
            f"User with role {appointee.role.value} cannot be made an organizer",
            code=ErrorCode.INVARIANT_VIOLATION,
        )
    if await _organizer_row(db, appointee.id, event.id) is not None:
        raise InvariantViolationError("User is already an organizer of this event", code=ErrorCode.DUPLICATE)

    organizer = Organizer(user_id=appointee.id, event_id=event.id)
    db.add(organizer)
    appointee.role = UserRole.ORGANIZER
    await commit_or_conflict(db, "add organizer")

    logger.info(f"User {appointee.id} appointed organizer of event {event.id} by {user.id}")
    return organizer


async def remove_organizer(db: AsyncSession, user: Optional[User], event_id: int, user_id: int) -> Organizer:
    user = check_role(user, Operation.REMOVE_ORGANIZER)
    event = await get_event(db, event_id)
    await authorize(db, user, Operation.REMOVE_ORGANIZER, event_id=event.id, branch_id=event.branch_id)

    organizer = await _organizer_row(db, user_id, event.id)
    if organizer is None:
        raise NotFoundError("Organizer", user_id)
    await db.delete(organizer)

    appointee = await get_user(db, user_id)
    remaining = await db.execute(
        select(func.count()).select_from(Organizer).where(
            Organizer.user_id == user_id, Organizer.event_id != event.id
        )
    )
    if remaining.scalar_one() == 0 and appointee.role == UserRole.ORGANIZER:
        appointee.role = UserRole.PARTICIPANT
    await commit_or_conflict(db, "remove organizer")

    logger.info(f"User {user_id} removed as organizer of event {event.id} by {user.id}")
    return organizer


# ============================================================================
# Judges
# ============================================================================

async def _judge_row(db: AsyncSession, user_id: int, round_id: int) -> Optional[Judge]:
    result = await db.execute(
        select(Judge).where(Judge.user_id == user_id, Judge.round_id == round_id)
    )
    return result.scalar_one_or_none()


async def add_judge(
    db: AsyncSession, user: Optional[User], event_id: int, round_no: int, user_id: int
) -> Judge:
    user = check_role(user, Operation.ADD_JUDGE)
    round_obj = await get_round(db, event_id, round_no)
    await authorize(db, user, Operation.ADD_JUDGE, event_id=event_id)

    appointee = await get_user(db, user_id)
    if appointee.role not in JUDGE_CANDIDATE_ROLES:
        raise InvariantViolationError(
            f"User with role {appointee.role.value} cannot be made a judge",
            code=ErrorCode.INVARIANT_VIOLATION,
        )
    if await _judge_row(db, appointee.id, round_obj.id) is not None:
        raise InvariantViolationError("User is already a judge of this round", code=ErrorCode.DUPLICATE)

    judge = Judge(user_id=appointee.id, round_id=round_obj.id)
    db.add(judge)
    appointee.role = UserRole.JUDGE
    await commit_or_conflict(db, "add judge")

    logger.info(f"User {appointee.id} assigned as judge of round {event_id}/{round_no}")
    return judge


async def remove_judge(
    db: AsyncSession, user: Optional[User], event_id: int, round_no: int, user_id: int
) -> Judge:
    user = check_role(user, Operation.REMOVE_JUDGE)
    round_obj = await get_round(db, event_id, round_no)
    await authorize(db, user, Operation.REMOVE_JUDGE, event_id=event_id)

    judge = await _judge_row(db, user_id, round_obj.id)
    if judge is None:
        raise NotFoundError("Judge", user_id)
    await db.delete(judge)

    appointee = await get_user(db, user_id)
    remaining = await db.execute(
        select(func.count()).select_from(Judge).where(
            Judge.user_id == user_id, Judge.round_id != round_obj.id
        )
    )
    if remaining.scalar_one() == 0 and appointee.role == UserRole.JUDGE:
        appointee.role = UserRole.USER
    await commit_or_conflict(db, "remove judge")

    logger.info(f"User {user_id} removed as judge of round {event_id}/{round_no}")
    return judge


# ============================================================================
# Branch representatives
# ============================================================================

async def add_branch_rep(db: AsyncSession, user: Optional[User], branch_id: int, user_id: int) -> BranchRep:
    user = check_role(user, Operation.ADD_BRANCH_REP)
    await authorize(db, user, Operation.ADD_BRANCH_REP, branch_id=branch_id)
    branch = await get_branch(db, branch_id)
    appointee = await get_user(db, user_id)

    existing = await db.execute(select(BranchRep.id).where(BranchRep.user_id == appointee.id))
    if existing.scalar_one_or_none() is not None:
        raise InvariantViolationError("User already represents a branch", code=ErrorCode.DUPLICATE)

    rep = BranchRep(user_id=appointee.id, branch_id=branch.id)
    db.add(rep)
    appointee.role = UserRole.BRANCH_REP
    await commit_or_conflict(db, "add branch rep")

    logger.info(f"User {appointee.id} appointed representative of branch {branch.id}")
    return rep


async def remove_branch_rep(db: AsyncSession, user: Optional[User], user_id: int) -> BranchRep:
    user = check_role(user, Operation.REMOVE_BRANCH_REP)
    await authorize(db, user, Operation.REMOVE_BRANCH_REP)

    result = await db.execute(select(BranchRep).where(BranchRep.user_id == user_id))
    rep = result.scalar_one_or_none()
    if rep is None:
        raise NotFoundError("BranchRep", user_id)
    await db.delete(rep)

    appointee = await get_user(db, user_id)
    appointee.role = UserRole.USER
    await commit_or_conflict(db, "remove branch rep")

    logger.info(f"User {user_id} removed as branch representative")
    return rep
