"""
Eligibility Evaluator

Non-engineering students may register for at most one CORE event.
Engineering students are exempt and never reach the evaluator.
"""
import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from festreg.errors import InvariantViolationError, ErrorCode
from festreg.orm.user import User, CollegeType
from festreg.orm.event import Event, EventCategory
from festreg.orm.team import Team, TeamMember
from festreg.services.store import get_college

logger = logging.getLogger(__name__)


async def registered_core_event_ids(db: AsyncSession, user_id: int) -> list:
    """CORE events the user already holds a team membership in."""
    result = await db.execute(
        select(Event.id)
        .join(Team, Team.event_id == Event.id)
        .join(TeamMember, TeamMember.team_id == Team.id)
        .where(TeamMember.user_id == user_id, Event.category == EventCategory.CORE)
        .distinct()
    )
    return list(result.scalars().all())


async def can_register(
    db: AsyncSession,
    user_id: int,
    college_type: Optional[CollegeType],
    event_category: EventCategory,
) -> bool:
    """
    Pure read: may this user take a registration in an event of this category?
    """
    if event_category != EventCategory.CORE:
        return True

    registered = await registered_core_event_ids(db, user_id)
    if registered and college_type == CollegeType.OTHER:
        return False
    return True


async def ensure_eligible(db: AsyncSession, user: User, event: Event) -> None:
    """Raise InvariantViolation if `user` may not register for `event`."""
    college = await get_college(db, user.college_id)
    college_type = college.type if college else None

    if college_type == CollegeType.ENGINEERING:
        return

    if not await can_register(db, user.id, college_type, event.category):
        logger.info(f"User {user.id} not eligible for event {event.id} (core event limit)")
        raise InvariantViolationError("Not eligible to register", code=ErrorCode.NOT_ELIGIBLE)
