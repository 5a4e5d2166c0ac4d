"""
Store helpers shared by the services.

Lookups raise NotFound, and every mutating operation ends in exactly one
commit_or_conflict call so that its rows land atomically or not at all.
"""
import logging
from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from festreg.errors import ConflictOnWriteError, safe_get_or_404
from festreg.orm.user import User, College
from festreg.orm.event import Event, Branch
from festreg.orm.team import Team
from festreg.orm.round import Round

logger = logging.getLogger(__name__)


async def commit_or_conflict(db: AsyncSession, context: str) -> None:
    """
    Commit the unit of work. A constraint violation means another request
    won a race for the same rows: roll back and surface ConflictOnWrite.
    """
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        logger.error(f"Store conflict during {context}: {e.orig}")
        raise ConflictOnWriteError(f"Conflicting update while trying to {context}, please retry")


async def flush_or_conflict(db: AsyncSession, context: str) -> None:
    """Flush early (e.g. to obtain a primary key) with the same conflict mapping."""
    try:
        await db.flush()
    except IntegrityError as e:
        await db.rollback()
        logger.error(f"Store conflict during {context}: {e.orig}")
        raise ConflictOnWriteError(f"Conflicting update while trying to {context}, please retry")


async def get_user(db: AsyncSession, user_id: int) -> User:
    return safe_get_or_404(await db.get(User, user_id), "User", user_id)


async def get_event(db: AsyncSession, event_id: int) -> Event:
    return safe_get_or_404(await db.get(Event, event_id), "Event", event_id)


async def get_branch(db: AsyncSession, branch_id: int) -> Branch:
    return safe_get_or_404(await db.get(Branch, branch_id), "Branch", branch_id)


async def get_team(db: AsyncSession, team_id: int) -> Team:
    return safe_get_or_404(await db.get(Team, team_id), "Team", team_id)


async def get_round(db: AsyncSession, event_id: int, round_no: int) -> Round:
    result = await db.execute(
        select(Round).where(Round.event_id == event_id, Round.round_no == round_no)
    )
    return safe_get_or_404(result.scalar_one_or_none(), "Round", f"{event_id}/{round_no}")


async def get_college(db: AsyncSession, college_id: Optional[int]) -> Optional[College]:
    if college_id is None:
        return None
    return await db.get(College, college_id)


def first_free_slot(taken: Iterable[Optional[int]], limit: Optional[int] = None) -> Optional[int]:
    """
    Smallest positive integer not in `taken`, or None if every slot up to
    `limit` is used. Two writers reading the same snapshot pick the same slot.
    """
    used = {slot for slot in taken if slot is not None}
    slot = 1
    while slot in used:
        slot += 1
    if limit is not None and slot > limit:
        return None
    return slot
