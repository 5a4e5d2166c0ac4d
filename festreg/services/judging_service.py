"""
Judging: score-sheet criteria per round and the winners of an event.

Criteria are managed by the event's organizers or the round's judges. Winners
are picked by judges of the final (highest-numbered) round from the teams that
reached it; judges and jury can list them.
"""
import logging
from typing import List, Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from festreg.errors import InvariantViolationError, NotFoundError, ErrorCode
from festreg.orm.user import User
from festreg.orm.round import Round
from festreg.orm.team import TeamStatus
from festreg.orm.judging import Criteria, CriteriaType, Winner, WinnerType
from festreg.services.authorization import Operation, check_role, authorize
from festreg.services.round_service import last_round
from festreg.services.store import commit_or_conflict, get_event, get_round, get_team

logger = logging.getLogger(__name__)


# ============================================================================
# Criteria
# ============================================================================

async def list_criteria(db: AsyncSession, event_id: int, round_no: int) -> List[Criteria]:
    round_obj = await get_round(db, event_id, round_no)
    result = await db.execute(
        select(Criteria).where(Criteria.round_id == round_obj.id).order_by(Criteria.id)
    )
    return list(result.scalars().all())


async def create_criteria(
    db: AsyncSession,
    user: Optional[User],
    event_id: int,
    round_no: int,
    name: Optional[str] = None,
    type: Optional[CriteriaType] = None,
) -> Criteria:
    """Unnamed criteria are numbered within their round: "Criteria 1", "Criteria 2"..."""
    user = check_role(user, Operation.CREATE_CRITERIA)
    round_obj = await get_round(db, event_id, round_no)
    await authorize(db, user, Operation.CREATE_CRITERIA, event_id=event_id, round_id=round_obj.id)

    if not name:
        result = await db.execute(
            select(func.count()).select_from(Criteria).where(Criteria.round_id == round_obj.id)
        )
        name = f"Criteria {result.scalar_one() + 1}"

    criteria = Criteria(
        event_id=event_id,
        round_id=round_obj.id,
        round_no=round_no,
        name=name,
        type=type or CriteriaType.NUMBER,
    )
    db.add(criteria)
    await commit_or_conflict(db, "create criteria")

    logger.info(f"Criteria '{criteria.name}' added to round {event_id}/{round_no} by user {user.id}")
    return criteria


async def delete_criteria(
    db: AsyncSession, user: Optional[User], event_id: int, round_no: int, criteria_id: int
) -> Criteria:
    user = check_role(user, Operation.DELETE_CRITERIA)
    round_obj = await get_round(db, event_id, round_no)
    await authorize(db, user, Operation.DELETE_CRITERIA, event_id=event_id, round_id=round_obj.id)

    criteria = await db.get(Criteria, criteria_id)
    if criteria is None or criteria.round_id != round_obj.id:
        raise NotFoundError("Criteria", criteria_id)

    await db.delete(criteria)
    await commit_or_conflict(db, "delete criteria")

    logger.info(f"Criteria {criteria_id} removed from round {event_id}/{round_no} by user {user.id}")
    return criteria


# ============================================================================
# Winners
# ============================================================================

async def winners_by_event(db: AsyncSession, user: Optional[User], event_id: int) -> List[Winner]:
    await authorize(db, user, Operation.VIEW_WINNERS)
    await get_event(db, event_id)
    result = await db.execute(
        select(Winner).where(Winner.event_id == event_id).order_by(Winner.id)
    )
    return list(result.scalars().all())


async def all_winners(db: AsyncSession, user: Optional[User]) -> List[Winner]:
    await authorize(db, user, Operation.VIEW_WINNERS)
    result = await db.execute(select(Winner).order_by(Winner.event_id, Winner.id))
    return list(result.scalars().all())


async def _final_round(db: AsyncSession, event_id: int) -> Round:
    final = await last_round(db, event_id)
    if final is None:
        raise InvariantViolationError("No rounds found", code=ErrorCode.NO_ROUNDS)
    return final


async def create_winner(
    db: AsyncSession, user: Optional[User], team_id: int, type: WinnerType
) -> Winner:
    user = check_role(user, Operation.CREATE_WINNER)
    team = await get_team(db, team_id)
    final = await _final_round(db, team.event_id)
    await authorize(db, user, Operation.CREATE_WINNER, event_id=team.event_id, round_id=final.id)

    if team.status != TeamStatus.CONFIRMED:
        raise InvariantViolationError("Team is not confirmed", code=ErrorCode.TEAM_NOT_CONFIRMED)
    if team.round_no != final.round_no:
        raise InvariantViolationError(
            f"Team has not reached the final round {final.round_no}",
            code=ErrorCode.NOT_IN_FINAL_ROUND,
        )

    result = await db.execute(
        select(Winner).where(
            Winner.event_id == team.event_id,
            (Winner.type == type) | (Winner.team_id == team.id),
        )
    )
    existing = result.scalars().first()
    if existing is not None:
        message = "Team is already a winner" if existing.team_id == team.id else f"{type.value} already awarded"
        raise InvariantViolationError(message, code=ErrorCode.DUPLICATE)

    winner = Winner(event_id=team.event_id, team_id=team.id, type=type)
    db.add(winner)
    await commit_or_conflict(db, "create winner")

    logger.info(f"Team {team.id} awarded {type.value} in event {team.event_id} by judge {user.id}")
    return winner


async def delete_winner(db: AsyncSession, user: Optional[User], winner_id: int) -> Winner:
    user = check_role(user, Operation.DELETE_WINNER)
    winner = await db.get(Winner, winner_id)
    if winner is None:
        raise NotFoundError("Winner", winner_id)
    final = await _final_round(db, winner.event_id)
    await authorize(db, user, Operation.DELETE_WINNER, event_id=winner.event_id, round_id=final.id)

    await db.delete(winner)
    await commit_or_conflict(db, "delete winner")

    logger.info(f"Winner {winner_id} of event {winner.event_id} removed by judge {user.id}")
    return winner
