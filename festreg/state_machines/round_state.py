"""
Round State Machine

    PENDING -> COMPLETED   (terminal)

Completing an already completed round is accepted as an idempotent set so
that judges' clients can retry safely. Promotion is only permitted while the
round is PENDING.
"""
import logging
from typing import Dict, FrozenSet

from festreg.errors import InvariantViolationError, ErrorCode
from festreg.orm.round import Round, RoundStatus

logger = logging.getLogger(__name__)


ALLOWED_TRANSITIONS: Dict[RoundStatus, FrozenSet[RoundStatus]] = {
    RoundStatus.PENDING: frozenset({RoundStatus.COMPLETED}),
    RoundStatus.COMPLETED: frozenset(),
}


def is_valid_transition(from_state: RoundStatus, to_state: RoundStatus) -> bool:
    return to_state in ALLOWED_TRANSITIONS.get(from_state, frozenset())


def complete(round_obj: Round) -> bool:
    """
    Mark the round completed.

    Returns True if the status changed, False if it was already COMPLETED.
    """
    current = round_obj.status or RoundStatus.PENDING
    if current == RoundStatus.COMPLETED:
        return False
    if not is_valid_transition(current, RoundStatus.COMPLETED):
        raise InvariantViolationError(
            f"Cannot transition round from {current.value} to COMPLETED",
            code=ErrorCode.STATE_TRANSITION_INVALID,
        )
    round_obj.status = RoundStatus.COMPLETED
    return True


def ensure_open_for_promotion(round_obj: Round) -> None:
    if round_obj.status == RoundStatus.COMPLETED:
        logger.warning(f"Promotion attempted on completed round {round_obj.event_id}/{round_obj.round_no}")
        raise InvariantViolationError("Round completed", code=ErrorCode.ROUND_COMPLETED)


def next_team_round(current_round_no: int, round_no: int, selected: bool) -> int:
    """
    Promotion transition table for a team's round number.

    | selected | team.round_no   | result        |
    |----------|-----------------|---------------|
    | True     | round_no        | round_no + 1  |
    | False    | round_no + 1    | round_no      |
    | any      | anything else   | unchanged     |
    """
    if selected and current_round_no == round_no:
        return round_no + 1
    if not selected and current_round_no == round_no + 1:
        return round_no
    return current_round_no
