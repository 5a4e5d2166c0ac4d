"""
Team State Machine

Explicit lifecycle for team registrations:

    UNCREATED -> OPEN -> CONFIRMED
                 OPEN -> DELETED

UNCREATED and DELETED are represented by the absence of a row, so only the
OPEN -> CONFIRMED edge is stored on the Team itself. CONFIRMED is terminal:
a confirmed team can neither change membership nor be withdrawn by its leader.
"""
import logging
from typing import Dict, FrozenSet

from festreg.errors import InvariantViolationError, ErrorCode
from festreg.orm.team import Team, TeamStatus

logger = logging.getLogger(__name__)


ALLOWED_TRANSITIONS: Dict[TeamStatus, FrozenSet[TeamStatus]] = {
    TeamStatus.OPEN: frozenset({TeamStatus.CONFIRMED}),
    TeamStatus.CONFIRMED: frozenset(),
}


def is_valid_transition(from_state: TeamStatus, to_state: TeamStatus) -> bool:
    return to_state in ALLOWED_TRANSITIONS.get(from_state, frozenset())


def transition(team: Team, to_state: TeamStatus) -> Team:
    """Move a team to a new status or raise InvariantViolation."""
    from_state = team.status or TeamStatus.OPEN
    if not is_valid_transition(from_state, to_state):
        logger.warning(f"Rejected team transition {from_state.value} -> {to_state.value} for team {team.id}")
        raise InvariantViolationError(
            "Team is confirmed" if from_state == TeamStatus.CONFIRMED
            else f"Cannot transition team from {from_state.value} to {to_state.value}",
            code=ErrorCode.TEAM_CONFIRMED if from_state == TeamStatus.CONFIRMED
            else ErrorCode.STATE_TRANSITION_INVALID,
        )
    team.status = to_state
    return team


def ensure_membership_mutable(team: Team) -> None:
    """Membership may only change while the team is OPEN."""
    if team.status == TeamStatus.CONFIRMED:
        raise InvariantViolationError("Team is confirmed", code=ErrorCode.TEAM_CONFIRMED)


def ensure_deletable(team: Team) -> None:
    """OPEN -> DELETED is the only withdrawal edge available to a leader."""
    if team.status == TeamStatus.CONFIRMED:
        raise InvariantViolationError("Team is confirmed", code=ErrorCode.TEAM_CONFIRMED)
