"""
Authorization Policy

Single place where every mutating operation's access requirement is declared.
Each operation maps to one or more rules; a rule is a set of allowed roles plus
an optional relationship the caller must hold to the target entity. The
operation is allowed if ANY of its rules is satisfied.

Checks in order:
1. Identity present             -> otherwise Unauthenticated
2. Role allowed by some rule    -> otherwise Forbidden
3. Relationship of that rule    -> otherwise Forbidden

Services call check_role() before loading entities and authorize() once the
entities the relationship refers to are known. Nothing here is cached.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from festreg.errors import UnauthenticatedError, ForbiddenError, ErrorCode
from festreg.orm.user import User, UserRole
from festreg.orm.event import Organizer, BranchRep
from festreg.orm.round import Judge
from festreg.orm.team import Team

logger = logging.getLogger(__name__)


class Relation(str, Enum):
    ORGANIZER_OF_EVENT = "organizer_of_event"
    JUDGE_OF_ROUND = "judge_of_round"
    LEADER_OF_TEAM = "leader_of_team"
    BRANCH_REP_OF_BRANCH = "branch_rep_of_branch"
    HAS_BRANCH = "has_branch"


class Operation(str, Enum):
    # Team Membership Manager
    CREATE_TEAM = "create_team"
    JOIN_TEAM = "join_team"
    LEAVE_TEAM = "leave_team"
    CONFIRM_TEAM = "confirm_team"
    DELETE_TEAM = "delete_team"
    REMOVE_TEAM_MEMBER = "remove_team_member"
    REGISTER_SOLO_EVENT = "register_solo_event"
    ORGANIZER_CREATE_TEAM = "organizer_create_team"
    ORGANIZER_ADD_TEAM_MEMBER = "organizer_add_team_member"
    ORGANIZER_DELETE_TEAM = "organizer_delete_team"
    ORGANIZER_DELETE_TEAM_MEMBER = "organizer_delete_team_member"
    ORGANIZER_CONFIRM_TEAM = "organizer_confirm_team"
    ORGANIZER_REGISTER_SOLO = "organizer_register_solo"
    # Attendance & Reward Ledger
    ORGANIZER_MARK_ATTENDANCE = "organizer_mark_attendance"
    ORGANIZER_MARK_ATTENDANCE_SOLO = "organizer_mark_attendance_solo"
    # Round Progression Engine
    CREATE_ROUND = "create_round"
    DELETE_ROUND = "delete_round"
    COMPLETE_ROUND = "complete_round"
    CHANGE_SELECT_STATUS = "change_select_status"
    PROMOTE_TO_NEXT_ROUND = "promote_to_next_round"
    # Judging
    CREATE_CRITERIA = "create_criteria"
    DELETE_CRITERIA = "delete_criteria"
    CREATE_WINNER = "create_winner"
    DELETE_WINNER = "delete_winner"
    VIEW_WINNERS = "view_winners"
    # Event administration
    CREATE_EVENT = "create_event"
    UPDATE_EVENT = "update_event"
    DELETE_EVENT = "delete_event"
    PUBLISH_EVENT = "publish_event"
    ADD_ORGANIZER = "add_organizer"
    REMOVE_ORGANIZER = "remove_organizer"
    ADD_JUDGE = "add_judge"
    REMOVE_JUDGE = "remove_judge"
    ADD_BRANCH_REP = "add_branch_rep"
    REMOVE_BRANCH_REP = "remove_branch_rep"


@dataclass(frozen=True)
class Rule:
    roles: FrozenSet[UserRole]
    relation: Optional[Relation] = None


# USER has not registered for the fest yet; JUDGE and JURY evaluate, never compete.
PARTICIPATING_ROLES = frozenset({
    UserRole.PARTICIPANT,
    UserRole.BRANCH_REP,
    UserRole.ORGANIZER,
    UserRole.ADMIN,
})

_participant = Rule(PARTICIPATING_ROLES)
_participant_leader = Rule(PARTICIPATING_ROLES, Relation.LEADER_OF_TEAM)
_organizer = Rule(frozenset({UserRole.ORGANIZER}), Relation.ORGANIZER_OF_EVENT)
_judge = Rule(frozenset({UserRole.JUDGE}), Relation.JUDGE_OF_ROUND)
_branch_rep = Rule(frozenset({UserRole.BRANCH_REP}), Relation.BRANCH_REP_OF_BRANCH)
_admin = Rule(frozenset({UserRole.ADMIN}))
_jury = Rule(frozenset({UserRole.JUDGE, UserRole.JURY}))

POLICY: Dict[Operation, Tuple[Rule, ...]] = {
    Operation.CREATE_TEAM: (_participant,),
    Operation.JOIN_TEAM: (_participant,),
    Operation.LEAVE_TEAM: (_participant,),
    Operation.CONFIRM_TEAM: (_participant_leader,),
    Operation.DELETE_TEAM: (_participant_leader,),
    Operation.REMOVE_TEAM_MEMBER: (_participant_leader,),
    Operation.REGISTER_SOLO_EVENT: (_participant,),
    Operation.ORGANIZER_CREATE_TEAM: (_organizer,),
    Operation.ORGANIZER_ADD_TEAM_MEMBER: (_organizer,),
    Operation.ORGANIZER_DELETE_TEAM: (_organizer,),
    Operation.ORGANIZER_DELETE_TEAM_MEMBER: (_organizer,),
    Operation.ORGANIZER_CONFIRM_TEAM: (_organizer,),
    Operation.ORGANIZER_REGISTER_SOLO: (_organizer,),
    Operation.ORGANIZER_MARK_ATTENDANCE: (_organizer,),
    Operation.ORGANIZER_MARK_ATTENDANCE_SOLO: (_organizer,),
    Operation.CREATE_ROUND: (_organizer,),
    Operation.DELETE_ROUND: (_organizer,),
    Operation.COMPLETE_ROUND: (_judge,),
    Operation.CHANGE_SELECT_STATUS: (_judge,),
    Operation.PROMOTE_TO_NEXT_ROUND: (_judge,),
    Operation.CREATE_CRITERIA: (_organizer, _judge),
    Operation.DELETE_CRITERIA: (_organizer, _judge),
    Operation.CREATE_WINNER: (_judge,),
    Operation.DELETE_WINNER: (_judge,),
    Operation.VIEW_WINNERS: (_jury,),
    Operation.CREATE_EVENT: (Rule(frozenset({UserRole.BRANCH_REP}), Relation.HAS_BRANCH),),
    Operation.UPDATE_EVENT: (_branch_rep, _organizer, _admin),
    Operation.DELETE_EVENT: (_branch_rep, _organizer),
    Operation.PUBLISH_EVENT: (_admin,),
    Operation.ADD_ORGANIZER: (_branch_rep,),
    Operation.REMOVE_ORGANIZER: (_branch_rep,),
    Operation.ADD_JUDGE: (_organizer,),
    Operation.REMOVE_JUDGE: (_organizer,),
    Operation.ADD_BRANCH_REP: (_admin,),
    Operation.REMOVE_BRANCH_REP: (_admin,),
}

_RELATION_DENIALS = {
    Relation.ORGANIZER_OF_EVENT: ("Not authorized, not an organizer of this event", ErrorCode.NOT_ORGANIZER),
    Relation.JUDGE_OF_ROUND: ("Not authorized, not a judge of this round", ErrorCode.NOT_JUDGE),
    Relation.LEADER_OF_TEAM: ("Not authorized, only the team leader can do this", ErrorCode.NOT_LEADER),
    Relation.BRANCH_REP_OF_BRANCH: ("Not authorized, not a representative of this branch", ErrorCode.NOT_BRANCH_REP),
    Relation.HAS_BRANCH: ("Not authorized, no branch under this user", ErrorCode.NOT_BRANCH_REP),
}


def require_identity(user: Optional[User]) -> User:
    if user is None:
        raise UnauthenticatedError()
    return user


def check_role(user: Optional[User], operation: Operation) -> User:
    """Identity and role gate; runs before any entity is loaded."""
    user = require_identity(user)
    if not any(user.role in rule.roles for rule in POLICY[operation]):
        logger.warning(f"Access denied: user {user.id} with role {user.role} attempted {operation.value}")
        raise ForbiddenError("Not authorized", code=ErrorCode.ROLE_NOT_ALLOWED)
    return user


async def _holds(
    db: AsyncSession,
    user: User,
    relation: Relation,
    event_id: Optional[int],
    round_id: Optional[int],
    team: Optional[Team],
    branch_id: Optional[int],
) -> bool:
    if relation == Relation.LEADER_OF_TEAM:
        return team is not None and team.leader_id is not None and team.leader_id == user.id

    if relation == Relation.ORGANIZER_OF_EVENT:
        if event_id is None:
            return False
        query = select(Organizer.id).where(Organizer.user_id == user.id, Organizer.event_id == event_id)
    elif relation == Relation.JUDGE_OF_ROUND:
        if round_id is None:
            return False
        query = select(Judge.id).where(Judge.user_id == user.id, Judge.round_id == round_id)
    elif relation == Relation.BRANCH_REP_OF_BRANCH:
        if branch_id is None:
            return False
        query = select(BranchRep.id).where(BranchRep.user_id == user.id, BranchRep.branch_id == branch_id)
    elif relation == Relation.HAS_BRANCH:
        query = select(BranchRep.id).where(BranchRep.user_id == user.id)
    else:
        return False

    result = await db.execute(query.limit(1))
    return result.scalar_one_or_none() is not None


async def authorize(
    db: AsyncSession,
    user: Optional[User],
    operation: Operation,
    *,
    event_id: Optional[int] = None,
    round_id: Optional[int] = None,
    team: Optional[Team] = None,
    branch_id: Optional[int] = None,
) -> User:
    """
    Full policy evaluation for an operation against its target.

    Returns the acting user; raises UnauthenticatedError / ForbiddenError.
    """
    user = check_role(user, operation)

    denial = None
    for rule in POLICY[operation]:
        if user.role not in rule.roles:
            continue
        if rule.relation is None:
            return user
        if await _holds(db, user, rule.relation, event_id, round_id, team, branch_id):
            return user
        denial = denial or _RELATION_DENIALS[rule.relation]

    message, code = denial or ("Not authorized", ErrorCode.FORBIDDEN)
    logger.warning(f"Access denied: user {user.id} lacks relationship for {operation.value} ({code})")
    raise ForbiddenError(message, code=code)
