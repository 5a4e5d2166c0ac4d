"""
Authorization Policy Test Suite
"""
import pytest

from festreg.errors import ErrorCode, ForbiddenError, UnauthenticatedError
from festreg.orm.user import UserRole
from festreg.services.authorization import (
    POLICY, PARTICIPATING_ROLES, Operation, Relation, authorize, check_role,
)


def test_every_operation_has_a_rule():
    assert set(POLICY) == set(Operation)
    assert all(POLICY[op] for op in Operation)


def test_judges_and_unregistered_users_never_participate():
    assert UserRole.USER not in PARTICIPATING_ROLES
    assert UserRole.JUDGE not in PARTICIPATING_ROLES
    assert UserRole.JURY not in PARTICIPATING_ROLES


def test_judge_operations_bound_to_round():
    for op in (Operation.COMPLETE_ROUND, Operation.CHANGE_SELECT_STATUS, Operation.PROMOTE_TO_NEXT_ROUND):
        assert [rule.relation for rule in POLICY[op]] == [Relation.JUDGE_OF_ROUND]


@pytest.mark.asyncio
async def test_missing_identity_is_unauthenticated(db):
    with pytest.raises(UnauthenticatedError) as exc:
        await authorize(db, None, Operation.CREATE_TEAM)
    assert exc.value.status_code == 401
    assert exc.value.kind == "Unauthenticated"


@pytest.mark.asyncio
async def test_role_gate_runs_before_relationships(make):
    judge = await make.user(role=UserRole.JUDGE)
    with pytest.raises(ForbiddenError) as exc:
        check_role(judge, Operation.JOIN_TEAM)
    assert exc.value.code == ErrorCode.ROLE_NOT_ALLOWED


@pytest.mark.asyncio
async def test_organizer_relationship_checked_per_event(db, make):
    event = await make.event()
    other = await make.event()
    organizer = await make.organizer(event)

    assert await authorize(db, organizer, Operation.CREATE_ROUND, event_id=event.id) is organizer
    with pytest.raises(ForbiddenError) as exc:
        await authorize(db, organizer, Operation.CREATE_ROUND, event_id=other.id)
    assert exc.value.code == ErrorCode.NOT_ORGANIZER


@pytest.mark.asyncio
async def test_leader_relationship(db, make):
    event = await make.event()
    leader = await make.user()
    member = await make.user()
    team = await make.team(event, [leader, member])

    await authorize(db, leader, Operation.CONFIRM_TEAM, team=team)
    with pytest.raises(ForbiddenError) as exc:
        await authorize(db, member, Operation.CONFIRM_TEAM, team=team)
    assert exc.value.code == ErrorCode.NOT_LEADER


@pytest.mark.asyncio
async def test_update_event_any_rule_suffices(db, make):
    branch = await make.branch()
    event = await make.event(branch=branch)
    rep = await make.branch_rep(branch)
    organizer = await make.organizer(event)
    admin = await make.user(role=UserRole.ADMIN)
    other_rep = await make.branch_rep()

    for user in (rep, organizer, admin):
        await authorize(db, user, Operation.UPDATE_EVENT, event_id=event.id, branch_id=branch.id)

    with pytest.raises(ForbiddenError) as exc:
        await authorize(db, other_rep, Operation.UPDATE_EVENT, event_id=event.id, branch_id=branch.id)
    assert exc.value.code == ErrorCode.NOT_BRANCH_REP


@pytest.mark.asyncio
async def test_create_event_requires_branch(db, make):
    rep_without_branch = await make.user(role=UserRole.BRANCH_REP)
    with pytest.raises(ForbiddenError):
        await authorize(db, rep_without_branch, Operation.CREATE_EVENT)
