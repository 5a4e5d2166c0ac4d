"""
Event Administration Test Suite

Event lifecycle plus organizer / judge / branch rep appointments and the role
changes they carry.
"""
import pytest

from festreg.errors import ErrorCode, ForbiddenError, InvariantViolationError, NotFoundError
from festreg.orm.event import BranchRep, Event, EventType, Organizer
from festreg.orm.round import Judge
from festreg.orm.user import User, UserRole
from festreg.services import event_service


# =============================================================================
# Events
# =============================================================================

class TestEventLifecycle:

    @pytest.mark.asyncio
    async def test_branch_rep_creates_event_in_own_branch(self, db, make):
        branch = await make.branch()
        rep = await make.branch_rep(branch)

        event = await event_service.create_event(db, rep, {
            "name": "Robowars",
            "event_type": EventType.TEAM,
            "min_team_size": 2,
            "max_team_size": 4,
        })

        assert event.branch_id == branch.id
        assert event.published is False
        assert event.fees == 0

    @pytest.mark.asyncio
    async def test_create_defaults_to_single_member_teams(self, db, make):
        rep = await make.branch_rep()

        event = await event_service.create_event(db, rep, {"name": "Quiz"})

        assert (event.min_team_size, event.max_team_size) == (1, 1)

    @pytest.mark.asyncio
    async def test_create_rejects_inverted_team_size(self, db, make):
        rep = await make.branch_rep()

        with pytest.raises(InvariantViolationError):
            await event_service.create_event(db, rep, {"name": "Bad", "min_team_size": 3, "max_team_size": 2})

    @pytest.mark.asyncio
    async def test_participant_cannot_create_event(self, db, make):
        with pytest.raises(ForbiddenError) as exc:
            await event_service.create_event(db, await make.user(), {"name": "Nope"})
        assert exc.value.code == ErrorCode.ROLE_NOT_ALLOWED

    @pytest.mark.asyncio
    async def test_update_skips_none_fields(self, db, make):
        branch = await make.branch()
        rep = await make.branch_rep(branch)
        event = await make.event(branch=branch, venue="Hall A")

        updated = await event_service.update_event(db, rep, event.id, {"venue": None, "fees": 100})

        assert updated.venue == "Hall A"
        assert updated.fees == 100

    @pytest.mark.asyncio
    async def test_organizer_can_update_own_event(self, db, make):
        event = await make.event()
        organizer = await make.organizer(event)

        updated = await event_service.update_event(db, organizer, event.id, {"description": "Bring laptops"})
        assert updated.description == "Bring laptops"

    @pytest.mark.asyncio
    async def test_published_event_cannot_be_deleted(self, db, make, count_rows):
        branch = await make.branch()
        rep = await make.branch_rep(branch)
        event = await make.event(branch=branch, published=True)

        with pytest.raises(InvariantViolationError) as exc:
            await event_service.delete_event(db, rep, event.id)
        assert exc.value.code == ErrorCode.EVENT_PUBLISHED
        assert await count_rows(Event, Event.id == event.id) == 1

    @pytest.mark.asyncio
    async def test_unpublished_event_deleted(self, db, make, count_rows):
        branch = await make.branch()
        rep = await make.branch_rep(branch)
        event = await make.event(branch=branch)
        event_id = event.id

        await event_service.delete_event(db, rep, event_id)
        assert await count_rows(Event, Event.id == event_id) == 0

    @pytest.mark.asyncio
    async def test_only_admin_publishes(self, db, make):
        branch = await make.branch()
        rep = await make.branch_rep(branch)
        admin = await make.user(role=UserRole.ADMIN)
        event = await make.event(branch=branch)

        with pytest.raises(ForbiddenError):
            await event_service.publish_event(db, rep, event.id)
        published = await event_service.publish_event(db, admin, event.id)
        assert published.published is True

    @pytest.mark.asyncio
    async def test_list_events_hides_unpublished(self, db, make):
        visible = await make.event(published=True)
        await make.event()

        assert [e.id for e in await event_service.list_events(db)] == [visible.id]
        assert len(await event_service.list_events(db, published_only=False)) == 2


# =============================================================================
# Appointments
# =============================================================================

class TestOrganizers:

    @pytest.mark.asyncio
    async def test_add_organizer_promotes_participant(self, db, make, fetch):
        branch = await make.branch()
        rep = await make.branch_rep(branch)
        event = await make.event(branch=branch)
        participant = await make.user()

        await event_service.add_organizer(db, rep, event.id, participant.id)

        assert (await fetch(User, participant.id)).role == UserRole.ORGANIZER

    @pytest.mark.asyncio
    async def test_add_organizer_twice_rejected(self, db, make):
        branch = await make.branch()
        rep = await make.branch_rep(branch)
        event = await make.event(branch=branch)
        participant = await make.user()
        await event_service.add_organizer(db, rep, event.id, participant.id)

        with pytest.raises(InvariantViolationError) as exc:
            await event_service.add_organizer(db, rep, event.id, participant.id)
        assert exc.value.code == ErrorCode.DUPLICATE

    @pytest.mark.asyncio
    async def test_judge_cannot_become_organizer(self, db, make):
        branch = await make.branch()
        rep = await make.branch_rep(branch)
        event = await make.event(branch=branch)
        judge = await make.user(role=UserRole.JUDGE)

        with pytest.raises(InvariantViolationError):
            await event_service.add_organizer(db, rep, event.id, judge.id)

    @pytest.mark.asyncio
    async def test_rep_of_other_branch_cannot_appoint(self, db, make):
        event = await make.event()
        other_rep = await make.branch_rep()
        participant = await make.user()

        with pytest.raises(ForbiddenError) as exc:
            await event_service.add_organizer(db, other_rep, event.id, participant.id)
        assert exc.value.code == ErrorCode.NOT_BRANCH_REP

    @pytest.mark.asyncio
    async def test_role_reverts_after_last_assignment(self, db, make, fetch, count_rows):
        branch = await make.branch()
        rep = await make.branch_rep(branch)
        first = await make.event(branch=branch)
        second = await make.event(branch=branch)
        participant = await make.user()
        await event_service.add_organizer(db, rep, first.id, participant.id)
        await event_service.add_organizer(db, rep, second.id, participant.id)

        await event_service.remove_organizer(db, rep, first.id, participant.id)
        assert (await fetch(User, participant.id)).role == UserRole.ORGANIZER

        await event_service.remove_organizer(db, rep, second.id, participant.id)
        assert (await fetch(User, participant.id)).role == UserRole.PARTICIPANT
        assert await count_rows(Organizer, Organizer.user_id == participant.id) == 0

    @pytest.mark.asyncio
    async def test_remove_unknown_organizer(self, db, make):
        branch = await make.branch()
        rep = await make.branch_rep(branch)
        event = await make.event(branch=branch)

        with pytest.raises(NotFoundError):
            await event_service.remove_organizer(db, rep, event.id, 9999)


class TestJudges:

    @pytest.mark.asyncio
    async def test_add_and_remove_judge(self, db, make, fetch, count_rows):
        event = await make.event()
        organizer = await make.organizer(event)
        round_obj = await make.round(event)
        candidate = await make.user(role=UserRole.USER)

        await event_service.add_judge(db, organizer, event.id, 1, candidate.id)
        assert (await fetch(User, candidate.id)).role == UserRole.JUDGE
        assert await count_rows(Judge, Judge.round_id == round_obj.id) == 1

        await event_service.remove_judge(db, organizer, event.id, 1, candidate.id)
        assert (await fetch(User, candidate.id)).role == UserRole.USER
        assert await count_rows(Judge, Judge.round_id == round_obj.id) == 0

    @pytest.mark.asyncio
    async def test_organizer_cannot_be_judge(self, db, make):
        event = await make.event()
        organizer = await make.organizer(event)
        await make.round(event)
        other_organizer = await make.user(role=UserRole.ORGANIZER)

        with pytest.raises(InvariantViolationError):
            await event_service.add_judge(db, organizer, event.id, 1, other_organizer.id)

    @pytest.mark.asyncio
    async def test_judge_for_missing_round(self, db, make):
        event = await make.event()
        organizer = await make.organizer(event)
        candidate = await make.user()

        with pytest.raises(NotFoundError):
            await event_service.add_judge(db, organizer, event.id, 1, candidate.id)


class TestBranchReps:

    @pytest.mark.asyncio
    async def test_admin_appoints_and_removes_rep(self, db, make, fetch, count_rows):
        admin = await make.user(role=UserRole.ADMIN)
        branch = await make.branch()
        candidate = await make.user()

        await event_service.add_branch_rep(db, admin, branch.id, candidate.id)
        assert (await fetch(User, candidate.id)).role == UserRole.BRANCH_REP

        await event_service.remove_branch_rep(db, admin, candidate.id)
        assert (await fetch(User, candidate.id)).role == UserRole.USER
        assert await count_rows(BranchRep, BranchRep.user_id == candidate.id) == 0

    @pytest.mark.asyncio
    async def test_one_branch_per_rep(self, db, make):
        admin = await make.user(role=UserRole.ADMIN)
        rep = await make.branch_rep()
        other_branch = await make.branch()

        with pytest.raises(InvariantViolationError) as exc:
            await event_service.add_branch_rep(db, admin, other_branch.id, rep.id)
        assert exc.value.code == ErrorCode.DUPLICATE

    @pytest.mark.asyncio
    async def test_non_admin_cannot_appoint(self, db, make):
        rep = await make.branch_rep()
        branch = await make.branch()
        candidate = await make.user()

        with pytest.raises(ForbiddenError):
            await event_service.add_branch_rep(db, rep, branch.id, candidate.id)
