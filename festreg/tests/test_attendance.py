"""
Attendance & Reward Ledger Test Suite

Bulk (team) grants are all-or-nothing at team granularity, solo grants are
per user. Both behaviors are pinned here as they are.
"""
import pytest

from festreg.errors import ErrorCode, ForbiddenError, InvariantViolationError, NotFoundError
from festreg.orm.event import EventCategory, EventType
from festreg.orm.reward import Level, XP
from festreg.orm.team import Team
from festreg.services import attendance_service


async def _two_member_team(make, event, confirmed=True):
    college = await make.college()
    members = [await make.user(college=college), await make.user(college=college)]
    team = await make.team(event, members, confirmed=confirmed)
    return team, members


class TestTeamAttendance:

    @pytest.mark.asyncio
    async def test_marking_creates_level_and_grants_members(self, db, make, count_rows):
        event = await make.event(category=EventCategory.CORE)
        organizer = await make.organizer(event)
        team, members = await _two_member_team(make, event)

        marked = await attendance_service.organizer_mark_attendance(db, organizer, team.id, True)

        assert marked.attended is True
        level = await attendance_service.find_level(db, event.id)
        assert level.point == 50
        assert await count_rows(XP, XP.level_id == level.id) == 2

    @pytest.mark.asyncio
    async def test_non_core_event_level_points(self, db, make):
        event = await make.event(category=EventCategory.TECHNICAL)
        organizer = await make.organizer(event)
        team, _ = await _two_member_team(make, event)

        await attendance_service.organizer_mark_attendance(db, organizer, team.id, True)

        level = await attendance_service.find_level(db, event.id)
        assert level.point == 30

    @pytest.mark.asyncio
    async def test_marking_twice_grants_once(self, db, make, count_rows):
        event = await make.event()
        organizer = await make.organizer(event)
        team, members = await _two_member_team(make, event)

        await attendance_service.organizer_mark_attendance(db, organizer, team.id, True)
        await attendance_service.organizer_mark_attendance(db, organizer, team.id, True)

        for member in members:
            assert await count_rows(XP, XP.user_id == member.id) == 1
        assert await count_rows(Level, Level.event_id == event.id) == 1

    @pytest.mark.asyncio
    async def test_unmarking_revokes_all_members(self, db, make, count_rows, fetch):
        event = await make.event()
        organizer = await make.organizer(event)
        team, members = await _two_member_team(make, event)

        await attendance_service.organizer_mark_attendance(db, organizer, team.id, True)
        await attendance_service.organizer_mark_attendance(db, organizer, team.id, False)

        assert await count_rows(XP, XP.user_id.in_([m.id for m in members])) == 0
        assert (await fetch(Team, team.id)).attended is False

    @pytest.mark.asyncio
    async def test_bulk_grant_skipped_when_any_member_already_holds_xp(self, db, make, count_rows):
        event = await make.event()
        organizer = await make.organizer(event)
        team, members = await _two_member_team(make, event)
        level = await attendance_service.get_or_create_level(db, event)
        db.add(XP(user_id=members[0].id, level_id=level.id))
        await db.commit()

        await attendance_service.organizer_mark_attendance(db, organizer, team.id, True)

        assert await count_rows(XP, XP.user_id == members[0].id) == 1
        assert await count_rows(XP, XP.user_id == members[1].id) == 0

    @pytest.mark.asyncio
    async def test_unconfirmed_team_rejected(self, db, make):
        event = await make.event()
        organizer = await make.organizer(event)
        team, _ = await _two_member_team(make, event, confirmed=False)

        with pytest.raises(InvariantViolationError) as exc:
            await attendance_service.organizer_mark_attendance(db, organizer, team.id, True)
        assert exc.value.code == ErrorCode.TEAM_NOT_CONFIRMED

    @pytest.mark.asyncio
    async def test_requires_event_organizer(self, db, make):
        event = await make.event()
        stranger = await make.organizer(await make.event())
        team, _ = await _two_member_team(make, event)

        with pytest.raises(ForbiddenError):
            await attendance_service.organizer_mark_attendance(db, stranger, team.id, True)


class TestSoloAttendance:

    @pytest.mark.asyncio
    async def test_solo_grant_is_per_user(self, db, make, count_rows):
        """Unlike the team path, one member's existing XP does not block another's grant."""
        event = await make.event()
        organizer = await make.organizer(event)
        team, members = await _two_member_team(make, event)

        await attendance_service.organizer_mark_attendance_solo(db, organizer, event.id, members[0].id, True)
        updated = await attendance_service.organizer_mark_attendance_solo(
            db, organizer, event.id, members[1].id, True
        )

        assert updated == 1
        assert await count_rows(XP, XP.user_id == members[0].id) == 1
        assert await count_rows(XP, XP.user_id == members[1].id) == 1

    @pytest.mark.asyncio
    async def test_solo_mark_twice_grants_once(self, db, make, count_rows):
        event = await make.event(event_type=EventType.INDIVIDUAL, max_team_size=1)
        organizer = await make.organizer(event)
        participant = await make.user()
        await make.team(event, [participant], confirmed=True)

        await attendance_service.organizer_mark_attendance_solo(db, organizer, event.id, participant.id, True)
        await attendance_service.organizer_mark_attendance_solo(db, organizer, event.id, participant.id, True)

        assert await count_rows(XP, XP.user_id == participant.id) == 1

    @pytest.mark.asyncio
    async def test_solo_unmark_revokes_only_that_user(self, db, make, count_rows):
        event = await make.event()
        organizer = await make.organizer(event)
        team, members = await _two_member_team(make, event)
        await attendance_service.organizer_mark_attendance(db, organizer, team.id, True)

        await attendance_service.organizer_mark_attendance_solo(db, organizer, event.id, members[0].id, False)

        assert await count_rows(XP, XP.user_id == members[0].id) == 0
        assert await count_rows(XP, XP.user_id == members[1].id) == 1

    @pytest.mark.asyncio
    async def test_solo_scoped_to_event(self, db, make):
        event = await make.event()
        other_event = await make.event()
        organizer = await make.organizer(event)
        participant = await make.user()
        await make.team(other_event, [participant], confirmed=True)

        with pytest.raises(NotFoundError):
            await attendance_service.organizer_mark_attendance_solo(db, organizer, event.id, participant.id, True)


class TestUserXP:

    @pytest.mark.asyncio
    async def test_total_points_across_events(self, db, make):
        core = await make.event(category=EventCategory.CORE)
        other = await make.event(category=EventCategory.SPECIAL)
        participant = await make.user()
        core_team = await make.team(core, [participant], confirmed=True)
        other_team = await make.team(other, [participant], confirmed=True)

        await attendance_service.organizer_mark_attendance(db, await make.organizer(core), core_team.id, True)
        await attendance_service.organizer_mark_attendance(db, await make.organizer(other), other_team.id, True)

        assert await attendance_service.get_user_xp(db, participant.id) == 80

    @pytest.mark.asyncio
    async def test_no_points(self, db, make):
        participant = await make.user()
        assert await attendance_service.get_user_xp(db, participant.id) == 0
