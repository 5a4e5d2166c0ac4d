"""
Eligibility Evaluator Test Suite

One CORE event per non-engineering student; engineering students and
non-core events are unrestricted.
"""
import pytest

from festreg.errors import InvariantViolationError, ErrorCode
from festreg.orm.event import EventCategory, EventType
from festreg.orm.user import CollegeType
from festreg.services import team_service
from festreg.services.eligibility import can_register, ensure_eligible


@pytest.mark.asyncio
async def test_non_core_event_always_allowed(db, make):
    college = await make.college(CollegeType.OTHER)
    user = await make.user(college=college)
    core = await make.event(category=EventCategory.CORE)
    await make.team(core, [user])

    assert await can_register(db, user.id, CollegeType.OTHER, EventCategory.TECHNICAL) is True


@pytest.mark.asyncio
async def test_first_core_event_allowed_for_other_college(db, make):
    user = await make.user(college=await make.college(CollegeType.OTHER))

    assert await can_register(db, user.id, CollegeType.OTHER, EventCategory.CORE) is True


@pytest.mark.asyncio
async def test_second_core_event_rejected_for_other_college(db, make):
    user = await make.user(college=await make.college(CollegeType.OTHER))
    first = await make.event(category=EventCategory.CORE)
    await make.team(first, [user])

    assert await can_register(db, user.id, CollegeType.OTHER, EventCategory.CORE) is False


@pytest.mark.asyncio
async def test_engineering_student_exempt(db, make):
    user = await make.user(college=await make.college(CollegeType.ENGINEERING))
    first = await make.event(category=EventCategory.CORE)
    second = await make.event(category=EventCategory.CORE)
    await make.team(first, [user])

    await ensure_eligible(db, user, second)


@pytest.mark.asyncio
async def test_ensure_eligible_raises_not_eligible(db, make):
    user = await make.user(college=await make.college(CollegeType.OTHER))
    first = await make.event(category=EventCategory.CORE)
    second = await make.event(category=EventCategory.CORE)
    await make.team(first, [user])

    with pytest.raises(InvariantViolationError) as exc:
        await ensure_eligible(db, user, second)
    assert exc.value.code == ErrorCode.NOT_ELIGIBLE
    assert exc.value.message == "Not eligible to register"


@pytest.mark.asyncio
async def test_second_core_registration_fails_through_services(db, make):
    """Non-engineering user registered for CORE E1 cannot create a team or register solo for CORE E2."""
    user = await make.user(college=await make.college(CollegeType.OTHER))
    e1 = await make.event(category=EventCategory.CORE, event_type=EventType.TEAM)
    e2_team = await make.event(category=EventCategory.CORE, event_type=EventType.TEAM)
    e2_solo = await make.event(category=EventCategory.CORE, event_type=EventType.INDIVIDUAL)

    await team_service.create_team(db, user, e1.id, "First")

    with pytest.raises(InvariantViolationError) as exc:
        await team_service.create_team(db, user, e2_team.id, "Second")
    assert exc.value.code == ErrorCode.NOT_ELIGIBLE

    with pytest.raises(InvariantViolationError) as exc:
        await team_service.register_solo_event(db, user, e2_solo.id)
    assert exc.value.code == ErrorCode.NOT_ELIGIBLE


@pytest.mark.asyncio
async def test_user_without_college_is_not_restricted(db, make):
    user = await make.user(college=None)
    first = await make.event(category=EventCategory.CORE)
    await make.team(first, [user])

    assert await can_register(db, user.id, None, EventCategory.CORE) is True
