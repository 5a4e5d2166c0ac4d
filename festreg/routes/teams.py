"""
festreg/routes/teams.py
Team registration, membership and attendance routes.

Routes only translate HTTP into service calls; every rule and permission
check lives in festreg.services.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from festreg.database import get_db
from festreg.orm.user import User
from festreg.rbac import get_current_identity
from festreg.schemas.team import (
    TeamCreate, MemberRequest, SoloRegistration, OrganizerSoloRegistration,
    AttendanceRequest, SoloAttendanceRequest,
    TeamResponse, TeamDetailResponse, TeamMemberResponse, AttendanceSoloResponse,
)
from festreg.services import attendance_service, team_service

router = APIRouter(prefix="/teams", tags=["Teams"])


# ================= READS =================

@router.get("/event/{event_id}", response_model=List[TeamResponse])
async def list_event_teams(
    event_id: int,
    confirmed_only: bool = False,
    db: AsyncSession = Depends(get_db),
):
    return await team_service.list_event_teams(db, event_id, confirmed_only=confirmed_only)


@router.get("/{team_id}", response_model=TeamDetailResponse)
async def get_team(team_id: int, db: AsyncSession = Depends(get_db)):
    return await team_service.get_team_detail(db, team_id)


# ================= PARTICIPANT =================

@router.post("", response_model=TeamResponse, status_code=status.HTTP_201_CREATED)
async def create_team(
    request: TeamCreate,
    db: AsyncSession = Depends(get_db),
    current_user: Optional[User] = Depends(get_current_identity),
):
    return await team_service.create_team(db, current_user, request.event_id, request.name)


@router.post("/solo", response_model=TeamResponse, status_code=status.HTTP_201_CREATED)
async def register_solo_event(
    request: SoloRegistration,
    db: AsyncSession = Depends(get_db),
    current_user: Optional[User] = Depends(get_current_identity),
):
    return await team_service.register_solo_event(db, current_user, request.event_id)


@router.post("/{team_id}/join", response_model=TeamMemberResponse)
async def join_team(
    team_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: Optional[User] = Depends(get_current_identity),
):
    return await team_service.join_team(db, current_user, team_id)


@router.post("/{team_id}/leave", response_model=TeamMemberResponse)
async def leave_team(
    team_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: Optional[User] = Depends(get_current_identity),
):
    return await team_service.leave_team(db, current_user, team_id)


@router.delete("/{team_id}/members/{user_id}", response_model=TeamMemberResponse)
async def remove_team_member(
    team_id: int,
    user_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: Optional[User] = Depends(get_current_identity),
):
    return await team_service.remove_team_member(db, current_user, team_id, user_id)


@router.post("/{team_id}/confirm", response_model=TeamResponse)
async def confirm_team(
    team_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: Optional[User] = Depends(get_current_identity),
):
    return await team_service.confirm_team(db, current_user, team_id)


@router.delete("/{team_id}", response_model=TeamResponse)
async def delete_team(
    team_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: Optional[User] = Depends(get_current_identity),
):
    return await team_service.delete_team(db, current_user, team_id)


# ================= ORGANIZER =================

@router.post("/organizer", response_model=TeamResponse, status_code=status.HTTP_201_CREATED)
async def organizer_create_team(
    request: TeamCreate,
    db: AsyncSession = Depends(get_db),
    current_user: Optional[User] = Depends(get_current_identity),
):
    return await team_service.organizer_create_team(db, current_user, request.event_id, request.name)


@router.post("/organizer/solo", response_model=TeamResponse, status_code=status.HTTP_201_CREATED)
async def organizer_register_solo(
    request: OrganizerSoloRegistration,
    db: AsyncSession = Depends(get_db),
    current_user: Optional[User] = Depends(get_current_identity),
):
    return await team_service.organizer_register_solo(db, current_user, request.event_id, request.user_id)


@router.post("/organizer/attendance", response_model=AttendanceSoloResponse)
async def organizer_mark_attendance_solo(
    request: SoloAttendanceRequest,
    db: AsyncSession = Depends(get_db),
    current_user: Optional[User] = Depends(get_current_identity),
):
    updated = await attendance_service.organizer_mark_attendance_solo(
        db, current_user, request.event_id, request.user_id, request.attended
    )
    return AttendanceSoloResponse(teams_updated=updated)


@router.post("/{team_id}/organizer/members", response_model=TeamMemberResponse)
async def organizer_add_team_member(
    team_id: int,
    request: MemberRequest,
    db: AsyncSession = Depends(get_db),
    current_user: Optional[User] = Depends(get_current_identity),
):
    return await team_service.organizer_add_team_member(db, current_user, team_id, request.user_id)


@router.delete("/{team_id}/organizer/members/{user_id}", response_model=TeamMemberResponse)
async def organizer_delete_team_member(
    team_id: int,
    user_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: Optional[User] = Depends(get_current_identity),
):
    return await team_service.organizer_delete_team_member(db, current_user, team_id, user_id)


@router.post("/{team_id}/organizer/confirm", response_model=TeamResponse)
async def organizer_confirm_team(
    team_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: Optional[User] = Depends(get_current_identity),
):
    return await team_service.organizer_confirm_team(db, current_user, team_id)


@router.delete("/{team_id}/organizer", response_model=TeamResponse)
async def organizer_delete_team(
    team_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: Optional[User] = Depends(get_current_identity),
):
    return await team_service.organizer_delete_team(db, current_user, team_id)


@router.post("/{team_id}/attendance", response_model=TeamResponse)
async def organizer_mark_attendance(
    team_id: int,
    request: AttendanceRequest,
    db: AsyncSession = Depends(get_db),
    current_user: Optional[User] = Depends(get_current_identity),
):
    return await attendance_service.organizer_mark_attendance(db, current_user, team_id, request.attended)
