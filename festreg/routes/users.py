"""
festreg/routes/users.py
User reward totals and branch representative appointments.
"""
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from festreg.database import get_db
from festreg.orm.user import User
from festreg.rbac import get_current_identity
from festreg.schemas.event import AppointmentRequest, BranchRepResponse
from festreg.schemas.team import UserXPResponse
from festreg.services import attendance_service, event_service

router = APIRouter(tags=["Users"])


@router.get("/users/{user_id}/xp", response_model=UserXPResponse)
async def get_user_xp(user_id: int, db: AsyncSession = Depends(get_db)):
    points = await attendance_service.get_user_xp(db, user_id)
    return UserXPResponse(user_id=user_id, points=points)


@router.post("/branches/{branch_id}/reps", response_model=BranchRepResponse)
async def add_branch_rep(
    branch_id: int,
    request: AppointmentRequest,
    db: AsyncSession = Depends(get_db),
    current_user: Optional[User] = Depends(get_current_identity),
):
    return await event_service.add_branch_rep(db, current_user, branch_id, request.user_id)


@router.delete("/branches/reps/{user_id}", response_model=BranchRepResponse)
async def remove_branch_rep(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: Optional[User] = Depends(get_current_identity),
):
    return await event_service.remove_branch_rep(db, current_user, user_id)
