"""
festreg/routes/rounds.py
Round progression routes: organizers manage rounds and judges, judges run them.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from festreg.database import get_db
from festreg.orm.user import User
from festreg.rbac import get_current_identity
from festreg.schemas.round import RoundCreate, PromotionRequest, JudgeRequest, RoundResponse, JudgeResponse
from festreg.schemas.team import TeamResponse
from festreg.services import event_service, round_service

router = APIRouter(tags=["Rounds"])


@router.get("/events/{event_id}/rounds", response_model=List[RoundResponse])
async def list_rounds(event_id: int, db: AsyncSession = Depends(get_db)):
    return await round_service.list_rounds(db, event_id)


@router.post("/events/{event_id}/rounds", response_model=RoundResponse, status_code=status.HTTP_201_CREATED)
async def create_round(
    event_id: int,
    request: RoundCreate,
    db: AsyncSession = Depends(get_db),
    current_user: Optional[User] = Depends(get_current_identity),
):
    return await round_service.create_round(db, current_user, event_id, request.date)


@router.delete("/events/{event_id}/rounds", response_model=RoundResponse)
async def delete_round(
    event_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: Optional[User] = Depends(get_current_identity),
):
    return await round_service.delete_round(db, current_user, event_id)


@router.post("/events/{event_id}/rounds/{round_no}/complete", response_model=RoundResponse)
async def complete_round(
    event_id: int,
    round_no: int,
    db: AsyncSession = Depends(get_db),
    current_user: Optional[User] = Depends(get_current_identity),
):
    return await round_service.complete_round(db, current_user, event_id, round_no)


@router.post("/events/{event_id}/rounds/{round_no}/select-status", response_model=RoundResponse)
async def change_select_status(
    event_id: int,
    round_no: int,
    db: AsyncSession = Depends(get_db),
    current_user: Optional[User] = Depends(get_current_identity),
):
    return await round_service.change_select_status(db, current_user, event_id, round_no)


@router.post(
    "/events/{event_id}/rounds/{round_no}/judges", response_model=JudgeResponse, status_code=status.HTTP_201_CREATED
)
async def add_judge(
    event_id: int,
    round_no: int,
    request: JudgeRequest,
    db: AsyncSession = Depends(get_db),
    current_user: Optional[User] = Depends(get_current_identity),
):
    return await event_service.add_judge(db, current_user, event_id, round_no, request.user_id)


@router.delete("/events/{event_id}/rounds/{round_no}/judges/{user_id}", response_model=JudgeResponse)
async def remove_judge(
    event_id: int,
    round_no: int,
    user_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: Optional[User] = Depends(get_current_identity),
):
    return await event_service.remove_judge(db, current_user, event_id, round_no, user_id)


@router.post("/rounds/promote", response_model=TeamResponse)
async def promote_to_next_round(
    request: PromotionRequest,
    db: AsyncSession = Depends(get_db),
    current_user: Optional[User] = Depends(get_current_identity),
):
    return await round_service.promote_to_next_round(
        db, current_user, request.team_id, request.round_no, request.selected
    )
