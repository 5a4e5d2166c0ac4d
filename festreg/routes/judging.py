"""
festreg/routes/judging.py
Score-sheet criteria per round and event winners.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from festreg.database import get_db
from festreg.orm.user import User
from festreg.rbac import get_current_identity
from festreg.schemas.round import CriteriaCreate, CriteriaResponse, WinnerCreate, WinnerResponse
from festreg.services import judging_service

router = APIRouter(tags=["Judging"])


# ================= CRITERIA =================

@router.get("/events/{event_id}/rounds/{round_no}/criteria", response_model=List[CriteriaResponse])
async def list_criteria(event_id: int, round_no: int, db: AsyncSession = Depends(get_db)):
    return await judging_service.list_criteria(db, event_id, round_no)


@router.post(
    "/events/{event_id}/rounds/{round_no}/criteria",
    response_model=CriteriaResponse, status_code=status.HTTP_201_CREATED
)
async def create_criteria(
    event_id: int,
    round_no: int,
    request: CriteriaCreate,
    db: AsyncSession = Depends(get_db),
    current_user: Optional[User] = Depends(get_current_identity),
):
    return await judging_service.create_criteria(
        db, current_user, event_id, round_no, name=request.name, type=request.type
    )


@router.delete("/events/{event_id}/rounds/{round_no}/criteria/{criteria_id}", response_model=CriteriaResponse)
async def delete_criteria(
    event_id: int,
    round_no: int,
    criteria_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: Optional[User] = Depends(get_current_identity),
):
    return await judging_service.delete_criteria(db, current_user, event_id, round_no, criteria_id)


# ================= WINNERS =================

@router.get("/winners", response_model=List[WinnerResponse])
async def all_winners(
    db: AsyncSession = Depends(get_db),
    current_user: Optional[User] = Depends(get_current_identity),
):
    return await judging_service.all_winners(db, current_user)


@router.get("/events/{event_id}/winners", response_model=List[WinnerResponse])
async def winners_by_event(
    event_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: Optional[User] = Depends(get_current_identity),
):
    return await judging_service.winners_by_event(db, current_user, event_id)


@router.post("/winners", response_model=WinnerResponse, status_code=status.HTTP_201_CREATED)
async def create_winner(
    request: WinnerCreate,
    db: AsyncSession = Depends(get_db),
    current_user: Optional[User] = Depends(get_current_identity),
):
    return await judging_service.create_winner(db, current_user, request.team_id, request.type)


@router.delete("/winners/{winner_id}", response_model=WinnerResponse)
async def delete_winner(
    winner_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: Optional[User] = Depends(get_current_identity),
):
    return await judging_service.delete_winner(db, current_user, winner_id)
