"""
festreg/routes/events.py
Event administration routes.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from festreg.database import get_db
from festreg.orm.user import User
from festreg.rbac import get_current_identity
from festreg.schemas.event import EventCreate, EventUpdate, AppointmentRequest, EventResponse, OrganizerResponse
from festreg.services import event_service
from festreg.services.store import get_event

router = APIRouter(prefix="/events", tags=["Events"])


@router.get("", response_model=List[EventResponse])
async def list_events(db: AsyncSession = Depends(get_db)):
    """Published events."""
    return await event_service.list_events(db)


@router.get("/{event_id}", response_model=EventResponse)
async def read_event(event_id: int, db: AsyncSession = Depends(get_db)):
    return await get_event(db, event_id)


@router.post("", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event(
    request: EventCreate,
    db: AsyncSession = Depends(get_db),
    current_user: Optional[User] = Depends(get_current_identity),
):
    return await event_service.create_event(db, current_user, request.model_dump())


@router.patch("/{event_id}", response_model=EventResponse)
async def update_event(
    event_id: int,
    request: EventUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: Optional[User] = Depends(get_current_identity),
):
    return await event_service.update_event(db, current_user, event_id, request.model_dump(exclude_unset=True))


@router.delete("/{event_id}", response_model=EventResponse)
async def delete_event(
    event_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: Optional[User] = Depends(get_current_identity),
):
    return await event_service.delete_event(db, current_user, event_id)


@router.post("/{event_id}/publish", response_model=EventResponse)
async def publish_event(
    event_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: Optional[User] = Depends(get_current_identity),
):
    return await event_service.publish_event(db, current_user, event_id)


@router.post("/{event_id}/organizers", response_model=OrganizerResponse)
async def add_organizer(
    event_id: int,
    request: AppointmentRequest,
    db: AsyncSession = Depends(get_db),
    current_user: Optional[User] = Depends(get_current_identity),
):
    return await event_service.add_organizer(db, current_user, event_id, request.user_id)


@router.delete("/{event_id}/organizers/{user_id}", response_model=OrganizerResponse)
async def remove_organizer(
    event_id: int,
    user_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: Optional[User] = Depends(get_current_identity),
):
    return await event_service.remove_organizer(db, current_user, event_id, user_id)
