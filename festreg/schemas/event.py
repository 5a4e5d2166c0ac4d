"""
Event administration API Schemas (Pydantic)
"""
from pydantic import BaseModel, Field
from typing import Optional

from festreg.orm.event import EventCategory, EventType


class EventCreate(BaseModel):
    """Request schema for creating an event; the branch comes from the caller."""
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    venue: Optional[str] = None
    category: EventCategory = EventCategory.TECHNICAL
    event_type: EventType = EventType.INDIVIDUAL
    min_team_size: int = Field(default=1, ge=1)
    max_team_size: int = Field(default=1, ge=1)
    max_teams: Optional[int] = Field(default=None, ge=0)
    fees: int = Field(default=0, ge=0)
    enforce_college_homogeneity: bool = True


class EventUpdate(BaseModel):
    """Only the fields that are set are applied."""
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    venue: Optional[str] = None
    category: Optional[EventCategory] = None
    event_type: Optional[EventType] = None
    min_team_size: Optional[int] = Field(default=None, ge=1)
    max_team_size: Optional[int] = Field(default=None, ge=1)
    max_teams: Optional[int] = Field(default=None, ge=0)
    fees: Optional[int] = Field(default=None, ge=0)
    enforce_college_homogeneity: Optional[bool] = None


class AppointmentRequest(BaseModel):
    user_id: int


class EventResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    venue: Optional[str] = None
    category: EventCategory
    event_type: EventType
    min_team_size: int
    max_team_size: int
    max_teams: Optional[int] = None
    fees: int
    published: bool
    enforce_college_homogeneity: bool
    branch_id: int

    class Config:
        from_attributes = True


class OrganizerResponse(BaseModel):
    id: int
    user_id: int
    event_id: int

    class Config:
        from_attributes = True


class BranchRepResponse(BaseModel):
    id: int
    user_id: int
    branch_id: int

    class Config:
        from_attributes = True
