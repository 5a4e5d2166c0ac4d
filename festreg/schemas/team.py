"""
Team API Schemas (Pydantic)
"""
from pydantic import BaseModel, Field, validator
from typing import Optional, List

from festreg.orm.team import TeamStatus


class TeamCreate(BaseModel):
    """Request schema for creating a team."""
    event_id: int
    name: str = Field(..., min_length=1, max_length=255)

    @validator('name')
    def strip_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Team name cannot be blank")
        return v


class MemberRequest(BaseModel):
    user_id: int


class SoloRegistration(BaseModel):
    event_id: int


class OrganizerSoloRegistration(BaseModel):
    event_id: int
    user_id: int


class AttendanceRequest(BaseModel):
    attended: bool


class SoloAttendanceRequest(BaseModel):
    event_id: int
    user_id: int
    attended: bool


class TeamMemberResponse(BaseModel):
    user_id: int
    team_id: int
    slot: int

    class Config:
        from_attributes = True


class TeamResponse(BaseModel):
    """Response schema for team data."""
    id: int
    name: str
    event_id: int
    leader_id: Optional[int] = None
    status: TeamStatus
    confirmed: bool
    attended: bool
    round_no: int

    class Config:
        from_attributes = True


class TeamDetailResponse(TeamResponse):
    members: List[TeamMemberResponse] = []


class AttendanceSoloResponse(BaseModel):
    teams_updated: int


class UserXPResponse(BaseModel):
    user_id: int
    points: int
