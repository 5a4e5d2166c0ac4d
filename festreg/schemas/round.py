"""
Round API Schemas (Pydantic)
"""
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

from festreg.orm.round import RoundStatus
from festreg.orm.judging import CriteriaType, WinnerType


class RoundCreate(BaseModel):
    date: Optional[datetime] = None


class PromotionRequest(BaseModel):
    """Move a team across the boundary after `round_no`."""
    team_id: int
    round_no: int = Field(..., description="Round the judge is evaluating")
    selected: bool


class JudgeRequest(BaseModel):
    user_id: int


class RoundResponse(BaseModel):
    id: int
    event_id: int
    round_no: int
    date: Optional[datetime] = None
    status: RoundStatus
    completed: bool
    select_status: bool

    class Config:
        from_attributes = True


class JudgeResponse(BaseModel):
    id: int
    user_id: int
    round_id: int

    class Config:
        from_attributes = True


class CriteriaCreate(BaseModel):
    """Both fields optional: the name defaults to "Criteria N", the type to NUMBER."""
    name: Optional[str] = Field(None, max_length=255)
    type: Optional[CriteriaType] = None


class CriteriaResponse(BaseModel):
    id: int
    event_id: int
    round_no: int
    name: str
    type: CriteriaType

    class Config:
        from_attributes = True


class WinnerCreate(BaseModel):
    team_id: int
    type: WinnerType


class WinnerResponse(BaseModel):
    id: int
    event_id: int
    team_id: int
    type: WinnerType

    class Config:
        from_attributes = True
