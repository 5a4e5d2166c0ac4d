"""
festreg/orm/judging.py
Scoring criteria attached to a round, and the placings awarded per event.
"""
from sqlalchemy import (
    Column, Integer, String, ForeignKey, UniqueConstraint,
    Enum as SQLEnum
)
from enum import Enum
from festreg.orm.base import BaseModel


class CriteriaType(str, Enum):
    NUMBER = "NUMBER"
    TEXT = "TEXT"
    TIME = "TIME"


class WinnerType(str, Enum):
    WINNER = "WINNER"
    RUNNER_UP = "RUNNER_UP"
    SECOND_RUNNER_UP = "SECOND_RUNNER_UP"


class Criteria(BaseModel):
    """A column on a judge's score sheet. Removed with its round."""
    __tablename__ = "criteria"

    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    round_id = Column(Integer, ForeignKey("rounds.id", ondelete="CASCADE"), nullable=False, index=True)
    round_no = Column(Integer, nullable=False)
    name = Column(String(255), nullable=False)
    type = Column(SQLEnum(CriteriaType), nullable=False, default=CriteriaType.NUMBER)

    def __repr__(self):
        return f"<Criteria(id={self.id}, round={self.event_id}/{self.round_no}, name='{self.name}')>"


class Winner(BaseModel):
    """One team per placing per event, one placing per team."""
    __tablename__ = "winners"
    __table_args__ = (
        UniqueConstraint("event_id", "type", name="uq_winner_event_type"),
        UniqueConstraint("event_id", "team_id", name="uq_winner_event_team"),
    )

    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    team_id = Column(Integer, ForeignKey("teams.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(SQLEnum(WinnerType), nullable=False)

    def __repr__(self):
        return f"<Winner(event={self.event_id}, team={self.team_id}, type={self.type})>"
