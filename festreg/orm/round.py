"""
festreg/orm/round.py
Elimination rounds and the judges assigned to them.
"""
from sqlalchemy import (
    Column, Integer, Boolean, DateTime, ForeignKey, UniqueConstraint,
    Enum as SQLEnum
)
from enum import Enum
from festreg.orm.base import BaseModel


class RoundStatus(str, Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"


class Round(BaseModel):
    """
    A numbered stage of an event. Numbers are contiguous from 1 and only the
    highest-numbered round can be removed.
    """
    __tablename__ = "rounds"
    __table_args__ = (
        UniqueConstraint("event_id", "round_no", name="uq_round_event_round_no"),
    )

    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    round_no = Column(Integer, nullable=False)
    date = Column(DateTime, nullable=True)

    status = Column(SQLEnum(RoundStatus), nullable=False, default=RoundStatus.PENDING)
    select_status = Column(Boolean, nullable=False, default=False)

    @property
    def completed(self) -> bool:
        return self.status == RoundStatus.COMPLETED

    def __repr__(self):
        return f"<Round(event={self.event_id}, round_no={self.round_no}, status={self.status})>"


class Judge(BaseModel):
    __tablename__ = "judges"
    __table_args__ = (
        UniqueConstraint("user_id", "round_id", name="uq_judge_user_round"),
    )

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    round_id = Column(Integer, ForeignKey("rounds.id", ondelete="CASCADE"), nullable=False, index=True)
