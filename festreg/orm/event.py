"""
festreg/orm/event.py
Event, Branch and the role-scoped join rows that hang off them.
"""
from sqlalchemy import (
    Column, Integer, String, Boolean, Text, ForeignKey, UniqueConstraint,
    Enum as SQLEnum
)
from enum import Enum
from festreg.orm.base import BaseModel


class EventCategory(str, Enum):
    """Only CORE is significant to registration rules."""
    CORE = "CORE"
    TECHNICAL = "TECHNICAL"
    NON_TECHNICAL = "NON_TECHNICAL"
    SPECIAL = "SPECIAL"


class EventType(str, Enum):
    INDIVIDUAL = "INDIVIDUAL"
    INDIVIDUAL_MULTIPLE_ENTRY = "INDIVIDUAL_MULTIPLE_ENTRY"
    TEAM = "TEAM"
    TEAM_MULTIPLE_ENTRY = "TEAM_MULTIPLE_ENTRY"

    @property
    def is_individual(self) -> bool:
        return self in (EventType.INDIVIDUAL, EventType.INDIVIDUAL_MULTIPLE_ENTRY)

    @property
    def is_team(self) -> bool:
        return self in (EventType.TEAM, EventType.TEAM_MULTIPLE_ENTRY)

    @property
    def single_entry(self) -> bool:
        """A user may hold at most one registration in single-entry events."""
        return self in (EventType.TEAM, EventType.INDIVIDUAL)


class Branch(BaseModel):
    __tablename__ = "branches"

    name = Column(String(255), nullable=False, unique=True)


class BranchRep(BaseModel):
    """Links a user to the branch they represent. One branch per rep."""
    __tablename__ = "branch_reps"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)
    branch_id = Column(Integer, ForeignKey("branches.id", ondelete="CASCADE"), nullable=False, index=True)


class Event(BaseModel):
    """
    A registrable event owned by a branch.

    Capacity:
    - min_team_size / max_team_size bound the membership of every team
    - max_teams bounds the number of CONFIRMED teams (None or 0 = unlimited)

    enforce_college_homogeneity replaces the hardcoded list of exempt event
    ids: when False, members of a team may come from different colleges.
    """
    __tablename__ = "events"

    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    venue = Column(String(255), nullable=True)

    category = Column(SQLEnum(EventCategory), nullable=False, default=EventCategory.TECHNICAL)
    event_type = Column(SQLEnum(EventType), nullable=False, default=EventType.INDIVIDUAL)

    min_team_size = Column(Integer, nullable=False, default=1)
    max_team_size = Column(Integer, nullable=False, default=1)
    max_teams = Column(Integer, nullable=True)
    fees = Column(Integer, nullable=False, default=0)

    published = Column(Boolean, nullable=False, default=False)
    enforce_college_homogeneity = Column(Boolean, nullable=False, default=True)

    branch_id = Column(Integer, ForeignKey("branches.id", ondelete="CASCADE"), nullable=False, index=True)

    @property
    def is_paid(self) -> bool:
        return (self.fees or 0) > 0

    @property
    def has_team_limit(self) -> bool:
        return bool(self.max_teams and self.max_teams > 0)

    def __repr__(self):
        return f"<Event(id={self.id}, name='{self.name}', type={self.event_type})>"


class Organizer(BaseModel):
    __tablename__ = "organizers"
    __table_args__ = (
        UniqueConstraint("user_id", "event_id", name="uq_organizer_user_event"),
    )

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
