"""
festreg/orm/team.py
Team and TeamMember models.

A team is the unit of registration, including for solo events (one member).
Capacity rules are mirrored by unique constraints so that two writers that
pass the application-level check with the same snapshot collide in the store:

- TeamMember.slot            unique per team, 1..event.max_team_size
- TeamMember.exclusive_event_id  unique per user (single-entry events only)
- Team.confirmed_slot        unique per event, 1..event.max_teams
"""
from sqlalchemy import (
    Column, Integer, String, Boolean, ForeignKey, UniqueConstraint,
    Enum as SQLEnum
)
from sqlalchemy.orm import relationship
from enum import Enum as PyEnum
from festreg.orm.base import BaseModel


class TeamStatus(str, PyEnum):
    """Team lifecycle. A deleted team has no row."""
    OPEN = "OPEN"
    CONFIRMED = "CONFIRMED"


class Team(BaseModel):
    __tablename__ = "teams"
    __table_args__ = (
        UniqueConstraint("name", "event_id", name="uq_team_name_event"),
        UniqueConstraint("event_id", "confirmed_slot", name="uq_team_event_confirmed_slot"),
    )

    name = Column(String(255), nullable=False)
    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    leader_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)

    status = Column(SQLEnum(TeamStatus), nullable=False, default=TeamStatus.OPEN)
    attended = Column(Boolean, nullable=False, default=False)
    round_no = Column(Integer, nullable=False, default=1)
    confirmed_slot = Column(Integer, nullable=True)

    members = relationship(
        "TeamMember",
        viewonly=True,
        lazy="selectin",
        order_by="TeamMember.slot",
    )

    @property
    def confirmed(self) -> bool:
        return self.status == TeamStatus.CONFIRMED

    def __repr__(self):
        return f"<Team(id={self.id}, name='{self.name}', event={self.event_id}, status={self.status})>"


class TeamMember(BaseModel):
    __tablename__ = "team_members"
    __table_args__ = (
        UniqueConstraint("user_id", "team_id", name="uq_team_member_user_team"),
        UniqueConstraint("team_id", "slot", name="uq_team_member_slot"),
        UniqueConstraint("user_id", "exclusive_event_id", name="uq_team_member_user_exclusive_event"),
    )

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    team_id = Column(Integer, ForeignKey("teams.id", ondelete="CASCADE"), nullable=False, index=True)
    slot = Column(Integer, nullable=False)
    exclusive_event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=True)

    def __repr__(self):
        return f"<TeamMember(user={self.user_id}, team={self.team_id}, slot={self.slot})>"
