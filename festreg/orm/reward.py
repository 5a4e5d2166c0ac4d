"""
festreg/orm/reward.py
Reward tiers (Level) and grants (XP).

One Level per event, created lazily on the first attendance mark. One XP
row per (user, level).
"""
from sqlalchemy import Column, Integer, ForeignKey, UniqueConstraint
from festreg.orm.base import BaseModel


class Level(BaseModel):
    __tablename__ = "levels"

    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, unique=True)
    point = Column(Integer, nullable=False)


class XP(BaseModel):
    __tablename__ = "xp"
    __table_args__ = (
        UniqueConstraint("user_id", "level_id", name="uq_xp_user_level"),
    )

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    level_id = Column(Integer, ForeignKey("levels.id", ondelete="CASCADE"), nullable=False, index=True)
