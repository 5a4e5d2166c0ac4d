"""
festreg/orm/__init__.py
ORM models package. Importing it registers every table on Base.metadata.
"""
from .base import Base, BaseModel
from .user import User, UserRole, College, CollegeType
from .event import Event, EventCategory, EventType, Branch, BranchRep, Organizer
from .team import Team, TeamMember, TeamStatus
from .round import Round, RoundStatus, Judge
from .reward import Level, XP
from .judging import Criteria, CriteriaType, Winner, WinnerType
