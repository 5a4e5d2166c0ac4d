"""
festreg/orm/user.py
User and College models.

The user's role is the only authorization signal; the college type drives
the one-core-event rule for non-engineering students.
"""
from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, Enum as SQLEnum
from enum import Enum
from festreg.orm.base import BaseModel


class UserRole(str, Enum):
    """Platform roles. Mutated by organizer / branch-rep / admin actions."""
    USER = "USER"
    PARTICIPANT = "PARTICIPANT"
    BRANCH_REP = "BRANCH_REP"
    ORGANIZER = "ORGANIZER"
    JUDGE = "JUDGE"
    JURY = "JURY"
    ADMIN = "ADMIN"


class CollegeType(str, Enum):
    ENGINEERING = "ENGINEERING"
    OTHER = "OTHER"


class College(BaseModel):
    __tablename__ = "colleges"

    name = Column(String(255), nullable=False, unique=True)
    type = Column(SQLEnum(CollegeType), nullable=False, default=CollegeType.ENGINEERING)

    def __repr__(self):
        return f"<College(id={self.id}, name='{self.name}', type={self.type})>"


class User(BaseModel):
    """
    A platform account.

    Participants register for events through teams; organizers, judges and
    branch reps get their rights from role-scoped join rows (Organizer, Judge,
    BranchRep) in addition to the role itself.
    """
    __tablename__ = "users"

    name = Column(String(200), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    role = Column(SQLEnum(UserRole), nullable=False, default=UserRole.USER, index=True)

    college_id = Column(
        Integer,
        ForeignKey("colleges.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )

    is_active = Column(Boolean, default=True, nullable=False)

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role={self.role})>"
