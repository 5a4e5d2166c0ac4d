"""
festreg/orm/base.py
Declarative base shared by every festreg table.

Constraint names follow a fixed convention so that the unique constraints the
capacity rules depend on can be recognised in IntegrityError messages.
"""
from datetime import datetime
from sqlalchemy import Column, Integer, DateTime, MetaData
from sqlalchemy.orm import declarative_base

NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

Base = declarative_base(metadata=MetaData(naming_convention=NAMING_CONVENTION))


class BaseModel(Base):
    """Surrogate integer key plus audit timestamps."""
    __abstract__ = True

    id = Column(Integer, primary_key=True, autoincrement=True, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<{type(self).__name__}(id={self.id})>"
