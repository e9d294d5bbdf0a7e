"""
Declarative base classes shared by all models.
"""
from sqlalchemy import Column, Integer, DateTime
from sqlalchemy.orm import DeclarativeBase
from costventures.core.utils import utcnow


class Base(DeclarativeBase):
    """Root of the SQLAlchemy model registry."""
    pass


class BaseModel(Base):
    """Abstract model with integer id and audit timestamps."""
    __abstract__ = True

    id = Column(Integer, primary_key=True, autoincrement=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
