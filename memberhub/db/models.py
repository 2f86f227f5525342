"""SQLAlchemy ORM models."""
from sqlalchemy import Column, DateTime, String, Text
from sqlalchemy.sql import func

from memberhub.infrastructure.database.base import Base


class Collection(Base):
    """One row per named collection; ``data`` holds the serialized record sequence."""

    __tablename__ = "collections"

    name = Column(String(100), primary_key=True)
    data = Column(Text, nullable=False, default="[]")
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
