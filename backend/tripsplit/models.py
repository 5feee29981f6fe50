"""SQLAlchemy models."""
from sqlalchemy import Column, DateTime, String, Text
from sqlalchemy.sql import func

from tripsplit.database import Base


class GroupDocument(Base):
    """One group, stored whole as its serialized JSON document."""

    __tablename__ = "groups"

    id = Column(String(64), primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    document = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
