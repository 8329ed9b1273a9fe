"""Task ORM model."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, String, Text, func, text as sa_text
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base
from app.db.types import JSONBCompat


class Task(Base):
    __tablename__ = "tasks"
    __table_args__ = (
        Index("ix_tasks_user_id", "user_id"),
        Index("ix_tasks_character_id", "character_id"),
        Index("ix_tasks_completed", "completed"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    character_id = Column(
        UUID(as_uuid=True),
        ForeignKey("characters.id", ondelete="SET NULL"),
        nullable=True,
    )
    title = Column(Text, nullable=False)
    difficulty = Column(String(length=20), nullable=False, default="medium", server_default=sa_text("'medium'"))
    # Stat categories that receive XP when the task is completed.
    stat_categories = Column(JSONBCompat, nullable=False, default=list)
    completed = Column(Boolean, nullable=False, default=False, server_default=sa_text("false"))
    completed_at = Column(DateTime(timezone=True), nullable=True)
    # Column named "metadata" but attribute renamed to avoid Base.metadata collisions.
    metadata_json = Column("metadata", JSONBCompat, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
