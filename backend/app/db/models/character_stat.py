"""Character stat ORM model holding per-stat XP progress."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
    text as sa_text,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from app.db.base import Base
from app.services.progression import StatProgress


class CharacterStat(Base):
    __tablename__ = "character_stats"
    __table_args__ = (
        Index("ix_character_stats_character_id", "character_id"),
        UniqueConstraint("character_id", "category", name="uq_character_stats_character_category"),
        CheckConstraint("total_xp >= 0", name="ck_character_stats_total_xp"),
        CheckConstraint("current_xp >= 0", name="ck_character_stats_current_xp"),
        CheckConstraint("current_level >= 1", name="ck_character_stats_current_level"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    character_id = Column(UUID(as_uuid=True), ForeignKey("characters.id", ondelete="CASCADE"), nullable=False)
    category = Column(String(length=100), nullable=False)
    description = Column(Text, nullable=True)
    total_xp = Column(Integer, nullable=False, default=0, server_default=sa_text("0"))
    current_xp = Column(Integer, nullable=False, default=0, server_default=sa_text("0"))
    current_level = Column(Integer, nullable=False, default=1, server_default=sa_text("1"))
    level_title = Column(String(length=100), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    character = relationship("Character", back_populates="stats")

    def snapshot(self) -> StatProgress:
        return StatProgress(
            total_xp=self.total_xp or 0,
            current_xp=self.current_xp or 0,
            current_level=self.current_level or 1,
            level_title=self.level_title,
        )
