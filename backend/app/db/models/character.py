"""Character ORM model."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, String, Text, func, text as sa_text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from app.db.base import Base


class Character(Base):
    __tablename__ = "characters"
    __table_args__ = (Index("ix_characters_user_id", "user_id"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(length=100), nullable=False)
    # "class" is reserved in Python, hence the attribute name.
    character_class = Column("class", String(length=50), nullable=False)
    backstory = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True, server_default=sa_text("true"))
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    user = relationship("User", back_populates="characters")
    stats = relationship(
        "CharacterStat",
        back_populates="character",
        order_by="CharacterStat.category",
        passive_deletes=True,
    )
