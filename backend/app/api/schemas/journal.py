"""Pydantic schemas for journal API."""
from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from app.api.schemas.progression import XpNotification


class JournalEntryRequest(BaseModel):
    user_id: UUID
    character_id: UUID
    text: str = Field(..., min_length=1, max_length=10000)
    stat_categories: List[str] = Field(default_factory=list, max_length=10)
    content_tags: List[str] = Field(default_factory=list, max_length=20)


class JournalSignals(BaseModel):
    word_count: int = 0
    sentiment: Optional[str] = None
    meaningful_tags: List[str] = Field(default_factory=list)
    base_xp: int = 0


class JournalEntryResponse(BaseModel):
    id: UUID
    signals: JournalSignals
    xp_notifications: List[XpNotification]
    request_id: str
