"""Schemas for character and stat endpoints."""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class CharacterCreateRequest(BaseModel):
    user_id: UUID
    name: str = Field(..., min_length=1, max_length=100)
    character_class: Optional[str] = Field(default=None, min_length=1, max_length=50)
    backstory: Optional[str] = Field(default=None, max_length=2000)
    stat_categories: Optional[List[str]] = Field(default=None, max_length=20)


class StatCreateRequest(BaseModel):
    user_id: UUID
    category: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)


class StatProgressPayload(BaseModel):
    current_level_xp: int
    xp_in_current_level: int
    progress_percent: int
    xp_to_next_level: int
    next_level_total_xp: int


class CharacterStatResponse(BaseModel):
    id: UUID
    category: str
    description: Optional[str]
    total_xp: int
    current_xp: int
    current_level: int
    level_title: Optional[str]
    can_level_up: bool
    progress: StatProgressPayload
    updated_at: Optional[datetime] = None


class CharacterResponse(BaseModel):
    id: UUID
    user_id: UUID
    name: str
    character_class: str
    backstory: Optional[str]
    is_active: bool
    stats: List[CharacterStatResponse]
    request_id: str
