"""Schemas for task endpoints."""
from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from app.api.schemas.progression import XpNotification
from app.services.progression import MAX_XP_AWARD

Difficulty = Literal["easy", "medium", "hard", "extreme"]
CompletionQuality = Literal["poor", "good", "excellent"]


class TaskCreateRequest(BaseModel):
    user_id: UUID
    character_id: UUID
    title: str = Field(..., min_length=1, max_length=500)
    difficulty: Difficulty = "medium"
    stat_categories: List[str] = Field(default_factory=list, max_length=10)


class TaskSummary(BaseModel):
    id: UUID
    character_id: Optional[UUID]
    title: str
    difficulty: str
    stat_categories: List[str]
    completed: bool
    completed_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime


class TaskCompleteRequest(BaseModel):
    user_id: UUID
    stat_awards: Optional[Dict[str, int]] = None
    quality: CompletionQuality = "good"
    feedback: Optional[str] = Field(default=None, max_length=2000)

    @field_validator("stat_awards")
    @classmethod
    def _bounded_awards(cls, value: Optional[Dict[str, int]]) -> Optional[Dict[str, int]]:
        if value is None:
            return value
        for category, xp in value.items():
            if not 0 <= xp <= MAX_XP_AWARD:
                raise ValueError(f"XP for {category} must be between 0 and {MAX_XP_AWARD}")
        return value


class TaskCompleteResponse(BaseModel):
    task: TaskSummary
    xp_notifications: List[XpNotification]
    request_id: str
