"""Schemas for XP awards and level-up endpoints."""
from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from app.services.progression import MAX_XP_AWARD


class LevelStepPayload(BaseModel):
    level: int
    xp_required: int


class StatXpAwardRequest(BaseModel):
    user_id: UUID
    xp: int = Field(..., ge=0, le=MAX_XP_AWARD)
    reason: Optional[str] = Field(default=None, max_length=500)


class XpNotification(BaseModel):
    stat_id: UUID
    stat_category: str
    xp_awarded: int
    new_total_xp: int
    new_current_xp: int
    new_level: int
    leveled_up: bool
    levels_gained: int
    level_title: Optional[str] = None


class StatXpAwardResponse(BaseModel):
    notification: XpNotification
    request_id: str


class LevelUpRequest(BaseModel):
    user_id: UUID
    stat_id: UUID


class LevelUpAllRequest(BaseModel):
    user_id: UUID


class LevelUpResult(BaseModel):
    stat_id: UUID
    category: str
    old_level: int
    new_level: int
    levels_gained: int
    level_progression: List[LevelStepPayload]
    total_xp: int
    level_title: Optional[str] = None


class LevelUpResponse(BaseModel):
    level_up_result: LevelUpResult
    request_id: str


class LevelUpAllResponse(BaseModel):
    level_up_results: List[LevelUpResult]
    message: str
    request_id: str


class LevelUpOpportunity(BaseModel):
    stat_id: UUID
    category: str
    current_level: int
    new_level: int
    total_xp: int
    levels_gained: int


class LevelUpOpportunitiesResponse(BaseModel):
    character_id: UUID
    opportunities: List[LevelUpOpportunity]
    request_id: str


class LevelRequirementPayload(BaseModel):
    level: int
    total_xp: int
    xp_to_reach: int


class LevelRequirementsResponse(BaseModel):
    levels: List[LevelRequirementPayload]
