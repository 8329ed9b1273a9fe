"""Schemas for activity log endpoints."""
from __future__ import annotations

from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel


class ActivityLogListItem(BaseModel):
    id: UUID
    created_at: str
    action_type: str
    summary: str
    request_id: Optional[str] = None


class ActivityLogListResponse(BaseModel):
    user_id: UUID
    items: List[ActivityLogListItem]
    next_cursor: Optional[str]
    request_id: str


class ActivityLogDetailResponse(BaseModel):
    id: UUID
    user_id: UUID
    created_at: str
    action_type: str
    payload: Dict[str, Any]
    summary: str
    request_id: Optional[str] = None
    request_id_header: str
