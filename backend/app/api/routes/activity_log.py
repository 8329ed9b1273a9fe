"""Activity log endpoints: audit trail and XP grant history."""
from __future__ import annotations

import base64
from datetime import datetime
from time import perf_counter
from typing import Any, Tuple
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy import and_, desc, or_
from sqlalchemy.orm import Session

from app.api.deps import request_id_of
from app.api.schemas.activity_log import ActivityLogDetailResponse, ActivityLogListItem, ActivityLogListResponse
from app.db.deps import get_db
from app.db.models.activity_log import ActivityLog
from app.observability.metrics import log_metric
from app.observability.tracing import trace

router = APIRouter()

ACTION_SUMMARIES = {
    "character_created": "Character created",
    "stat_created": "Stat added",
    "task_completed": "Task completed",
    "journal_entry_recorded": "Journal entry recorded",
}


@router.get("/activity-log", response_model=ActivityLogListResponse, tags=["activity-log"])
def list_activity_log(
    request: Request,
    user_id: UUID = Query(..., description="User ID"),
    limit: int = Query(50, ge=1, le=100),
    cursor: str | None = Query(None),
    action_type: str | None = Query(None, description="Filter by action type, e.g. stat_xp_awarded"),
    db: Session = Depends(get_db),
) -> ActivityLogListResponse:
    request_id = request_id_of(request)
    metadata = {"limit": limit, "cursor": bool(cursor), "action_type": action_type}
    start = perf_counter()
    with trace("activity_log.list", metadata=metadata, user_id=str(user_id), request_id=request_id):
        query = db.query(ActivityLog).filter(ActivityLog.user_id == user_id)
        if action_type:
            query = query.filter(ActivityLog.action_type == action_type)
        if cursor:
            try:
                cursor_created, cursor_id = _decode_cursor(cursor)
            except ValueError:
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid cursor")
            query = query.filter(
                or_(
                    ActivityLog.created_at < cursor_created,
                    and_(ActivityLog.created_at == cursor_created, ActivityLog.id < cursor_id),
                )
            )
        logs = query.order_by(desc(ActivityLog.created_at), desc(ActivityLog.id)).limit(limit + 1).all()

    has_more = len(logs) > limit
    items = [_serialize_item(log) for log in logs[:limit]]
    next_cursor = _encode_cursor(logs[limit - 1]) if has_more else None

    log_metric("activity_log.list.count", len(items), metadata={"user_id": str(user_id)})
    log_metric("activity_log.list.latency_ms", (perf_counter() - start) * 1000, metadata={"user_id": str(user_id)})

    return ActivityLogListResponse(
        user_id=user_id,
        items=items,
        next_cursor=next_cursor,
        request_id=request_id or "",
    )


@router.get("/activity-log/{log_id}", response_model=ActivityLogDetailResponse, tags=["activity-log"])
def get_activity_log(
    log_id: UUID,
    request: Request,
    user_id: UUID = Query(..., description="User ID"),
    db: Session = Depends(get_db),
) -> ActivityLogDetailResponse:
    request_id = request_id_of(request)
    log_entry = db.get(ActivityLog, log_id)
    if not log_entry:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Activity log entry not found")
    if log_entry.user_id != user_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Log does not belong to user")

    payload = _ensure_payload_dict(log_entry.action_payload)
    return ActivityLogDetailResponse(
        id=log_entry.id,
        user_id=log_entry.user_id,
        created_at=log_entry.created_at.isoformat() if log_entry.created_at else "",
        action_type=log_entry.action_type,
        payload=payload,
        summary=_derive_summary(log_entry.action_type, payload),
        request_id=_extract_request_id(payload),
        request_id_header=request_id or "",
    )


def _serialize_item(log: ActivityLog) -> ActivityLogListItem:
    payload = _ensure_payload_dict(log.action_payload)
    return ActivityLogListItem(
        id=log.id,
        created_at=log.created_at.isoformat() if log.created_at else "",
        action_type=log.action_type,
        summary=_derive_summary(log.action_type, payload),
        request_id=_extract_request_id(payload),
    )


def _derive_summary(action_type: str, payload: dict[str, Any]) -> str:
    if action_type in ACTION_SUMMARIES:
        return ACTION_SUMMARIES[action_type]
    category = payload.get("category") or "Stat"
    if action_type == "stat_xp_awarded":
        return f"{category}: +{payload.get('xp', 0)} XP ({payload.get('source_type') or 'manual'})"
    if action_type == "stat_leveled_up":
        return f"{category} reached level {payload.get('new_level')}"
    if action_type == "level_title_assigned":
        return f"{category} titled \"{payload.get('level_title')}\""
    return action_type.replace("_", " ").title()


def _extract_request_id(payload: dict[str, Any]) -> str | None:
    value = payload.get("request_id")
    if isinstance(value, str) and value:
        return value
    return None


def _encode_cursor(log: ActivityLog) -> str | None:
    if not log.created_at:
        return None
    raw = f"{log.created_at.isoformat()}|{log.id}"
    return base64.urlsafe_b64encode(raw.encode("utf-8")).decode("utf-8")


def _decode_cursor(cursor: str) -> Tuple[datetime, UUID]:
    try:
        decoded = base64.urlsafe_b64decode(cursor.encode("utf-8")).decode("utf-8")
        created_str, log_id_str = decoded.split("|", 1)
        return datetime.fromisoformat(created_str), UUID(log_id_str)
    except Exception as exc:
        raise ValueError("invalid cursor") from exc


def _ensure_payload_dict(payload: Any) -> dict[str, Any]:
    if isinstance(payload, dict):
        return payload
    return {}
