"""Task API routes."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy import desc
from sqlalchemy.orm import Session

from app.api.deps import load_owned_character, request_id_of
from app.api.schemas.task import TaskCompleteRequest, TaskCompleteResponse, TaskCreateRequest, TaskSummary
from app.core.config import settings
from app.db.deps import get_db
from app.db.models.activity_log import ActivityLog
from app.db.models.task import Task
from app.observability.metrics import log_metric
from app.observability.tracing import annotate, trace
from app.services import character_service, stat_service, task_service
from app.services.level_titles.base import LevelTitleGenerator
from app.services.level_titles.factory import get_level_title_generator
from app.services.progression import ProgressionError, calculate_stat_xp_award

router = APIRouter()


@router.post("/tasks", response_model=TaskSummary, status_code=status.HTTP_201_CREATED, tags=["tasks"])
def create_task(
    payload: TaskCreateRequest,
    http_request: Request,
    db: Session = Depends(get_db),
) -> TaskSummary:
    request_id = request_id_of(http_request)
    load_owned_character(db, payload.character_id, payload.user_id)
    known = {stat.category for stat in character_service.get_character_stats(db, payload.character_id)}
    categories = list(dict.fromkeys(category.strip() for category in payload.stat_categories))
    unknown = [category for category in categories if category not in known]
    if unknown:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid stat category: {unknown[0]}. Must match existing character stats.",
        )

    task = Task(
        user_id=payload.user_id,
        character_id=payload.character_id,
        title=payload.title.strip(),
        difficulty=payload.difficulty,
        stat_categories=categories,
        completed=False,
        metadata_json={"source": "manual", "request_id": request_id},
    )
    db.add(task)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(task)
    log_metric("task.create.success", 1, metadata={"user_id": str(payload.user_id)})
    return _serialize_task(task)


@router.get("/tasks", response_model=List[TaskSummary], tags=["tasks"])
def list_tasks(
    http_request: Request,
    user_id: UUID = Query(..., description="User ID owning the tasks"),
    status: str = Query("active", pattern="^(active|completed|all)$"),
    character_id: Optional[UUID] = Query(default=None),
    db: Session = Depends(get_db),
) -> List[TaskSummary]:
    """List tasks for a user, newest first."""
    request_id = request_id_of(http_request)
    with trace(
        "task.list",
        metadata={"route": "/tasks", "status": status},
        user_id=str(user_id),
        request_id=request_id,
    ):
        query = db.query(Task).filter(Task.user_id == user_id)
        if character_id:
            query = query.filter(Task.character_id == character_id)
        if status == "active":
            query = query.filter(Task.completed.is_(False))
        elif status == "completed":
            query = query.filter(Task.completed.is_(True))
        tasks = query.order_by(desc(Task.created_at)).all()

    log_metric("task.list.count", len(tasks), metadata={"user_id": str(user_id), "status": status})
    return [_serialize_task(task) for task in tasks]


@router.post("/tasks/{task_id}/complete", response_model=TaskCompleteResponse, tags=["tasks"])
async def complete_task(
    task_id: UUID,
    payload: TaskCompleteRequest,
    http_request: Request,
    db: Session = Depends(get_db),
    title_generator: LevelTitleGenerator = Depends(get_level_title_generator),
) -> TaskCompleteResponse:
    """Complete a task and award XP to each of its stats independently."""
    task = task_service.lock_task(db, task_id)
    if not task:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Task not found")
    if task.user_id != payload.user_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Task does not belong to user")
    if task.completed:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Task is already completed")
    if not task.character_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Task is not linked to a character")

    request_id = request_id_of(http_request)
    character = load_owned_character(db, task.character_id, payload.user_id)
    stats_by_category = {stat.category: stat for stat in character_service.get_character_stats(db, character.id)}

    try:
        awards = _resolve_awards(task, payload)
    except ProgressionError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    for category in awards:
        if category not in stats_by_category:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Invalid stat category: {category}. Must match existing character stats.",
            )

    metadata: Dict[str, Any] = {
        "route": f"/tasks/{task_id}/complete",
        "task_id": str(task_id),
        "award_count": len(awards),
        "total_xp": sum(awards.values()),
    }
    start_time = datetime.now(timezone.utc)
    with trace("task.complete", metadata=metadata, user_id=str(payload.user_id), request_id=request_id) as span:
        if not task_service.claim_task_completion(db, task, datetime.now(timezone.utc)):
            db.rollback()
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Task is already completed")
        try:
            results = [
                stat_service.stage_xp_award(
                    db,
                    stats_by_category[category],
                    xp,
                    user_id=payload.user_id,
                    source_type="task",
                    source_id=task.id,
                    request_id=request_id,
                    reason=f"Completed task: {task.title}"[:500],
                )
                for category, xp in awards.items()
            ]
        except ProgressionError as exc:
            db.rollback()
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

        task_metadata = dict(task.metadata_json or {})
        if payload.feedback:
            task_metadata["feedback"] = payload.feedback.strip()
        task_metadata["quality"] = payload.quality
        task.metadata_json = task_metadata
        db.add(task)
        db.add(
            ActivityLog(
                user_id=payload.user_id,
                action_type="task_completed",
                action_payload={
                    "task_id": str(task.id),
                    "character_id": str(character.id),
                    "stat_awards": awards,
                    "request_id": request_id,
                },
                reason="Task completed",
            )
        )
        stat_service.commit(db)
        annotate(span, levels_gained=sum(result.outcome.levels_gained for result in results))

    await stat_service.attach_level_titles(
        db,
        results,
        character,
        title_generator,
        config=settings,
        request_id=request_id,
    )

    latency_ms = (datetime.now(timezone.utc) - start_time).total_seconds() * 1000
    log_metric("task.complete.success", 1, metadata={"user_id": str(payload.user_id), "task_id": str(task_id)})
    log_metric(
        "task.complete.level_ups",
        sum(1 for result in results if result.outcome.leveled_up),
        metadata={"task_id": str(task_id)},
    )
    log_metric("task.complete.latency_ms", latency_ms, metadata={"task_id": str(task_id)})

    db.refresh(task)
    return TaskCompleteResponse(
        task=_serialize_task(task),
        xp_notifications=[stat_service.to_notification(result) for result in results],
        request_id=request_id or "",
    )


def _resolve_awards(task: Task, payload: TaskCompleteRequest) -> Dict[str, int]:
    """Explicit per-stat awards win; otherwise every target stat gets the difficulty XP."""
    if payload.stat_awards is not None:
        return {category.strip(): xp for category, xp in payload.stat_awards.items()}
    xp = calculate_stat_xp_award(task.difficulty, payload.quality)
    return {category: xp for category in (task.stat_categories or [])}


def _serialize_task(task: Task) -> TaskSummary:
    return TaskSummary(
        id=task.id,
        character_id=task.character_id,
        title=task.title,
        difficulty=task.difficulty,
        stat_categories=list(task.stat_categories or []),
        completed=bool(task.completed),
        completed_at=task.completed_at,
        created_at=task.created_at,
        updated_at=task.updated_at,
    )
