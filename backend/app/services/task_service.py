"""Task row helpers for the completion flow."""
from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy.orm import Session

from app.db.models.task import Task


def lock_task(db: Session, task_id: UUID) -> Task | None:
    """Read a task with ``SELECT ... FOR UPDATE`` so concurrent completions queue up."""
    return (
        db.query(Task)
        .filter(Task.id == task_id)
        .with_for_update()
        .populate_existing()
        .one_or_none()
    )


def claim_task_completion(db: Session, task: Task, completed_at: datetime) -> bool:
    """Flip ``task`` to completed only if no other transaction already did.

    Returns ``False`` when the row was already completed; nothing is changed then.
    """
    claimed = (
        db.query(Task)
        .filter(Task.id == task.id, Task.completed.is_(False))
        .update({Task.completed: True, Task.completed_at: completed_at}, synchronize_session=False)
    )
    if not claimed:
        return False
    task.completed = True
    task.completed_at = completed_at
    return True
