"""Journal API routes."""
from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from app.api.deps import load_owned_character, request_id_of
from app.api.schemas.journal import JournalEntryRequest, JournalEntryResponse, JournalSignals
from app.core.config import settings
from app.db.deps import get_db
from app.db.models.activity_log import ActivityLog
from app.db.models.journal_entry import JournalEntry
from app.observability.metrics import log_metric
from app.observability.tracing import annotate, trace
from app.services import character_service, stat_service
from app.services.journal_xp import extract_journal_xp
from app.services.level_titles.base import LevelTitleGenerator
from app.services.level_titles.factory import get_level_title_generator
from app.services.progression import ProgressionError

router = APIRouter()


@router.post("/journal", response_model=JournalEntryResponse, tags=["journal"])
async def record_journal_entry(
    request: JournalEntryRequest,
    http_request: Request,
    db: Session = Depends(get_db),
    title_generator: LevelTitleGenerator = Depends(get_level_title_generator),
) -> JournalEntryResponse:
    """Persist a journal entry and award XP to the stats it is tagged with."""
    text = request.text.strip()
    if not text:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="text must not be empty")
    request_id = request_id_of(http_request)
    character = load_owned_character(db, request.character_id, request.user_id)
    stats_by_category = {stat.category: stat for stat in character_service.get_character_stats(db, character.id)}
    for category in request.stat_categories:
        if category.strip() not in stats_by_category:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Invalid stat category: {category}. Must match existing character stats.",
            )

    base_metadata: Dict[str, Any] = {
        "route": "/journal",
        "text_length": len(text),
        "stat_count": len(request.stat_categories),
    }
    with trace("journal.record", metadata=base_metadata, user_id=str(request.user_id), request_id=request_id) as span:
        extraction = extract_journal_xp(text, request.stat_categories, request.content_tags)
        annotate(span, sentiment=extraction.signals.get("sentiment"), base_xp=extraction.signals.get("base_xp"))
        log_metric("journal.extractor.success", 1 if extraction.success else 0, metadata={"user_id": str(request.user_id)})

        entry = JournalEntry(
            user_id=request.user_id,
            character_id=character.id,
            body=text,
            signals_extracted=extraction.signals,
            xp_awarded=extraction.awards,
        )
        db.add(entry)
        db.flush()

        try:
            results = [
                stat_service.stage_xp_award(
                    db,
                    stats_by_category[category],
                    xp,
                    user_id=request.user_id,
                    source_type="journal",
                    source_id=entry.id,
                    request_id=request_id,
                    reason="Journal entry",
                )
                for category, xp in extraction.awards.items()
            ]
        except ProgressionError as exc:
            db.rollback()
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

        db.add(
            ActivityLog(
                user_id=request.user_id,
                action_type="journal_entry_recorded",
                action_payload={
                    "journal_entry_id": str(entry.id),
                    "signals": extraction.signals,
                    "xp_awarded": extraction.awards,
                    "request_id": request_id,
                },
                reason="Journal entry recorded",
            )
        )
        stat_service.commit(db)

    await stat_service.attach_level_titles(
        db,
        results,
        character,
        title_generator,
        config=settings,
        request_id=request_id,
    )

    return JournalEntryResponse(
        id=entry.id,
        signals=JournalSignals(**extraction.signals),
        xp_notifications=[stat_service.to_notification(result) for result in results],
        request_id=request_id or "",
    )
