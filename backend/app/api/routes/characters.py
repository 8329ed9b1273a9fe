"""Character, stat and level-up API routes."""
from __future__ import annotations

from time import perf_counter
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from app.api.deps import load_owned_character, request_id_of
from app.api.schemas.character import (
    CharacterCreateRequest,
    CharacterResponse,
    CharacterStatResponse,
    StatCreateRequest,
)
from app.api.schemas.progression import (
    LevelUpAllRequest,
    LevelUpAllResponse,
    LevelUpOpportunitiesResponse,
    LevelUpRequest,
    LevelUpResponse,
    StatXpAwardRequest,
    StatXpAwardResponse,
)
from app.core.config import settings
from app.db.deps import get_db
from app.db.models.character import Character
from app.observability.metrics import log_metric
from app.observability.tracing import annotate, trace
from app.services import character_service, stat_service
from app.services.level_titles.base import LevelTitleGenerator
from app.services.level_titles.factory import get_level_title_generator
from app.services.progression import ProgressionError, is_ready_to_level_up

router = APIRouter()


@router.post(
    "/characters",
    response_model=CharacterResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["characters"],
)
def create_character(
    payload: CharacterCreateRequest,
    http_request: Request,
    db: Session = Depends(get_db),
) -> CharacterResponse:
    """Create a character whose stats all start at level 1 with 0 XP."""
    request_id = request_id_of(http_request)
    with trace(
        "character.create",
        metadata={"route": "/characters", "stat_count": len(payload.stat_categories or [])},
        user_id=str(payload.user_id),
        request_id=request_id,
    ):
        character = character_service.create_character(
            db,
            user_id=payload.user_id,
            name=payload.name,
            character_class=payload.character_class or settings.default_character_class,
            backstory=payload.backstory,
            stat_categories=payload.stat_categories,
            request_id=request_id,
        )

    log_metric("character.create.success", 1, metadata={"user_id": str(payload.user_id)})
    return _serialize_character(db, character, request_id)


@router.get("/characters/{character_id}", response_model=CharacterResponse, tags=["characters"])
def get_character(
    character_id: UUID,
    http_request: Request,
    user_id: UUID = Query(..., description="User ID owning the character"),
    db: Session = Depends(get_db),
) -> CharacterResponse:
    request_id = request_id_of(http_request)
    character = load_owned_character(db, character_id, user_id)
    return _serialize_character(db, character, request_id)


@router.post(
    "/characters/{character_id}/stats",
    response_model=CharacterStatResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["characters"],
)
def add_character_stat(
    character_id: UUID,
    payload: StatCreateRequest,
    http_request: Request,
    db: Session = Depends(get_db),
) -> CharacterStatResponse:
    character = load_owned_character(db, character_id, payload.user_id)
    try:
        stat = character_service.add_stat(
            db,
            character,
            category=payload.category,
            description=payload.description,
            request_id=request_id_of(http_request),
        )
    except character_service.DuplicateStatError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return stat_service.serialize_stat(stat)


@router.post(
    "/characters/{character_id}/stats/{stat_id}/xp",
    response_model=StatXpAwardResponse,
    tags=["characters"],
)
async def award_stat_xp(
    character_id: UUID,
    stat_id: UUID,
    payload: StatXpAwardRequest,
    http_request: Request,
    db: Session = Depends(get_db),
    title_generator: LevelTitleGenerator = Depends(get_level_title_generator),
) -> StatXpAwardResponse:
    """Grant XP to one stat, leveling it up (and titling it) when a threshold is crossed."""
    request_id = request_id_of(http_request)
    character = load_owned_character(db, character_id, payload.user_id)
    stat = character_service.find_stat(db, character_id, stat_id)
    if not stat:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Character stat not found")

    start = perf_counter()
    with trace(
        "stat.award_xp",
        metadata={"route": "/characters/{id}/stats/{stat_id}/xp", "stat_id": str(stat_id), "xp": payload.xp},
        user_id=str(payload.user_id),
        request_id=request_id,
    ) as span:
        try:
            result = stat_service.stage_xp_award(
                db,
                stat,
                payload.xp,
                user_id=payload.user_id,
                source_type="manual",
                source_id=None,
                request_id=request_id,
                reason=payload.reason,
            )
        except ProgressionError as exc:
            db.rollback()
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
        stat_service.commit(db)
        annotate(span, leveled_up=result.outcome.leveled_up, new_level=result.outcome.current_level)

    await stat_service.attach_level_titles(
        db,
        [result],
        character,
        title_generator,
        config=settings,
        request_id=request_id,
    )

    latency_ms = (perf_counter() - start) * 1000
    log_metric("stat.award_xp.success", 1, metadata={"user_id": str(payload.user_id)})
    log_metric("stat.award_xp.latency_ms", latency_ms, metadata={"stat_id": str(stat_id)})

    return StatXpAwardResponse(
        notification=stat_service.to_notification(result),
        request_id=request_id or "",
    )


@router.get(
    "/characters/{character_id}/level-up-opportunities",
    response_model=LevelUpOpportunitiesResponse,
    tags=["characters"],
)
def list_level_up_opportunities(
    character_id: UUID,
    http_request: Request,
    user_id: UUID = Query(..., description="User ID owning the character"),
    db: Session = Depends(get_db),
) -> LevelUpOpportunitiesResponse:
    request_id = request_id_of(http_request)
    load_owned_character(db, character_id, user_id)
    stats = character_service.get_character_stats(db, character_id)
    opportunities = stat_service.level_up_opportunities(stats)
    log_metric("stat.level_up.opportunities", len(opportunities), metadata={"user_id": str(user_id)})
    return LevelUpOpportunitiesResponse(
        character_id=character_id,
        opportunities=opportunities,
        request_id=request_id or "",
    )


@router.post(
    "/characters/{character_id}/level-up",
    response_model=LevelUpResponse,
    tags=["characters"],
)
async def level_up_stat(
    character_id: UUID,
    payload: LevelUpRequest,
    http_request: Request,
    db: Session = Depends(get_db),
    title_generator: LevelTitleGenerator = Depends(get_level_title_generator),
) -> LevelUpResponse:
    """Level up a single stat whose XP already covers a higher level."""
    request_id = request_id_of(http_request)
    character = load_owned_character(db, character_id, payload.user_id)
    stat = character_service.find_stat(db, character_id, payload.stat_id)
    if not stat:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Character stat not found")
    if not is_ready_to_level_up(stat.total_xp, stat.current_level):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=(
                f"Stat '{stat.category}' is not ready for level up. "
                f"Current level: {stat.current_level}, Total XP: {stat.total_xp}"
            ),
        )

    with trace(
        "stat.level_up",
        metadata={"route": "/characters/{id}/level-up", "stat_id": str(stat.id)},
        user_id=str(payload.user_id),
        request_id=request_id,
    ):
        try:
            result = stat_service.stage_level_up(db, stat, user_id=payload.user_id, request_id=request_id)
        except ProgressionError as exc:
            db.rollback()
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
        stat_service.commit(db)

    await stat_service.attach_level_titles(
        db,
        [result],
        character,
        title_generator,
        config=settings,
        request_id=request_id,
    )

    return LevelUpResponse(
        level_up_result=stat_service.to_level_up_result(result),
        request_id=request_id or "",
    )


@router.post(
    "/characters/{character_id}/level-up-all",
    response_model=LevelUpAllResponse,
    tags=["characters"],
)
async def level_up_all_stats(
    character_id: UUID,
    payload: LevelUpAllRequest,
    http_request: Request,
    db: Session = Depends(get_db),
    title_generator: LevelTitleGenerator = Depends(get_level_title_generator),
) -> LevelUpAllResponse:
    request_id = request_id_of(http_request)
    character = load_owned_character(db, character_id, payload.user_id)
    eligible = [
        stat
        for stat in character_service.get_character_stats(db, character_id)
        if is_ready_to_level_up(stat.total_xp, stat.current_level)
    ]
    if not eligible:
        return LevelUpAllResponse(
            level_up_results=[],
            message="No stats are ready for level up",
            request_id=request_id or "",
        )

    with trace(
        "stat.level_up_all",
        metadata={"route": "/characters/{id}/level-up-all", "eligible": len(eligible)},
        user_id=str(payload.user_id),
        request_id=request_id,
    ):
        try:
            results = [
                stat_service.stage_level_up(db, stat, user_id=payload.user_id, request_id=request_id)
                for stat in eligible
            ]
        except ProgressionError as exc:
            db.rollback()
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
        stat_service.commit(db)

    await stat_service.attach_level_titles(
        db,
        results,
        character,
        title_generator,
        config=settings,
        request_id=request_id,
    )

    return LevelUpAllResponse(
        level_up_results=[stat_service.to_level_up_result(result) for result in results],
        message=f"Successfully leveled up {len(results)} stat(s)",
        request_id=request_id or "",
    )


def _serialize_character(db: Session, character: Character, request_id: str | None) -> CharacterResponse:
    stats = character_service.get_character_stats(db, character.id)
    return CharacterResponse(
        id=character.id,
        user_id=character.user_id,
        name=character.name,
        character_class=character.character_class,
        backstory=character.backstory,
        is_active=bool(character.is_active),
        stats=[stat_service.serialize_stat(stat) for stat in stats],
        request_id=request_id or "",
    )
