"""Apply XP awards and level-ups to persisted stats.

XP and level changes are written under a row lock and committed first. Level
titles are generated afterwards, with no lock held, and attached in a second
short write; a failed or slow title never undoes the XP commit.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Sequence
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.api.schemas.character import CharacterStatResponse, StatProgressPayload
from app.api.schemas.progression import LevelStepPayload, LevelUpOpportunity, LevelUpResult, XpNotification
from app.core.config import Settings
from app.db.models.activity_log import ActivityLog
from app.db.models.character import Character
from app.db.models.character_stat import CharacterStat
from app.observability.metrics import record_level_up, record_xp_award
from app.services import progression
from app.services.level_titles.base import LevelTitleGenerator, LevelTitleRequest
from app.services.level_titles.factory import resolve_level_title

logger = logging.getLogger(__name__)


@dataclass
class StatAwardResult:
    stat_id: UUID
    category: str
    xp_awarded: int
    old_level: int
    outcome: progression.XpAwardOutcome
    level_title: str | None = None


def lock_stat(db: Session, stat_id: UUID) -> CharacterStat | None:
    """Re-read a stat row with ``SELECT ... FOR UPDATE`` for a read-modify-write."""
    return (
        db.query(CharacterStat)
        .filter(CharacterStat.id == stat_id)
        .with_for_update()
        .populate_existing()
        .one_or_none()
    )


def stage_xp_award(
    db: Session,
    stat: CharacterStat,
    xp: int,
    *,
    user_id: UUID,
    source_type: str,
    source_id: UUID | None,
    request_id: str | None,
    reason: str | None = None,
) -> StatAwardResult:
    """Apply ``xp`` to ``stat`` inside the current transaction without committing."""
    locked = lock_stat(db, stat.id)
    if locked is None:
        raise LookupError(f"Stat {stat.id} not found")

    old_level = locked.current_level
    outcome = progression.apply_xp_award(locked.snapshot(), xp)
    _write_outcome(locked, outcome)

    db.add(
        ActivityLog(
            user_id=user_id,
            action_type="stat_xp_awarded",
            action_payload={
                "stat_id": str(locked.id),
                "category": locked.category,
                "xp": xp,
                "source_type": source_type,
                "source_id": str(source_id) if source_id else None,
                "new_total_xp": outcome.total_xp,
                "new_level": outcome.current_level,
                "request_id": request_id,
            },
            reason=reason or f"XP awarded from {source_type}",
        )
    )
    record_xp_award(locked.category, xp, source_type=source_type)
    if outcome.leveled_up:
        _log_level_up(db, locked, old_level, outcome, user_id=user_id, request_id=request_id)

    return StatAwardResult(
        stat_id=locked.id,
        category=locked.category,
        xp_awarded=xp,
        old_level=old_level,
        outcome=outcome,
    )


def stage_level_up(
    db: Session,
    stat: CharacterStat,
    *,
    user_id: UUID,
    request_id: str | None,
) -> StatAwardResult:
    """Catch a stat up to the level its XP supports, without committing.

    Raises ``ProgressionError`` when the stat is not ready or its stored
    counters are inconsistent.
    """
    locked = lock_stat(db, stat.id)
    if locked is None:
        raise LookupError(f"Stat {stat.id} not found")

    snapshot = locked.snapshot()
    progression.validate_stat_progress(snapshot)
    old_level = locked.current_level
    outcome = progression.apply_level_up(snapshot)
    _write_outcome(locked, outcome)
    _log_level_up(db, locked, old_level, outcome, user_id=user_id, request_id=request_id)

    return StatAwardResult(
        stat_id=locked.id,
        category=locked.category,
        xp_awarded=0,
        old_level=old_level,
        outcome=outcome,
    )


def commit(db: Session) -> None:
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise


async def attach_level_titles(
    db: Session,
    results: Sequence[StatAwardResult],
    character: Character,
    generator: LevelTitleGenerator,
    *,
    config: Settings,
    request_id: str | None,
) -> None:
    """Generate and store a title for every leveled-up result.

    Must run after the XP changes are committed. Failures are logged and leave
    the stat without a new title.
    """
    leveled = [result for result in results if result.outcome.leveled_up]
    if not leveled:
        return

    character_class = character.character_class
    backstory = character.backstory
    user_id = character.user_id
    for result in leveled:
        result.level_title = await resolve_level_title(
            generator,
            LevelTitleRequest(
                stat_category=result.category,
                new_level=result.outcome.current_level,
                character_class=character_class,
                character_backstory=backstory,
            ),
            timeout_seconds=config.level_title_timeout_seconds,
            max_attempts=config.level_title_max_attempts,
        )

    try:
        for result in leveled:
            stat = lock_stat(db, result.stat_id)
            # A concurrent award may already have moved the stat past this level.
            if stat is None or stat.current_level != result.outcome.current_level:
                continue
            stat.level_title = result.level_title
            db.add(
                ActivityLog(
                    user_id=user_id,
                    action_type="level_title_assigned",
                    action_payload={
                        "stat_id": str(stat.id),
                        "category": stat.category,
                        "level": stat.current_level,
                        "level_title": result.level_title,
                        "request_id": request_id,
                    },
                    reason="Level title assigned",
                )
            )
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.warning("Failed to store level titles; XP changes are unaffected", exc_info=True)
        for result in leveled:
            result.level_title = None


def level_up_opportunities(stats: Sequence[CharacterStat]) -> List[LevelUpOpportunity]:
    opportunities: List[LevelUpOpportunity] = []
    for stat in stats:
        if not progression.is_ready_to_level_up(stat.total_xp, stat.current_level):
            continue
        new_level = progression.calculate_level_from_total_xp(stat.total_xp)
        opportunities.append(
            LevelUpOpportunity(
                stat_id=stat.id,
                category=stat.category,
                current_level=stat.current_level,
                new_level=new_level,
                total_xp=stat.total_xp,
                levels_gained=new_level - stat.current_level,
            )
        )
    return opportunities


def serialize_stat(stat: CharacterStat) -> CharacterStatResponse:
    progress = progression.calculate_xp_progress(stat.total_xp, stat.current_level)
    return CharacterStatResponse(
        id=stat.id,
        category=stat.category,
        description=stat.description,
        total_xp=stat.total_xp,
        current_xp=stat.current_xp,
        current_level=stat.current_level,
        level_title=stat.level_title,
        can_level_up=progression.is_ready_to_level_up(stat.total_xp, stat.current_level),
        progress=StatProgressPayload(
            current_level_xp=progress.current_level_xp,
            xp_in_current_level=max(0, progress.xp_in_current_level),
            progress_percent=progress.progress_percent,
            xp_to_next_level=progression.calculate_xp_to_next_level(stat.total_xp, stat.current_level),
            next_level_total_xp=progression.total_xp_required_for_level(stat.current_level + 1),
        ),
        updated_at=stat.updated_at,
    )


def to_notification(result: StatAwardResult) -> XpNotification:
    return XpNotification(
        stat_id=result.stat_id,
        stat_category=result.category,
        xp_awarded=result.xp_awarded,
        new_total_xp=result.outcome.total_xp,
        new_current_xp=result.outcome.current_xp,
        new_level=result.outcome.current_level,
        leveled_up=result.outcome.leveled_up,
        levels_gained=result.outcome.levels_gained,
        level_title=result.level_title,
    )


def to_level_up_result(result: StatAwardResult) -> LevelUpResult:
    return LevelUpResult(
        stat_id=result.stat_id,
        category=result.category,
        old_level=result.old_level,
        new_level=result.outcome.current_level,
        levels_gained=result.outcome.levels_gained,
        level_progression=[
            LevelStepPayload(level=step.level, xp_required=step.xp_required)
            for step in result.outcome.level_progression
        ],
        total_xp=result.outcome.total_xp,
        level_title=result.level_title,
    )


def _write_outcome(stat: CharacterStat, outcome: progression.XpAwardOutcome) -> None:
    stat.total_xp = outcome.total_xp
    stat.current_xp = outcome.current_xp
    stat.current_level = outcome.current_level


def _log_level_up(
    db: Session,
    stat: CharacterStat,
    old_level: int,
    outcome: progression.XpAwardOutcome,
    *,
    user_id: UUID,
    request_id: str | None,
) -> None:
    db.add(
        ActivityLog(
            user_id=user_id,
            action_type="stat_leveled_up",
            action_payload={
                "stat_id": str(stat.id),
                "category": stat.category,
                "old_level": old_level,
                "new_level": outcome.current_level,
                "levels_gained": outcome.levels_gained,
                "total_xp": outcome.total_xp,
                "request_id": request_id,
            },
            reason="Stat leveled up",
        )
    )
    record_level_up(stat.category, outcome.levels_gained, new_level=outcome.current_level)
    logger.info(
        "Stat %s (%s) leveled up %s -> %s",
        stat.id,
        stat.category,
        old_level,
        outcome.current_level,
    )
