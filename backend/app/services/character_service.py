"""Helpers for creating and loading characters and their stats."""
from __future__ import annotations

import logging
from typing import Dict, Iterable, List
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.db.models.activity_log import ActivityLog
from app.db.models.character import Character
from app.db.models.character_stat import CharacterStat
from app.db.models.user import User

logger = logging.getLogger(__name__)

DEFAULT_STATS: Dict[str, str] = {
    "Physical Health": "Exercise, sleep, nutrition and general fitness",
    "Mental Wellness": "Stress management, mindfulness and emotional balance",
    "Family Bonding": "Quality time and connection with family",
    "Professional Growth": "Career skills, learning and work achievements",
    "Creative Expression": "Art, writing, music and other creative outlets",
    "Social Connection": "Friendships, community and social activities",
}


class CharacterNotFoundError(LookupError):
    pass


class CharacterAccessError(PermissionError):
    pass


class DuplicateStatError(ValueError):
    pass


def get_or_create_user(db: Session, user_id: UUID) -> User:
    """Fetch an existing user or create a new row safely."""
    user = db.get(User, user_id)
    if user:
        return user

    user = User(id=user_id)
    db.add(user)
    try:
        db.flush()
        return user
    except IntegrityError:
        db.rollback()
        existing = db.get(User, user_id)
        if existing:
            return existing
        raise


def create_character(
    db: Session,
    *,
    user_id: UUID,
    name: str,
    character_class: str,
    backstory: str | None,
    stat_categories: Iterable[str] | None,
    request_id: str | None,
) -> Character:
    """Create a character with one level-1 stat per category and commit."""
    get_or_create_user(db, user_id)

    categories = _unique_categories(stat_categories if stat_categories is not None else DEFAULT_STATS)
    character = Character(
        user_id=user_id,
        name=name.strip(),
        character_class=character_class.strip(),
        backstory=(backstory or "").strip() or None,
        is_active=True,
    )
    db.add(character)
    db.flush()

    for category in categories:
        db.add(
            CharacterStat(
                character_id=character.id,
                category=category,
                description=DEFAULT_STATS.get(category),
                total_xp=0,
                current_xp=0,
                current_level=1,
            )
        )

    db.add(
        ActivityLog(
            user_id=user_id,
            action_type="character_created",
            action_payload={
                "character_id": str(character.id),
                "character_class": character.character_class,
                "stat_categories": categories,
                "request_id": request_id,
            },
            reason="Character created",
        )
    )
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(character)
    logger.info("Created character %s with %s stats for user %s", character.id, len(categories), user_id)
    return character


def get_owned_character(db: Session, character_id: UUID, user_id: UUID) -> Character:
    character = db.get(Character, character_id)
    if not character or not character.is_active:
        raise CharacterNotFoundError("Character not found")
    if character.user_id != user_id:
        raise CharacterAccessError("Character does not belong to user")
    return character


def get_character_stats(db: Session, character_id: UUID) -> List[CharacterStat]:
    return (
        db.query(CharacterStat)
        .filter(CharacterStat.character_id == character_id)
        .order_by(CharacterStat.category)
        .all()
    )


def find_stat(db: Session, character_id: UUID, stat_id: UUID) -> CharacterStat | None:
    return (
        db.query(CharacterStat)
        .filter(CharacterStat.id == stat_id, CharacterStat.character_id == character_id)
        .one_or_none()
    )


def add_stat(
    db: Session,
    character: Character,
    *,
    category: str,
    description: str | None,
    request_id: str | None,
) -> CharacterStat:
    """Attach a new level-1 stat to ``character``."""
    category = category.strip()
    if any(stat.category == category for stat in get_character_stats(db, character.id)):
        raise DuplicateStatError(f"Stat '{category}' already exists")

    stat = CharacterStat(
        character_id=character.id,
        category=category,
        description=description or DEFAULT_STATS.get(category),
        total_xp=0,
        current_xp=0,
        current_level=1,
    )
    db.add(stat)
    db.add(
        ActivityLog(
            user_id=character.user_id,
            action_type="stat_created",
            action_payload={
                "character_id": str(character.id),
                "category": category,
                "request_id": request_id,
            },
            reason="Stat added",
        )
    )
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise DuplicateStatError(f"Stat '{category}' already exists") from exc
    db.refresh(stat)
    return stat


def _unique_categories(categories: Iterable[str]) -> List[str]:
    seen: List[str] = []
    for category in categories:
        cleaned = category.strip()
        if cleaned and cleaned not in seen:
            seen.append(cleaned)
    return seen
