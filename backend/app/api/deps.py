"""Shared request helpers for API routes."""
from __future__ import annotations

from uuid import UUID

from fastapi import HTTPException, Request, status
from sqlalchemy.orm import Session

from app.db.models.character import Character
from app.services.character_service import CharacterAccessError, CharacterNotFoundError, get_owned_character


def request_id_of(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


def load_owned_character(db: Session, character_id: UUID, user_id: UUID) -> Character:
    """Return the caller's active character or raise the matching HTTP error."""
    try:
        return get_owned_character(db, character_id, user_id)
    except CharacterNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except CharacterAccessError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc
