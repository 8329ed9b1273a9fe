"""Level title generator interface."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class LevelTitleRequest:
    stat_category: str
    new_level: int
    character_class: str
    character_backstory: str | None = None


class LevelTitleError(Exception):
    """Raised when a generator cannot produce a usable title."""


class LevelTitleGenerator:
    """Base interface for level title providers."""

    name = "base"

    async def generate(self, request: LevelTitleRequest) -> str:
        raise NotImplementedError
