"""Database base, session wiring and ORM models for LifeQuest."""

from app.db.base import Base
from app.db import models  # noqa: F401  (registers tables on Base.metadata)
from app.db.models import ActivityLog, Character, CharacterStat, JournalEntry, Task, User

__all__ = ["ActivityLog", "Base", "Character", "CharacterStat", "JournalEntry", "Task", "User"]
