"""ORM models exposed for metadata discovery."""
from app.db.models.activity_log import ActivityLog
from app.db.models.character import Character
from app.db.models.character_stat import CharacterStat
from app.db.models.journal_entry import JournalEntry
from app.db.models.task import Task
from app.db.models.user import User

__all__ = [
    "ActivityLog",
    "Character",
    "CharacterStat",
    "JournalEntry",
    "Task",
    "User",
]
