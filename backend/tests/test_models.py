from app.db.base import Base
from app.db import models  # noqa: F401  ensure models are loaded


def test_metadata_contains_core_tables() -> None:
    table_names = set(Base.metadata.tables.keys())
    expected = {
        "users",
        "characters",
        "character_stats",
        "tasks",
        "journal_entries",
        "activity_log",
    }

    assert expected.issubset(table_names)


def test_character_stats_unique_per_category() -> None:
    table = Base.metadata.tables["character_stats"]
    unique_sets = [
        {column.name for column in constraint.columns}
        for constraint in table.constraints
        if constraint.__class__.__name__ == "UniqueConstraint"
    ]

    assert {"character_id", "category"} in unique_sets
