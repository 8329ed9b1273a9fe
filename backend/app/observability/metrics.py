"""Lightweight metrics helpers."""
from __future__ import annotations

from typing import Any, Dict, Optional

from app.observability.tracing import trace


def log_metric(name: str, value: float | int, metadata: Optional[Dict[str, Any]] = None) -> None:
    """Record a metric as a short Opik trace; silent when Opik is disabled."""
    payload: Dict[str, Any] = {"value": value}
    if metadata:
        payload.update(metadata)
    with trace(f"metric:{name}", metadata=payload):
        pass


def record_xp_award(category: str, xp: int, *, source_type: str) -> None:
    """XP granted to one stat, tagged by where it came from."""
    log_metric("stat.xp_awarded", xp, metadata={"category": category, "source_type": source_type})


def record_level_up(category: str, levels_gained: int, *, new_level: int) -> None:
    log_metric("stat.level_up", levels_gained, metadata={"category": category, "new_level": new_level})


def record_level_title(provider: str, *, fell_back: bool, attempts: int) -> None:
    name = "level_title.fallback" if fell_back else "level_title.generated"
    log_metric(name, 1, metadata={"provider": provider, "attempts": attempts})
