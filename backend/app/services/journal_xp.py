"""Lightweight heuristics for turning journal entries into stat XP."""
from __future__ import annotations

from dataclasses import dataclass, field
import logging
import re
from typing import Dict, List

logger = logging.getLogger(__name__)


@dataclass
class JournalXpResult:
    signals: dict
    awards: Dict[str, int] = field(default_factory=dict)
    success: bool = True


MIN_BASE_XP = 5
MAX_BASE_XP = 50
MEANINGFUL_TAG_BONUS = 1.5

MEANINGFUL_TAGS = ["reflection", "growth", "achievement", "challenge", "learning"]

NEGATIVE_PATTERNS = [
    "failed", "failure", "gave up", "quit", "disappointed", "frustrated",
    "couldn't", "didn't try", "avoided", "procrastinated", "lazy",
    "angry", "upset", "sad", "depressed", "terrible", "awful", "horrible",
]
POSITIVE_PATTERNS = [
    "succeeded", "achieved", "accomplished", "completed", "finished",
    "tried", "attempted", "practiced", "learned", "improved", "better",
    "happy", "proud", "excited", "great", "amazing", "wonderful", "excellent",
]


def extract_journal_xp(text: str, stat_categories: List[str], content_tags: List[str]) -> JournalXpResult:
    """Score a journal entry and split XP across the tagged stat categories.

    A struggling entry still earns half the base XP; entries never cost XP.
    """
    try:
        word_count = _word_count(text)
        meaningful = _meaningful_tags(content_tags)
        base_xp = _base_xp(word_count, bool(meaningful))
        positive = _is_positive(text.lower())
        per_stat = base_xp if positive else base_xp // 2

        awards: Dict[str, int] = {}
        for category in stat_categories:
            cleaned = category.strip()
            if cleaned and cleaned not in awards:
                awards[cleaned] = per_stat

        signals = {
            "word_count": word_count,
            "sentiment": "positive" if positive else "negative",
            "meaningful_tags": meaningful,
            "base_xp": base_xp,
        }
        return JournalXpResult(signals=signals, awards=awards, success=True)
    except Exception:
        logger.warning("Journal XP extraction failed; awarding nothing", exc_info=True)
        return JournalXpResult(
            signals={"word_count": 0, "sentiment": None, "meaningful_tags": [], "base_xp": 0},
            awards={},
            success=False,
        )


def _word_count(text: str) -> int:
    return len(re.findall(r"\S+", text))


def _meaningful_tags(content_tags: List[str]) -> List[str]:
    return [tag for tag in content_tags if any(word in tag.lower() for word in MEANINGFUL_TAGS)]


def _base_xp(word_count: int, has_meaningful_tags: bool) -> int:
    base = min(max(word_count / 10, MIN_BASE_XP), MAX_BASE_XP)
    if has_meaningful_tags:
        base *= MEANINGFUL_TAG_BONUS
    return int(base)


def _is_positive(lower_text: str) -> bool:
    negative = sum(1 for pattern in NEGATIVE_PATTERNS if pattern in lower_text)
    positive = sum(1 for pattern in POSITIVE_PATTERNS if pattern in lower_text)
    return positive >= negative
