"""Deterministic level titles used when no remote generator is available."""
from __future__ import annotations

from typing import Dict, List

from app.services.level_titles.base import LevelTitleGenerator, LevelTitleRequest

DEFAULT_CATEGORY = "Physical Health"

FALLBACK_TITLES: Dict[str, List[str]] = {
    "Physical Health": [
        "Couch Escapee",
        "Gym Explorer",
        "Fitness Enthusiast",
        "Athletic Achiever",
        "Wellness Warrior",
        "Health Champion",
        "Fitness Guru",
        "Physical Peak",
        "Body Master",
        "Strength Legend",
    ],
    "Mental Wellness": [
        "Stress Rookie",
        "Calm Seeker",
        "Mindful Student",
        "Zen Apprentice",
        "Peace Practitioner",
        "Clarity Champion",
        "Mindfulness Master",
        "Mental Monk",
        "Wisdom Keeper",
        "Enlightened One",
    ],
    "Family Bonding": [
        "Family Friend",
        "Quality Timer",
        "Memory Maker",
        "Connection Creator",
        "Bonding Builder",
        "Family Champion",
        "Love Leader",
        "Relationship Master",
        "Family Guru",
        "Bond Legend",
    ],
    "Professional Growth": [
        "Career Climber",
        "Skill Seeker",
        "Growth Minded",
        "Professional Player",
        "Career Champion",
        "Skill Master",
        "Growth Guru",
        "Professional Peak",
        "Career Legend",
        "Success Sage",
    ],
    "Creative Expression": [
        "Creative Curious",
        "Art Explorer",
        "Creative Craft",
        "Artistic Achiever",
        "Creative Champion",
        "Art Master",
        "Creative Guru",
        "Artistic Peak",
        "Creative Legend",
        "Imagination Icon",
    ],
    "Social Connection": [
        "Social Starter",
        "Friend Finder",
        "Social Seeker",
        "Connection Creator",
        "Social Champion",
        "Friend Master",
        "Social Guru",
        "Connection Peak",
        "Social Legend",
        "Network Ninja",
    ],
}


def fallback_title(stat_category: str, new_level: int) -> str:
    """Pick the title for ``new_level`` from the category's ladder.

    Unknown categories use the Physical Health ladder and levels past the end
    keep the last rung.
    """
    titles = FALLBACK_TITLES.get(stat_category) or FALLBACK_TITLES[DEFAULT_CATEGORY]
    index = min(max(new_level, 1) - 1, len(titles) - 1)
    return titles[index]


class FallbackLevelTitleGenerator(LevelTitleGenerator):
    name = "fallback"

    async def generate(self, request: LevelTitleRequest) -> str:
        return fallback_title(request.stat_category, request.new_level)
