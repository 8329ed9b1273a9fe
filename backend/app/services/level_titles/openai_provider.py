"""OpenAI-backed level title generator."""
from __future__ import annotations

import json
import logging
import re

import openai
from pydantic import BaseModel, ValidationError, field_validator

from app.observability.tracing import trace
from app.services.level_titles.base import LevelTitleError, LevelTitleGenerator, LevelTitleRequest

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a creative D&D Dungeon Master who generates humorous, contextual level titles for "
    "character stats. Keep titles concise (2-6 words), appropriate for all ages, and tailored to "
    "the character's class and backstory. Respond with JSON: {\"title\": \"...\"}."
)

_QUOTES = re.compile(r"[\"'`]")
_LEVEL_PREFIX = re.compile(r"^(?:[\w ]+?\s+)?(?:level|lvl)\s*\d+\s*:?\s*", re.IGNORECASE)


class GeneratedLevelTitle(BaseModel):
    title: str

    @field_validator("title")
    @classmethod
    def _clean_title(cls, value: str) -> str:
        cleaned = _LEVEL_PREFIX.sub("", _QUOTES.sub("", value)).strip()
        if "\n" in cleaned:
            raise ValueError("title must be a single line")
        if not 2 <= len(cleaned) <= 50:
            raise ValueError("title must be between 2 and 50 characters")
        return cleaned


def level_context(level: int) -> str:
    if level <= 2:
        return "beginner"
    if level <= 5:
        return "novice"
    if level <= 10:
        return "intermediate"
    if level <= 15:
        return "advanced"
    return "master"


def build_level_title_prompt(request: LevelTitleRequest) -> str:
    backstory = f"\nCharacter backstory: {request.character_backstory}" if request.character_backstory else ""
    return (
        "Generate a humorous level title for a character's stat progression:\n\n"
        f"Stat Category: {request.stat_category}\n"
        f"New Level: {request.new_level} ({level_context(request.new_level)})\n"
        f"Character Class: {request.character_class}{backstory}\n\n"
        "The title should:\n"
        "- Be 2-6 words long\n"
        "- Be humorous but appropriate for all ages\n"
        "- Reflect the character's class and backstory\n"
        "- Match the level progression (low levels = humble/beginner, high levels = impressive/master)\n"
        f"- Be specific to the \"{request.stat_category}\" stat category\n\n"
        "Examples for reference:\n"
        "- Physical Health Level 2: \"Enthusiastic Couch Escapee\"\n"
        "- Mental Wellness Level 5: \"Zen Garden Apprentice\"\n"
        "- Family Bonding Level 10: \"Master Bedtime Storyteller\"\n"
        "- Adventure Spirit Level 15: \"Legendary Trail Blazer\""
    )


def parse_level_title(content: str | None) -> str:
    """Validate raw model output and return the cleaned title."""
    try:
        payload = json.loads(content or "")
        return GeneratedLevelTitle.model_validate(payload).title
    except (json.JSONDecodeError, ValidationError) as exc:
        raise LevelTitleError(f"Unusable level title output: {exc}") from exc


class OpenAILevelTitleGenerator(LevelTitleGenerator):
    name = "openai"

    def __init__(self, *, api_key: str, model: str, request_timeout: float) -> None:
        self.model = model
        self._client = openai.AsyncOpenAI(api_key=api_key, timeout=request_timeout, max_retries=0)

    async def generate(self, request: LevelTitleRequest) -> str:
        prompt = build_level_title_prompt(request)
        with trace(
            "level_title.generate",
            metadata={
                "llm_input_text": prompt[:500],
                "stat_category": request.stat_category,
                "new_level": request.new_level,
                "model": self.model,
            },
        ) as title_trace:
            response = await self._client.chat.completions.create(
                model=self.model,
                response_format={"type": "json_object"},
                temperature=0.8,
                max_tokens=50,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
            )
            content = response.choices[0].message.content if response.choices else None
            title = parse_level_title(content)
            if title_trace:
                title_trace.update(metadata={"llm_output_text": title})
        logger.debug("Generated level title for %s level %s", request.stat_category, request.new_level)
        return title
