"""Level title generator construction and best-effort resolution."""
from __future__ import annotations

import asyncio
import logging
from functools import lru_cache

import openai

from app.core.config import Settings, settings
from app.observability.metrics import record_level_title
from app.services.level_titles.base import LevelTitleError, LevelTitleGenerator, LevelTitleRequest
from app.services.level_titles.fallback import FallbackLevelTitleGenerator, fallback_title
from app.services.level_titles.openai_provider import OpenAILevelTitleGenerator

logger = logging.getLogger(__name__)


def build_level_title_generator(config: Settings) -> LevelTitleGenerator:
    provider = config.level_title_provider.lower()
    if provider == "openai":
        if config.openai_api_key:
            return OpenAILevelTitleGenerator(
                api_key=config.openai_api_key,
                model=config.openai_model,
                request_timeout=config.level_title_timeout_seconds,
            )
        logger.warning("LEVEL_TITLE_PROVIDER is openai but OPENAI_API_KEY is missing; using fallback titles.")
    return FallbackLevelTitleGenerator()


@lru_cache
def get_level_title_generator() -> LevelTitleGenerator:
    return build_level_title_generator(settings)


async def resolve_level_title(
    generator: LevelTitleGenerator,
    request: LevelTitleRequest,
    *,
    timeout_seconds: float,
    max_attempts: int = 1,
) -> str:
    """Return a title from ``generator`` or the deterministic fallback.

    Each attempt is bounded by ``timeout_seconds``. This never raises for
    generator failures.
    """
    attempts = max(1, max_attempts)
    for attempt in range(1, attempts + 1):
        try:
            title = await asyncio.wait_for(generator.generate(request), timeout=timeout_seconds)
        except asyncio.TimeoutError:
            logger.warning(
                "Level title generation timed out after %.1fs (attempt %s/%s, provider=%s)",
                timeout_seconds,
                attempt,
                attempts,
                generator.name,
            )
        except (LevelTitleError, openai.OpenAIError) as exc:
            logger.warning(
                "Level title generation failed (attempt %s/%s, provider=%s): %s",
                attempt,
                attempts,
                generator.name,
                exc,
            )
        except Exception:
            logger.exception("Unexpected level title generator error (provider=%s)", generator.name)
        else:
            if isinstance(title, str) and title.strip():
                record_level_title(generator.name, fell_back=False, attempts=attempt)
                return title.strip()
            logger.warning("Level title generator returned an empty title (provider=%s)", generator.name)

    record_level_title(generator.name, fell_back=True, attempts=attempts)
    return fallback_title(request.stat_category, request.new_level)
