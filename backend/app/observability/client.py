"""Opik SDK client helpers."""
from __future__ import annotations

import logging
from threading import Lock
from typing import Optional

from app.core.config import Settings, settings

try:
    from opik import Opik
except ImportError:  # pragma: no cover
    Opik = None  # type: ignore[assignment]

logger = logging.getLogger(__name__)

_client: Optional["Opik"] = None
_client_lock = Lock()
_init_attempted = False


def init_opik(config: Settings | None = None) -> Optional["Opik"]:
    """Create the Opik client on first use; later calls return the cached result."""
    global _client, _init_attempted

    config = config or settings
    with _client_lock:
        if _client is not None or _init_attempted:
            return _client
        _init_attempted = True

        if Opik is None or not config.opik_enabled:
            return None
        if not config.opik_api_key:
            logger.warning("OPIK_ENABLED is true but OPIK_API_KEY is missing; tracing disabled.")
            return None

        try:
            _client = Opik(project_name=config.opik_project, api_key=config.opik_api_key)
        except Exception as exc:  # pragma: no cover - SDK/network failure
            logger.warning("Failed to initialize Opik, tracing will be disabled: %s", exc)
            return None

    logger.info("Opik enabled (project=%s).", config.opik_project)
    return _client


def get_opik_client() -> Optional["Opik"]:
    """Return the cached Opik client if tracing is enabled."""
    if _client is not None:
        return _client
    return init_opik()


def reset_opik_client() -> None:
    """Forget the cached client so the next call re-reads configuration."""
    global _client, _init_attempted
    with _client_lock:
        _client = None
        _init_attempted = False
