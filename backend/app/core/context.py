"""Per-request context utilities."""
from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator

request_id_ctx_var: ContextVar[str | None] = ContextVar("request_id", default=None)


def get_request_id() -> str | None:
    """Return the current request id if available."""
    return request_id_ctx_var.get()


@contextmanager
def bound_request_id(request_id: str) -> Iterator[str]:
    """Expose ``request_id`` to log records emitted inside the block."""
    token = request_id_ctx_var.set(request_id)
    try:
        yield request_id
    finally:
        request_id_ctx_var.reset(token)
