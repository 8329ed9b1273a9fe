"""Main FastAPI application for the LifeQuest backend."""
from fastapi import FastAPI, Request

from app.api.routes.activity_log import router as activity_log_router
from app.api.routes.characters import router as characters_router
from app.api.routes.journal import router as journal_router
from app.api.routes.progression import router as progression_router
from app.api.routes.task import router as task_router
from app.core.config import settings
from app.core.logging import configure_logging
from app.core.middleware import RequestIDMiddleware
from app.observability.client import init_opik
from app.observability.tracing import trace

configure_logging(log_level=settings.log_level)

app = FastAPI(title=settings.app_name, version="0.1.0")
app.add_middleware(RequestIDMiddleware)
app.include_router(characters_router)
app.include_router(progression_router)
app.include_router(task_router)
app.include_router(journal_router)
app.include_router(activity_log_router)


@app.on_event("startup")
async def startup_observability() -> None:
    """Initialize observability backends after the event loop starts."""
    init_opik()


@app.get("/health", tags=["health"], summary="Readiness probe")
async def health_check(request: Request) -> dict[str, str]:
    """Return a simple status payload so automation can probe the API."""
    with trace("http.health_check", metadata={"route": "/health"}, request_id=request.state.request_id):
        return {"status": "ok"}
