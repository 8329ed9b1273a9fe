from __future__ import annotations

from uuid import UUID, uuid4

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.db.base import Base
from app.db import models  # noqa: F401  ensure models are loaded
from app.db.deps import get_db
from app.main import app
from app.services.level_titles.base import LevelTitleGenerator, LevelTitleRequest
from app.services.level_titles.factory import get_level_title_generator


class StubTitleGenerator(LevelTitleGenerator):
    """Records requests and answers with a fixed title, or raises ``error``."""

    name = "stub"

    def __init__(self, title: str = "Stub Hero", error: Exception | None = None) -> None:
        self.title = title
        self.error = error
        self.requests: list[LevelTitleRequest] = []

    async def generate(self, request: LevelTitleRequest) -> str:
        self.requests.append(request)
        if self.error:
            raise self.error
        return self.title


@pytest.fixture()
def title_generator() -> StubTitleGenerator:
    return StubTitleGenerator()


@pytest.fixture()
def client(title_generator):
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )

    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):  # pragma: no cover - sqlite setup
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    Base.metadata.create_all(bind=engine)

    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_level_title_generator] = lambda: title_generator
    with TestClient(app) as test_client:
        yield test_client, TestingSessionLocal
    app.dependency_overrides.clear()


def create_character(test_client: TestClient, user_id: UUID | None = None, **overrides) -> dict:
    payload = {
        "user_id": str(user_id or uuid4()),
        "name": "Aria",
        "character_class": "Ranger",
        "backstory": "A park ranger who trades trail maps for stories.",
    }
    payload.update(overrides)
    response = test_client.post("/characters", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def stat_by_category(character: dict, category: str) -> dict:
    return next(stat for stat in character["stats"] if stat["category"] == category)
