"""Tests for Opik client wiring and the tracing helpers."""
from __future__ import annotations

import importlib
from typing import Any, Dict

import pytest

from app.core.config import Settings
from app.observability import client as client_module
from app.observability import tracing


class _DummyTrace:
    def __init__(self, name: str, metadata: Dict[str, Any] | None):
        self.name = name
        self.metadata = dict(metadata or {})
        self.errors: list[dict] = []
        self.ended = False

    def update(self, metadata=None, error_info=None, **kwargs) -> None:
        if metadata:
            self.metadata.update(metadata)
        if error_info:
            self.errors.append(error_info)

    def end(self) -> None:
        self.ended = True


class _DummyOpik:
    def __init__(self, *args, **kwargs):
        self.kwargs = kwargs
        self.traces: list[_DummyTrace] = []

    def trace(self, name: str, metadata: Dict[str, Any] | None = None):
        span = _DummyTrace(name, metadata)
        self.traces.append(span)
        return span


@pytest.fixture()
def fresh_client(monkeypatch):
    client_module.reset_opik_client()
    monkeypatch.setattr(client_module, "Opik", _DummyOpik)
    yield
    client_module.reset_opik_client()


def test_app_import_succeeds_when_opik_is_disabled(monkeypatch) -> None:
    monkeypatch.setenv("OPIK_ENABLED", "false")
    monkeypatch.delenv("OPIK_API_KEY", raising=False)

    import app.core.config as core_config
    import app.main as main_module

    importlib.reload(core_config)
    importlib.reload(client_module)
    reloaded_app = importlib.reload(main_module)

    assert hasattr(reloaded_app, "app")


def test_init_opik_requires_api_key(fresh_client) -> None:
    assert client_module.init_opik(Settings(opik_enabled=True, opik_api_key=None)) is None


def test_init_opik_builds_client_once(fresh_client) -> None:
    config = Settings(opik_enabled=True, opik_api_key="opik-key", opik_project="lifequest-test")

    first = client_module.init_opik(config)
    second = client_module.init_opik(config)

    assert isinstance(first, _DummyOpik)
    assert first is second
    assert first.kwargs["project_name"] == "lifequest-test"


def test_trace_is_noop_without_client(monkeypatch) -> None:
    monkeypatch.setattr(tracing, "get_opik_client", lambda: None)

    with tracing.trace("stat.award_xp", metadata={"xp": 10}) as span:
        assert span is None
    tracing.annotate(span, leveled_up=True)


def test_trace_drops_empty_metadata_and_annotates(monkeypatch) -> None:
    dummy = _DummyOpik()
    monkeypatch.setattr(tracing, "get_opik_client", lambda: dummy)

    with tracing.trace("stat.award_xp", metadata={"xp": 10, "reason": None}, user_id="u-1", request_id="r-1") as span:
        tracing.annotate(span, leveled_up=True, level_title=None)

    recorded = dummy.traces[0]
    assert recorded.metadata == {"xp": 10, "user_id": "u-1", "request_id": "r-1", "leveled_up": True}
    assert recorded.ended is True


def test_trace_records_errors_and_reraises(monkeypatch) -> None:
    dummy = _DummyOpik()
    monkeypatch.setattr(tracing, "get_opik_client", lambda: dummy)

    with pytest.raises(RuntimeError):
        with tracing.trace("journal.record"):
            raise RuntimeError("extractor exploded")

    assert dummy.traces[0].errors == [{"message": "extractor exploded"}]
    assert dummy.traces[0].ended is True
