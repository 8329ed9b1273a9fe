"""Tests for metrics helpers."""
from __future__ import annotations

import asyncio
from typing import Any, Dict

from app.observability import metrics
from app.observability import tracing
from app.services.level_titles.base import LevelTitleRequest
from app.services.level_titles.factory import resolve_level_title
from conftest import StubTitleGenerator


class _DummyTrace:
    def __init__(self, name: str, metadata: Dict[str, Any]):
        self.name = name
        self.metadata = metadata
        self.ended = False

    def end(self) -> None:
        self.ended = True


class _DummyClient:
    def __init__(self):
        self.traces: list[_DummyTrace] = []

    def trace(self, name: str, metadata: Dict[str, Any] | None = None):
        trace = _DummyTrace(name, metadata or {})
        self.traces.append(trace)
        return trace


def test_log_metric_closes_trace(monkeypatch) -> None:
    dummy_client = _DummyClient()
    monkeypatch.setattr(tracing, "get_opik_client", lambda: dummy_client)

    metrics.log_metric("demo_metric", 42, metadata={"foo": "bar"})

    assert dummy_client.traces, "Metric call should record a trace"
    assert dummy_client.traces[0].name == "metric:demo_metric"
    assert dummy_client.traces[0].metadata["value"] == 42
    assert dummy_client.traces[0].metadata["foo"] == "bar"
    assert dummy_client.traces[0].ended is True


def test_record_xp_award_tags_source(monkeypatch) -> None:
    dummy_client = _DummyClient()
    monkeypatch.setattr(tracing, "get_opik_client", lambda: dummy_client)

    metrics.record_xp_award("Physical Health", 25, source_type="task")

    recorded = dummy_client.traces[0]
    assert recorded.name == "metric:stat.xp_awarded"
    assert recorded.metadata == {"value": 25, "category": "Physical Health", "source_type": "task"}


def test_title_fallback_is_counted(monkeypatch) -> None:
    dummy_client = _DummyClient()
    monkeypatch.setattr(tracing, "get_opik_client", lambda: dummy_client)
    generator = StubTitleGenerator(error=RuntimeError("offline"))
    request = LevelTitleRequest(stat_category="Physical Health", new_level=2, character_class="Ranger")

    title = asyncio.run(resolve_level_title(generator, request, timeout_seconds=1.0, max_attempts=2))

    assert title == "Gym Explorer"
    names = [trace.name for trace in dummy_client.traces]
    assert names == ["metric:level_title.fallback"]
    assert dummy_client.traces[0].metadata["attempts"] == 2
