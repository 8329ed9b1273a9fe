from __future__ import annotations

import logging
from uuid import uuid4

from app.core.context import bound_request_id, get_request_id
from app.core.logging import RequestIdFilter
from app.db.models.activity_log import ActivityLog


def test_health_endpoint_returns_ok(client) -> None:
    test_client, _ = client
    response = test_client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
    assert response.headers.get("X-Request-Id")


def test_request_id_echoed_into_response_and_activity_log(client) -> None:
    test_client, session_factory = client
    req_id = "test-request-id-123"
    response = test_client.post(
        "/characters",
        json={"user_id": str(uuid4()), "name": "Aria"},
        headers={"X-Request-Id": req_id},
    )

    assert response.status_code == 201
    assert response.headers.get("X-Request-Id") == req_id
    assert response.json()["request_id"] == req_id
    with session_factory() as db:
        log = db.query(ActivityLog).filter(ActivityLog.action_type == "character_created").one()
    assert log.action_payload["request_id"] == req_id


def test_request_id_filter_reads_bound_context() -> None:
    record = logging.LogRecord("app", logging.INFO, __file__, 1, "hello", None, None)

    with bound_request_id("req-42"):
        RequestIdFilter().filter(record)
        assert get_request_id() == "req-42"
    assert record.request_id == "req-42"

    RequestIdFilter().filter(record)
    assert record.request_id == "-"
