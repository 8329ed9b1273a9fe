"""Regression tests for application route registration."""
from fastapi.routing import APIRoute

from app.main import app


def test_xp_award_route_registered_once() -> None:
    """Ensure the XP award endpoint is not mounted multiple times."""
    award_routes = [
        route
        for route in app.routes
        if isinstance(route, APIRoute)
        and route.path == "/characters/{character_id}/stats/{stat_id}/xp"
        and "POST" in route.methods
    ]
    assert len(award_routes) == 1


def test_core_routes_registered() -> None:
    paths = {route.path for route in app.routes if isinstance(route, APIRoute)}

    assert {
        "/health",
        "/characters",
        "/characters/{character_id}/level-up",
        "/characters/{character_id}/level-up-all",
        "/progression/levels",
        "/tasks/{task_id}/complete",
        "/journal",
        "/activity-log",
    } <= paths
