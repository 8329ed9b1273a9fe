from __future__ import annotations

from uuid import uuid4

from conftest import create_character, stat_by_category


def _seed_activity(test_client) -> dict:
    character = create_character(test_client)
    stat = stat_by_category(character, "Physical Health")
    for xp in (100, 250, 40):
        response = test_client.post(
            f"/characters/{character['id']}/stats/{stat['id']}/xp",
            json={"user_id": character["user_id"], "xp": xp},
        )
        assert response.status_code == 200
    return character


def test_activity_log_lists_newest_first_with_summaries(client):
    test_client, _ = client
    character = _seed_activity(test_client)

    response = test_client.get("/activity-log", params={"user_id": character["user_id"]})

    assert response.status_code == 200
    items = response.json()["items"]
    action_types = [item["action_type"] for item in items]
    assert action_types[-1] == "character_created"
    assert action_types.count("stat_xp_awarded") == 3
    assert "stat_leveled_up" in action_types
    assert "level_title_assigned" in action_types
    summaries = {item["summary"] for item in items}
    assert "Physical Health: +250 XP (manual)" in summaries
    assert "Physical Health reached level 2" in summaries


def test_activity_log_filters_and_paginates(client):
    test_client, _ = client
    character = _seed_activity(test_client)
    params = {"user_id": character["user_id"], "action_type": "stat_xp_awarded", "limit": 2}

    first = test_client.get("/activity-log", params=params).json()
    assert len(first["items"]) == 2
    assert first["next_cursor"]

    second = test_client.get("/activity-log", params={**params, "cursor": first["next_cursor"]}).json()
    assert len(second["items"]) == 1
    assert second["next_cursor"] is None

    seen = [item["id"] for item in first["items"] + second["items"]]
    assert len(set(seen)) == 3


def test_activity_log_invalid_cursor(client):
    test_client, _ = client
    response = test_client.get("/activity-log", params={"user_id": str(uuid4()), "cursor": "not-a-cursor"})

    assert response.status_code == 400


def test_activity_log_detail_checks_owner(client):
    test_client, _ = client
    character = _seed_activity(test_client)
    items = test_client.get("/activity-log", params={"user_id": character["user_id"]}).json()["items"]
    log_id = items[0]["id"]

    detail = test_client.get(f"/activity-log/{log_id}", params={"user_id": character["user_id"]})
    assert detail.status_code == 200
    assert detail.json()["payload"]

    assert test_client.get(f"/activity-log/{log_id}", params={"user_id": str(uuid4())}).status_code == 403
    assert test_client.get(f"/activity-log/{uuid4()}", params={"user_id": character["user_id"]}).status_code == 404
