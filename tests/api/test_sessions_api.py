"""Watch-session endpoint tests."""

import pytest
from httpx import AsyncClient

from tests.helpers import USER_ID, auth_headers, create_access_token

CONTENT = "meditacion-autoconocimiento"
BASE = f"/api/v1/sessions/{CONTENT}"


def test_service_only_verifies_tokens():
    import mindful.auth.jwt as service_jwt

    assert not hasattr(service_jwt, "create_access_token")


@pytest.mark.asyncio
class TestAuth:
    async def test_missing_token(self, client: AsyncClient):
        response = await client.get("/api/v1/sessions")
        assert response.status_code == 401
        assert response.json()["detail"] == "Not authenticated"

    async def test_garbage_token(self, client: AsyncClient):
        response = await client.get("/api/v1/sessions", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401

    async def test_expired_token(self, client: AsyncClient):
        token = create_access_token(USER_ID, expires_minutes=-5)
        response = await client.get("/api/v1/sessions", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401
        assert response.json()["detail"] == "Token has expired"

    async def test_foreign_audience(self, client: AsyncClient):
        token = create_access_token(USER_ID, audience="some-other-service")
        response = await client.get("/api/v1/sessions", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401


@pytest.mark.asyncio
class TestOpenAndUpdate:
    async def test_open_creates_session(self, client: AsyncClient, store):
        response = await client.post(BASE, json={"title": "Meditación"}, headers=auth_headers())
        assert response.status_code == 200
        session = response.json()["session"]
        assert session["content_id"] == CONTENT
        assert session["state"] == "not_started"
        assert session["view_count"] == 0
        assert session["program"] == "meditation"
        assert (USER_ID, CONTENT) in store.rows

    async def test_open_twice_returns_same(self, client: AsyncClient):
        first = await client.post(BASE, json={"title": "M"}, headers=auth_headers())
        second = await client.post(BASE, json={"title": "M"}, headers=auth_headers())
        assert first.json()["session"]["id"] == second.json()["session"]["id"]

    async def test_open_degrades_to_null_session(self, client: AsyncClient, store):
        store.fail_on.add("get")
        response = await client.post(BASE, json={"title": "M"}, headers=auth_headers())
        assert response.status_code == 200
        assert response.json() == {"session": None}

    async def test_patch_updates_progress(self, client: AsyncClient):
        response = await client.patch(
            BASE,
            json={"title": "M", "watch_duration": 300, "total_duration": 600, "last_position": 300},
            headers=auth_headers(),
        )
        assert response.status_code == 200
        session = response.json()["session"]
        assert session["completion_percentage"] == 50
        assert session["last_position"] == 300

    async def test_patch_store_failure(self, client: AsyncClient, store):
        store.fail_on.add("upsert")
        response = await client.patch(BASE, json={"title": "M", "last_position": 1}, headers=auth_headers())
        assert response.status_code == 503

    async def test_patch_rejects_negative_values(self, client: AsyncClient):
        response = await client.patch(BASE, json={"title": "M", "watch_duration": -1}, headers=auth_headers())
        assert response.status_code == 422

    async def test_list_only_own_sessions(self, client: AsyncClient, store):
        store.seed(USER_ID, "a", program="meditation")
        store.seed(USER_ID, "b", program="anger_management")
        store.seed("someone-else", "c")

        response = await client.get("/api/v1/sessions", headers=auth_headers())
        assert response.json()["total"] == 2

        filtered = await client.get("/api/v1/sessions?program=anger_management", headers=auth_headers())
        assert [s["content_id"] for s in filtered.json()["sessions"]] == ["b"]


@pytest.mark.asyncio
class TestMutations:
    async def test_skip(self, client: AsyncClient, store):
        store.seed(USER_ID, CONTENT)
        response = await client.post(f"{BASE}/skip", headers=auth_headers())
        assert response.status_code == 200
        assert store.rows[(USER_ID, CONTENT)].skip_count == 1

    async def test_skip_without_session(self, client: AsyncClient):
        response = await client.post(f"{BASE}/skip", headers=auth_headers())
        assert response.status_code == 404

    async def test_restart(self, client: AsyncClient, store):
        from datetime import datetime, timezone

        done = datetime(2020, 5, 1, tzinfo=timezone.utc)
        store.seed(
            USER_ID, CONTENT, started_at=done, completed_at=done,
            watch_duration=600.0, total_duration=600.0, last_position=600.0, view_count=1,
        )
        response = await client.post(f"{BASE}/restart", headers=auth_headers())
        assert response.status_code == 200
        session = response.json()["session"]
        assert session["view_count"] == 2
        assert session["completed_at"] is None
        assert session["last_position"] == 0
        assert session["watch_duration"] == 600
        assert session["state"] == "in_progress"

    async def test_reflection_and_techniques(self, client: AsyncClient, store):
        store.seed(USER_ID, CONTENT)
        r1 = await client.put(f"{BASE}/reflection", json={"text": "  Calma  "}, headers=auth_headers())
        r2 = await client.put(
            f"{BASE}/techniques", json={"techniques": ["respirar", "respirar", "contar"]}, headers=auth_headers(),
        )
        assert r1.status_code == 200
        assert r2.status_code == 200
        row = store.rows[(USER_ID, CONTENT)]
        assert row.reflection_text == "Calma"
        assert row.techniques_applied == ["respirar", "contar"]

    async def test_reflection_without_session(self, client: AsyncClient):
        response = await client.put(f"{BASE}/reflection", json={"text": "x"}, headers=auth_headers())
        assert response.status_code == 404

    @pytest.mark.parametrize(
        ("method", "suffix", "body"),
        [
            ("POST", "skip", None),
            ("POST", "restart", None),
            ("PUT", "reflection", {"text": "x"}),
            ("PUT", "techniques", {"techniques": ["respirar"]}),
        ],
    )
    async def test_store_outage_is_503_not_404(self, client: AsyncClient, store, method, suffix, body):
        store.seed(USER_ID, CONTENT)
        store.fail_on.add("update_fields")
        response = await client.request(method, f"{BASE}/{suffix}", json=body, headers=auth_headers())
        assert response.status_code == 503
        assert response.json()["detail"] == "Session store unavailable"

    async def test_patch_with_watch_duration_only(self, client: AsyncClient, store):
        store.seed(USER_ID, CONTENT, total_duration=600.0)
        response = await client.patch(BASE, json={"title": "M", "watch_duration": 150}, headers=auth_headers())
        assert response.json()["session"]["completion_percentage"] == 25


@pytest.mark.asyncio
class TestEvents:
    async def test_event_batch(self, client: AsyncClient, store):
        events = [
            {"type": "ready", "duration": 600},
            {"type": "play"},
            {"type": "position_update", "time": 10, "duration": 600},
            {"type": "position_update", "time": 15, "duration": 600},
            {"type": "seeked", "from_time": 15, "to_time": 15.5},
            {"type": "pause"},
        ]
        response = await client.post(
            f"{BASE}/events", json={"title": "M", "events": events}, headers=auth_headers(),
        )
        assert response.status_code == 200
        data = response.json()
        assert data["state"] == "in_progress"
        assert data["skips_detected"] == 1
        assert data["session"]["skip_count"] == 1
        assert data["session"]["last_position"] == 15.5
        assert data["session"]["watch_duration"] == 15

    async def test_ended_completes(self, client: AsyncClient):
        events = [
            {"type": "ready", "duration": 60},
            {"type": "play"},
            {"type": "position_update", "time": 60, "duration": 60},
            {"type": "ended"},
        ]
        response = await client.post(
            f"{BASE}/events", json={"title": "M", "events": events}, headers=auth_headers(),
        )
        data = response.json()
        assert data["state"] == "completed"
        assert data["session"]["completion_percentage"] == 100
        assert data["session"]["completed_at"] is not None

    async def test_unknown_event_type_rejected(self, client: AsyncClient):
        response = await client.post(
            f"{BASE}/events", json={"title": "M", "events": [{"type": "buffering"}]}, headers=auth_headers(),
        )
        assert response.status_code == 422
        assert response.json()["detail"] == "Validation error"

    async def test_store_outage_still_reports_skips(self, client: AsyncClient, store):
        store.fail_on.add("*")
        events = [
            {"type": "position_update", "time": 5},
            {"type": "position_update", "time": 50},
        ]
        response = await client.post(
            f"{BASE}/events", json={"title": "M", "events": events}, headers=auth_headers(),
        )
        assert response.status_code == 200
        assert response.json()["session"] is None
        assert response.json()["skips_detected"] == 1
