"""API tests with FastAPI TestClient; database and collaborators are overridden."""
from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from conftest import SAO_PAULO, FakeNotifier, FakeProvider

from surfcheck.api.dependencies import (
    get_forecast_service,
    get_notification_scheduler,
    get_notifier,
    get_session_factory,
)
from surfcheck.core.errors import ForecastUnavailable, InvalidTargetError, NotFoundError, domain_error_to_http
from surfcheck.db.session import get_db
from surfcheck.main import app
from surfcheck.services.forecast.service import ForecastService
from surfcheck.services.notifications.scheduler import NotificationScheduler

HEADERS = {"X-User-Id": "surfer-1"}


@pytest.fixture
def provider():
    return FakeProvider(datetime.now(SAO_PAULO).date())


@pytest.fixture
def client(session_factory, provider):
    forecasts = ForecastService(provider=provider, default_timeout=None)
    scheduler = NotificationScheduler(forecasts, session_factory, max_workers=1, io_timeout=None)
    notifier = FakeNotifier()

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_forecast_service] = lambda: forecasts
    app.dependency_overrides[get_notification_scheduler] = lambda: scheduler
    app.dependency_overrides[get_notifier] = lambda: notifier
    yield TestClient(app)
    app.dependency_overrides.clear()


def _create(client, **body):
    body.setdefault("target", {"kind": "single", "spot_id": "itamambuca"})
    return client.post("/schedulings", json=body, headers=HEADERS)


class TestCatalogue:
    def test_health(self, client):
        assert client.get("/health").json() == {"status": "ok"}

    def test_spots_and_regions(self, client):
        spots = client.get("/spots").json()["spots"]
        assert "itamambuca" in {s["id"] for s in spots}

        spot = client.get("/spots/itamambuca").json()
        assert spot["orientation_text"] == "SE"

        assert client.get("/spots/pipeline").status_code == 404
        assert {r["id"] for r in client.get("/regions").json()["regions"]} >= {"ubatuba", "florianopolis"}
        assert len(client.get("/regions/ubatuba/spots").json()["spots"]) == 3
        assert client.get("/regions/hawaii/spots").status_code == 404


class TestForecast:
    """Tests for GET /forecast/{spot_id}."""

    def test_scored_forecast(self, client):
        r = client.get("/forecast/itamambuca", params={"days": 2})

        assert r.status_code == 200
        data = r.json()
        assert data["status"] == "ok"
        assert len(data["hours"]) == 48
        assert len(data["chart"]) == 48
        assert data["current"]["score"] == 100
        assert data["best"] == data["windows"][0]
        assert data["cache"] == {"fresh": False}
        assert data["params"] == {"spot_id": "itamambuca", "days": 2}

    def test_provider_failure_is_unavailable_not_error(self, client, provider):
        provider.raise_for.add("itamambuca")

        data = client.get("/forecast/itamambuca").json()

        assert data["status"] == "unavailable"
        assert data["hours"] == []
        assert data["windows"] == []
        assert data["best"] is None
        assert data["error"]

    @pytest.mark.parametrize("days", [0, 9])
    def test_days_out_of_range(self, client, days):
        assert client.get("/forecast/itamambuca", params={"days": days}).status_code == 422

    def test_unknown_spot(self, client):
        r = client.get("/forecast/pipeline")

        assert r.status_code == 404
        assert r.json()["detail"] == {"error": "spot_not_found", "id": "pipeline"}


class TestSchedulings:
    """Tests for the scheduling CRUD surface."""

    def test_create_defaults_and_next_day_refresh(self, client):
        r = _create(client)

        assert r.status_code == 201
        created = r.json()
        assert created["user_id"] == "surfer-1"
        assert created["preferences"]["days_ahead"] == 3
        assert created["notifications"]["timezone"] == "America/Sao_Paulo"

        # background task ran after the response
        fetched = client.get(f"/schedulings/{created['id']}", headers=HEADERS).json()
        assert fetched["next_day_forecast"]["spot_id"] == "itamambuca"
        assert fetched["next_day_forecast_at"] is not None

    def test_invalid_preferences_report_each_field(self, client):
        r = _create(client, preferences={"min_score": 150, "days_ahead": 7})

        assert r.status_code == 422
        fields = {e["loc"][-1] for e in r.json()["detail"]}
        assert fields == {"min_score", "days_ahead"}
        assert client.get("/schedulings", headers=HEADERS).json()["count"] == 0

    def test_invalid_enum_and_time(self, client):
        r = _create(
            client,
            preferences={"time_windows": ["night"], "wind_preference": "gale"},
            notifications={"fixed_time": "25:00"},
        )

        assert r.status_code == 422
        locs = {tuple(e["loc"][1:]) for e in r.json()["detail"]}
        assert locs == {
            ("preferences", "time_windows", 0),
            ("preferences", "wind_preference"),
            ("notifications", "fixed_time"),
        }

    def test_unknown_spot_is_404(self, client):
        r = _create(client, target={"kind": "single", "spot_id": "pipeline"})

        assert r.status_code == 404

    def test_regional_subset_outside_region_is_422(self, client):
        r = _create(client, target={"kind": "regional", "region_id": "ubatuba", "spot_ids": ["joaquina"]})

        assert r.status_code == 422

    def test_list_is_scoped_to_user(self, client):
        _create(client)
        _create(client, target={"kind": "regional", "region_id": "ubatuba"})

        mine = client.get("/schedulings", headers=HEADERS).json()
        others = client.get("/schedulings", params={"user_id": "someone-else"}).json()

        assert mine["count"] == 2
        assert others["count"] == 0

    def test_update_and_delete(self, client):
        sid = _create(client).json()["id"]

        r = client.patch(
            f"/schedulings/{sid}",
            json={"preferences": {"min_score": 75, "time_windows": ["afternoon"]}, "active": False},
            headers=HEADERS,
        )
        assert r.status_code == 200
        assert r.json()["preferences"]["min_score"] == 75
        assert r.json()["active"] is False
        assert r.json()["next_day_forecast"] is None

        assert client.patch(f"/schedulings/{sid}", json={"preferences": {"min_score": -1}}, headers=HEADERS).status_code == 422
        assert client.delete(f"/schedulings/{sid}", headers=HEADERS).json() == {"ok": True, "id": sid}
        assert client.get(f"/schedulings/{sid}", headers=HEADERS).status_code == 404
        assert client.delete(f"/schedulings/{sid}", headers=HEADERS).status_code == 404

    def test_other_users_cannot_read(self, client):
        sid = _create(client).json()["id"]

        assert client.get(f"/schedulings/{sid}", headers={"X-User-Id": "intruder"}).status_code == 404


class TestNotifications:
    """Tests for push registration and notification history."""

    def test_push_register_is_idempotent(self, client):
        body = {"device_token": "abc123"}

        first = client.post("/push/register", json=body, headers=HEADERS).json()
        again = client.post("/push/register", json=body, headers=HEADERS).json()

        assert first["message"] == "Token registered"
        assert again["message"] == "Token already registered"
        assert client.post("/push/register", json={"device_token": ""}, headers=HEADERS).status_code == 422

    @pytest.mark.parametrize("platform", ["android", "web"])
    def test_push_register_rejects_non_apns_platforms(self, client, platform):
        r = client.post("/push/register", json={"device_token": "abc123", "platform": platform}, headers=HEADERS)

        assert r.status_code == 422
        assert r.json()["detail"][0]["loc"] == ["body", "platform"]

    def test_run_tick_then_read_history(self, client):
        _create(client)

        tick = client.post("/notifications/run-tick").json()

        assert tick["evaluated"] == 1
        assert tick["failed"] == []
        assert tick["dispatched"] >= 1

        listing = client.get("/notifications", headers=HEADERS).json()
        assert len(listing["notifications"]) == tick["dispatched"]
        assert listing["unread_count"] == tick["dispatched"]
        assert "special_alert" in {n["type"] for n in listing["notifications"]}

        nid = listing["notifications"][0]["id"]
        marked = client.patch(f"/notifications/{nid}/read", headers=HEADERS).json()
        assert marked["ok"] is True
        assert client.get("/notifications", headers=HEADERS).json()["unread_count"] == tick["dispatched"] - 1

        client.post("/notifications/mark-all-read", headers=HEADERS)
        assert client.get("/notifications", headers=HEADERS).json()["unread_count"] == 0

    def test_second_tick_is_deduplicated(self, client):
        _create(client)

        client.post("/notifications/run-tick")
        again = client.post("/notifications/run-tick").json()

        assert again["dispatched"] == 0

    def test_mark_read_unknown_or_foreign(self, client):
        assert client.patch("/notifications/999/read", headers=HEADERS).status_code == 404


class TestErrorMapping:
    def test_domain_errors_map_to_status(self):
        assert domain_error_to_http(NotFoundError("spot", "pipeline")).status_code == 404
        assert domain_error_to_http(InvalidTargetError("no spots")).status_code == 422

    def test_forecast_unavailable_has_no_route_mapping(self):
        """Routes report unavailable forecasts in the body; only the scheduler raises this."""
        assert domain_error_to_http(ForecastUnavailable("itamambuca: down")).status_code == 500
