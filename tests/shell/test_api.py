"""Tests for the FastAPI service.

The app is built with an orchestrator over in-memory adapters and a
mocked map backend, so no network access is needed.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient

from api.main import create_app
from hazardwatch.core.aggregate import FeedBatch
from hazardwatch.core.config import Config
from hazardwatch.core.errors import FetchError
from hazardwatch.core.records import HazardRecord
from hazardwatch.orchestrator import Orchestrator
from hazardwatch.shell.map_backend import MapImageResult, StaticMapBackend


def record(record_id: str, severity: int = 4, category: str = "Earthquake") -> HazardRecord:
    return HazardRecord(
        feed="usgs",
        id=record_id,
        category=category,
        severity=severity,
        latitude=35.6762,
        longitude=139.6503,
        location="near Tokyo, Japan",
        observed_at=datetime.now(timezone.utc) - timedelta(hours=1),
        description=f"Event {record_id}",
    )


class FakeAdapter:
    def __init__(self, name, records=(), error=None):
        self.name = name
        self.records = list(records)
        self.error = error

    async def fetch(self):
        if self.error is not None:
            raise self.error
        return FeedBatch(feed=self.name, records=tuple(self.records))


@pytest.fixture
def adapter():
    return FakeAdapter("usgs", [record("q1", severity=4), record("f1", severity=3, category="Fire")])


@pytest.fixture
def map_backend():
    return StaticMapBackend()


@pytest.fixture
def client(adapter, map_backend):
    def factory():
        return Orchestrator(
            Config(feeds=[], refresh_interval_seconds=3600),
            adapters=[adapter],
            map_backend=map_backend,
        )

    with TestClient(create_app(factory)) as test_client:
        # Wait for the first cycle so every test starts from loaded data
        assert test_client.post("/api/refresh").status_code == 200
        yield test_client


class TestHazards:
    """Tests for the records and stats endpoints."""

    def test_get_hazards(self, client):
        response = client.get("/api/hazards")

        assert response.status_code == 200
        data = response.json()
        assert [r["id"] for r in data["records"]] == ["q1", "f1"]
        assert data["stats"]["total"] == 2
        assert data["stats"]["high_severity_count"] == 1
        assert data["criteria"]["min_severity"] == 3
        assert data["selected"] is None
        assert data["last_error"] is None

    def test_get_stats(self, client):
        data = client.get("/api/stats").json()
        assert data["counts_by_category"] == {"earthquake": 1, "fire": 1}

    def test_select_hazard(self, client):
        response = client.post("/api/hazards/select", json={"feed": "usgs", "id": "q1"})

        assert response.status_code == 200
        assert response.json()["id"] == "q1"
        assert client.get("/api/hazards").json()["selected"] == ["usgs", "q1"]

    def test_select_unknown_hazard(self, client):
        response = client.post("/api/hazards/select", json={"feed": "usgs", "id": "missing"})
        assert response.status_code == 404


class TestCriteria:
    """Tests for the criteria endpoints."""

    def test_update_min_severity(self, client):
        response = client.put("/api/criteria", json={"min_severity": 4})

        assert response.status_code == 200
        assert response.json()["displayed"] == 1
        assert response.json()["criteria"]["min_severity"] == 4

    def test_update_categories(self, client):
        response = client.put("/api/criteria", json={"categories": ["Fire"]})

        assert response.status_code == 200
        assert response.json()["criteria"]["categories"] == ["fire"]
        assert [r["id"] for r in client.get("/api/hazards").json()["records"]] == ["f1"]

    def test_rejects_unknown_time_range(self, client):
        response = client.put("/api/criteria", json={"max_age_hours": 12})
        assert response.status_code == 422

    def test_rejects_out_of_range_severity(self, client):
        response = client.put("/api/criteria", json={"min_severity": 9})
        assert response.status_code == 422


class TestRefresh:
    """Tests for POST /api/refresh."""

    def test_refresh_success(self, client):
        data = client.post("/api/refresh").json()
        assert data["status"] == "success"
        assert data["failed_feeds"] == {}

    def test_refresh_failure_keeps_data(self, client, adapter):
        adapter.error = FetchError("usgs", "HTTP 503")

        response = client.post("/api/refresh")

        assert response.status_code == 503
        hazards = client.get("/api/hazards").json()
        assert len(hazards["records"]) == 2
        assert "usgs" in hazards["last_error"]


class TestNotifications:
    """Tests for the notification endpoints."""

    def test_list_and_dismiss(self, client):
        notifications = client.get("/api/notifications").json()
        assert notifications[0]["kind"] == "info"
        assert notifications[0]["title"] == "Data Updated"

        notification_id = notifications[0]["id"]
        assert client.delete(f"/api/notifications/{notification_id}").status_code == 200
        assert client.delete(f"/api/notifications/{notification_id}").status_code == 404


class TestMap:
    """Tests for GET /api/map.png."""

    def test_returns_png(self, client, map_backend):
        map_backend.render = Mock(return_value=MapImageResult(success=True, image_bytes=b"PNG"))

        response = client.get("/api/map.png")

        assert response.status_code == 200
        assert response.headers["content-type"] == "image/png"
        assert response.content == b"PNG"

    def test_render_failure(self, client, map_backend):
        map_backend.render = Mock(return_value=MapImageResult(success=False, error="tiles down"))

        response = client.get("/api/map.png")

        assert response.status_code == 502


class TestHealth:
    def test_health(self, client):
        data = client.get("/health").json()
        assert data["status"] == "healthy"
        assert data["loading_state"] == "idle"
