"""
Test error normalization at the HTTP boundary.
"""
import pytest
from fastapi.testclient import TestClient

from event_api.core.errors import (
    ErrorCode,
    EventNotFoundError,
    EventValidationError,
    InvalidEventIdError,
    StoreError,
)
from event_api.main import app
from event_api.routes.deps import get_event_store
from event_api.stores.memory_store import MemoryEventStore


class StoreDownStore(MemoryEventStore):
    def stats(self) -> dict:
        raise StoreError("Error retrieving statistics", detail="connection refused")

    def ping(self) -> bool:
        return False


class ExplodingStore(MemoryEventStore):
    def count_events(self, event_type=None) -> int:
        raise RuntimeError("unexpected failure")


@pytest.fixture
def client_for():
    clients = []

    def make(store):
        app.dependency_overrides[get_event_store] = lambda: store
        client = TestClient(app, raise_server_exceptions=False)
        clients.append(client)
        return client

    yield make
    app.dependency_overrides.clear()


class TestErrorTaxonomy:
    def test_error_codes(self):
        assert EventValidationError([]).code is ErrorCode.VALIDATION_ERROR
        assert EventNotFoundError(1).code is ErrorCode.EVENT_NOT_FOUND
        assert InvalidEventIdError("x").code is ErrorCode.INVALID_EVENT_ID
        assert StoreError("boom").code is ErrorCode.STORE_ERROR

    def test_str_includes_code(self):
        assert str(EventNotFoundError(7)) == "EVENT_NOT_FOUND: Event not found"

    def test_store_error_detail_defaults_to_message(self):
        assert StoreError("boom").detail == "boom"


class TestErrorResponses:
    def test_store_error_in_development(self, client_for, monkeypatch):
        monkeypatch.setenv("APP_ENV", "development")

        response = client_for(StoreDownStore()).get("/api/events/stats")

        assert response.status_code == 500
        assert response.json() == {
            "success": False,
            "message": "Error retrieving statistics",
            "error": "connection refused",
        }

    def test_store_error_in_production_hides_detail(self, client_for, monkeypatch):
        monkeypatch.setenv("APP_ENV", "production")

        response = client_for(StoreDownStore()).get("/api/events/stats")

        assert response.status_code == 500
        assert response.json()["error"] == "Internal server error"

    def test_unhandled_error(self, client_for, monkeypatch):
        monkeypatch.setenv("APP_ENV", "production")

        response = client_for(ExplodingStore()).get("/api/events")

        assert response.status_code == 500
        assert response.json() == {
            "success": False,
            "message": "Something went wrong!",
            "error": "Internal server error",
        }

    def test_health_reports_disconnected_store(self, client_for):
        response = client_for(StoreDownStore()).get("/api/health")

        assert response.status_code == 200
        assert response.json()["database"] == {
            "backend": "memory",
            "status": "Disconnected",
            "eventCount": None,
        }

    def test_malformed_json_body(self, client_for):
        response = client_for(MemoryEventStore()).post(
            "/api/events",
            content="{not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["success"] is False
        assert response.json()["errors"] == [
            {"field": "body", "message": "Request body must be valid JSON"}
        ]
