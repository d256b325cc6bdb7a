"""
Unit tests for the exercise mapping API routes.

Run: pytest tests/unit/test_exercise_mapping_routes.py -v
"""

import pytest
from unittest.mock import patch

BASE = "/api/exercise-mapping"
UNKNOWN_QUERY = "some totally unknown movement xyz"


class TestResolveRoutes:
    """Tests for the resolve endpoints"""

    def test_resolve(self, test_client):
        response = test_client.post(f"{BASE}/resolve", json={"query": "bench"})

        assert response.status_code == 200
        data = response.json()
        assert data["exercise_id"] == "bench-press"
        assert data["match_type"] == "exact"
        assert data["needs_review"] is False
        assert data["exercise"]["name"] == "Bench Press"

    def test_resolve_unknown_falls_back(self, test_client):
        response = test_client.post(f"{BASE}/resolve", json={"query": UNKNOWN_QUERY, "context": "Monday"})

        assert response.status_code == 200
        data = response.json()
        assert data["match_type"] == "generic"
        assert data["confidence"] == 0.2
        assert len(data["alternatives"]) == 4

    def test_resolve_requires_query(self, test_client):
        response = test_client.post(f"{BASE}/resolve", json={})

        assert response.status_code == 422

    def test_resolve_batch(self, test_client):
        response = test_client.post(f"{BASE}/resolve/batch", json={"queries": ["squats", "pushups"]})

        assert response.status_code == 200
        data = response.json()
        assert [r["exercise_id"] for r in data["results"]] == ["squat", "push-up"]
        assert data["needs_review"] is True

    def test_resolve_batch_empty(self, test_client):
        response = test_client.post(f"{BASE}/resolve/batch", json={"queries": []})

        assert response.status_code == 200
        assert response.json() == {"results": [], "needs_review": False}

    def test_resolve_workout(self, test_client):
        response = test_client.post(
            f"{BASE}/resolve/workout",
            json={"title": "Push Day", "description": "bench; squats"}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["candidates"] == ["Push Day", "bench", "squats"]
        assert len(data["results"]) == 3


class TestMappingRoutes:
    """Tests for user mapping and correction endpoints"""

    def test_create_and_list(self, test_client):
        response = test_client.post(
            f"{BASE}/mappings",
            json={"query": "DB Row", "exercise_id": "dumbbell-row"}
        )

        assert response.status_code == 201
        assert response.json()["query"] == "db row"

        listed = test_client.get(f"{BASE}/mappings").json()
        assert [m["query"] for m in listed] == ["db row"]

    def test_create_unknown_exercise(self, test_client):
        response = test_client.post(
            f"{BASE}/mappings",
            json={"query": "db row", "exercise_id": "zottman-curl"}
        )

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "EXERCISE_NOT_FOUND"

    def test_create_empty_query_rejected(self, test_client):
        response = test_client.post(
            f"{BASE}/mappings",
            json={"query": "", "exercise_id": "squat"}
        )

        assert response.status_code == 422

    def test_delete_mapping(self, test_client):
        test_client.post(f"{BASE}/mappings", json={"query": "db row", "exercise_id": "dumbbell-row"})

        response = test_client.delete(f"{BASE}/mappings/db row")

        assert response.status_code == 204
        assert test_client.get(f"{BASE}/mappings").json() == []

    def test_delete_missing_mapping(self, test_client):
        response = test_client.delete(f"{BASE}/mappings/nothing")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "USER_MAPPING_NOT_FOUND"

    def test_correction(self, test_client):
        response = test_client.post(
            f"{BASE}/corrections",
            json={"query": "bench", "exercise_id": "dumbbell-row"}
        )

        assert response.status_code == 200
        assert response.json()["source"] == "correction"

        resolved = test_client.post(f"{BASE}/resolve", json={"query": "bench"}).json()
        assert resolved["exercise_id"] == "dumbbell-row"
        assert resolved["match_type"] == "user_mapping"

        stats = test_client.get(f"{BASE}/statistics").json()
        assert stats["user_corrections"] == 1


class TestInsightRoutes:
    """Tests for unmapped and statistics endpoints"""

    def test_unmapped(self, test_client):
        test_client.post(f"{BASE}/resolve", json={"query": UNKNOWN_QUERY})

        response = test_client.get(f"{BASE}/unmapped")

        assert response.status_code == 200
        data = response.json()
        assert data[0]["query"] == UNKNOWN_QUERY
        assert data[0]["occurrence_count"] == 1

    def test_statistics(self, test_client):
        test_client.post(f"{BASE}/resolve", json={"query": "bench"})
        test_client.post(f"{BASE}/resolve", json={"query": UNKNOWN_QUERY})

        data = test_client.get(f"{BASE}/statistics").json()

        assert data["total_attempts"] == 2
        assert data["successful_matches"] == 1
        assert data["unmapped_count"] == 1


class TestBackupRoutes:
    """Tests for export, import and reset"""

    def test_export_clear_import(self, test_client):
        # Arrange
        test_client.post(f"{BASE}/mappings", json={"query": "db row", "exercise_id": "dumbbell-row"})
        exported = test_client.get(f"{BASE}/export")
        assert exported.status_code == 200
        assert exported.headers["content-type"].startswith("application/json")

        # Act
        cleared = test_client.delete(f"{BASE}/data")
        empty = test_client.get(f"{BASE}/mappings").json()
        imported = test_client.post(f"{BASE}/import", json=exported.json())

        # Assert
        assert cleared.status_code == 204
        assert empty == []
        assert imported.status_code == 200
        assert imported.json() == {"imported": True}
        assert [m["query"] for m in test_client.get(f"{BASE}/mappings").json()] == ["db row"]

    @pytest.mark.parametrize("payload", [
        {},
        {"user_mappings": [{"query": "db row"}]},
        {"statistics": {"total_attempts": 1, "successful_matches": 5, "last_updated_at": "2026-01-05T10:00:00Z"}},
    ])
    def test_import_malformed(self, test_client, payload):
        response = test_client.post(f"{BASE}/import", json=payload)

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "INVALID_MAPPING_IMPORT"


class TestHealth:
    """Tests for the health endpoint"""

    def test_health(self, test_client, service):
        with patch("services.exercise_mapping_service.get_exercise_mapping_service", return_value=service):
            response = test_client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["mapping_store"]["backend"] == "memory"
