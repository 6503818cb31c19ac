"""
Tests for the HTTP surface, with the store dependency swapped for the in-memory double.
"""

import pytest
from fastapi.testclient import TestClient

from conftest import RecordingSleep
from app.api.routes import get_retry_policy, get_store
from app.core.retry import RetryPolicy
from app.main import app


@pytest.fixture
def client(front_desk_store):
    app.dependency_overrides[get_store] = lambda: front_desk_store
    app.dependency_overrides[get_retry_policy] = lambda: RetryPolicy(sleep=RecordingSleep())
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_auto_schedule(client):
    response = client.post("/api/schedules/auto", json={"department_id": "dept-front", "time_slot_id": "slot-0900"})

    assert response.status_code == 200
    body = response.json()
    assert body["individual_id"] == "ind-a"
    assert body["status"] == "scheduled"
    assert body["department"] == {"name": "Front Desk"}
    assert body["time_slot"]["start_time"] == "09:00:00"


def test_auto_schedule_unknown_slot(client):
    response = client.post("/api/schedules/auto", json={"department_id": "dept-front", "time_slot_id": "missing"})

    assert response.status_code == 404
    assert response.json()["detail"]["code"] == "NOT_FOUND"


def test_auto_schedule_without_candidates(client, front_desk_store):
    front_desk_store.availability.clear()

    response = client.post("/api/schedules/auto", json={"department_id": "dept-front", "time_slot_id": "slot-0900"})

    assert response.status_code == 409
    assert response.json()["detail"]["code"] == "NO_CANDIDATE_AVAILABLE"


def test_batch_schedule(client):
    response = client.post("/api/schedules/batch", json={"date": "2024-01-01"})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["total_processed"] == 2
    assert len(body["successes"]) == 2
    assert body["failures"] == []

    again = client.post("/api/schedules/batch", json={"date": "2024-01-01"}).json()
    assert again["total_processed"] == 0


def test_batch_schedule_rejects_bad_date(client):
    response = client.post("/api/schedules/batch", json={"date": "not-a-date"})
    assert response.status_code == 422


def test_batch_store_failure(client, front_desk_store):
    front_desk_store.fail("load_time_slots", *[ConnectionError("down")] * 3)

    response = client.post("/api/schedules/batch", json={"date": "2024-01-01"})

    assert response.status_code == 500
    assert response.json()["detail"]["code"] == "DATABASE_ERROR"


def test_list_schedules(client):
    client.post("/api/schedules/batch", json={"date": "2024-01-01"})

    response = client.get("/api/schedules", params={"date": "2024-01-01"})

    assert response.status_code == 200
    assert response.json()["total"] == 2


def test_generate_time_slots(client, front_desk_store):
    response = client.post(
        "/api/time-slots/generate",
        json={"start_date": "2024-02-01", "end_date": "2024-02-02", "start_hour": 9, "end_hour": 10},
    )

    assert response.status_code == 200
    assert response.json()["total_slots"] == 4
    assert front_desk_store.calls["upsert_time_slots"] == 2


def test_generate_time_slots_invalid_hours(client):
    response = client.post(
        "/api/time-slots/generate",
        json={"start_date": "2024-02-01", "start_hour": 12, "end_hour": 9},
    )
    assert response.status_code == 422
