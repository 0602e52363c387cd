"""Tests for the REST API mirror of the MCP tools."""

import pytest
from fastapi.testclient import TestClient

from api_server import app
from store import get_store


@pytest.fixture
def client(store):
    app.dependency_overrides[get_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_lists(client):
    response = client.get("/lists")
    assert response.status_code == 200
    assert response.json()["lists"][:3] == ["Work", "Home", "Smart: All"]


def test_create_then_read(client):
    response = client.post("/lists/Work/reminders", json={
        "title": "Pick up parcel",
        "flagged": True,
        "tags": ["errands", "#Errands"],
        "location": {"title": "Post office", "radiusMeters": 150, "proximity": "arriving"}
    })
    assert response.status_code == 201
    assert response.json() == {"success": True, "message": "Reminder created"}

    response = client.get("/lists/Smart%3A%20Flagged/reminders")
    assert response.status_code == 200
    record = response.json()["reminders"][0]
    assert record["name"] == "Pick up parcel"
    assert record["tags"] == ["errands"]
    assert record["location"] == {
        "title": "Post office", "radiusMeters": 150.0, "proximity": "arriving"
    }


def test_unknown_list_is_404(client):
    response = client.get("/lists/Nonexistent%20List/reminders")
    assert response.status_code == 404
    body = response.json()
    assert body["error"] == "Failed to get reminders"
    assert 'List "Nonexistent List" not found' in body["details"]


def test_create_validation_errors(client):
    response = client.post("/lists/Smart%3A%20Today/reminders", json={"title": "Nope"})
    assert response.status_code == 400
    assert "smart list" in response.json()["details"]

    response = client.post("/lists/Work/reminders", json={
        "title": "Bad", "location": {"latitude": 95, "longitude": 0}
    })
    assert response.status_code == 400

    response = client.post("/lists/Work/reminders", json={"title": "Bad", "priority": 12})
    assert response.status_code == 422


def test_patch_clears_location_and_keeps_tags(client):
    client.post("/lists/Home/reminders", json={
        "title": "Water plants", "tags": ["garden"], "location": {"title": "Balcony"}
    })

    response = client.patch("/lists/Home/reminders/Water%20plants", json={"location": None})
    assert response.status_code == 200

    record = client.get("/lists/Home/reminders").json()["reminders"][0]
    assert record["location"] is None
    assert record["tags"] == ["garden"]


def test_missing_reminder_is_404(client):
    assert client.patch("/lists/Work/reminders/Ghost", json={"flagged": True}).status_code == 404
    assert client.post("/lists/Work/reminders/Ghost/complete").status_code == 404
    assert client.delete("/lists/Work/reminders/Ghost").status_code == 404


def test_complete_delete_and_tags(client):
    client.post("/lists/Work/reminders", json={"title": "A", "tags": ["beta"]})
    client.post("/lists/Home/reminders", json={"title": "B", "tags": ["Alpha"]})

    assert client.get("/tags").json() == {"tags": ["Alpha", "beta"]}
    assert client.get("/tags", params={"list_name": "Home"}).json() == {"tags": ["Alpha"]}

    assert client.post("/lists/Work/reminders/A/complete").status_code == 200
    completed = client.get("/lists/Smart%3A%20Completed/reminders").json()["reminders"]
    assert [r["name"] for r in completed] == ["A"]

    assert client.delete("/lists/Work/reminders/A").status_code == 200
    assert client.get("/lists/Work/reminders").json() == {"reminders": []}
