import uuid

import pytest
from fastapi.testclient import TestClient

from app.core.database import get_db
from app.services.prioritization import PrioritizationService, get_prioritization_service
from main import app


@pytest.fixture
def client(db_session, repository):
    """테스트 DB 세션 주입 (lifespan 미실행)"""

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_prioritization_service] = lambda: PrioritizationService(remote=None)
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}
    assert client.get("/").json()["status"] == "running"


def test_batch_ingest_partial_success(client):
    response = client.post("/api/feedback/batch", json={"items": [
        {"content": "Checkout crashes", "ticket_id": "T-1", "channel": "chat"},
        {"content": "Where did I come from"},
        {"content": "Five stars", "store": "ios", "star_rating": 5, "app_version": "3.0"},
    ]})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["ingested_count"] == 2
    assert body["failed_count"] == 1
    assert len(body["feedback_ids"]) == 2
    assert body["errors"][0]["index"] == 1


def test_batch_without_errors_omits_errors_field(client):
    response = client.post("/api/feedback/batch", json={"items": [
        {"source": "social", "content": "Nice update"},
    ]})

    assert response.status_code == 200
    assert "errors" not in response.json()


def test_batch_requires_items(client):
    assert client.post("/api/feedback/batch", json={}).status_code == 422


def test_create_single_feedback(client):
    response = client.post("/api/feedback", json={
        "content": "Login is broken on android",
        "platform": "reddit",
        "author_handle": "u/someone",
    })

    assert response.status_code == 201
    body = response.json()
    assert body["source"] == "social"
    assert body["category"]["name"] == "Bug Report"
    assert body["metadata"] == {"platform": "reddit", "author_handle": "u/someone"}
    assert body["tags"] == ["login", "android", "platform:reddit"]


def test_create_single_feedback_rejects_unknown_shape(client):
    response = client.post("/api/feedback", json={"content": "mystery"})

    assert response.status_code == 400
    assert "Unable to determine feedback source" in response.json()["detail"]


def test_list_and_get_feedback(client):
    client.post("/api/feedback/batch", json={"items": [
        {"source": "support", "content": "Billing page confusing"},
        {"source": "nps", "content": "Billing is confusing"},
    ]})

    listing = client.get("/api/feedback", params={"source": "support", "limit": 10})
    assert listing.status_code == 200
    data = listing.json()
    assert data["pagination"] == {"page": 1, "limit": 10, "total": 1, "total_pages": 1}

    feedback_id = data["data"][0]["id"]
    detail = client.get(f"/api/feedback/{feedback_id}").json()
    assert detail["content"] == "Billing page confusing"
    assert [s["content"] for s in detail["similar_feedback"]] == ["Billing is confusing"]


def test_list_rejects_invalid_query(client):
    assert client.get("/api/feedback", params={"limit": 500}).status_code == 422
    assert client.get("/api/feedback", params={"sort_by": "content"}).status_code == 422


def test_get_missing_feedback(client):
    assert client.get(f"/api/feedback/{uuid.uuid4()}").status_code == 404


def test_patch_feedback(client):
    created = client.post("/api/feedback", json={"source": "support", "content": "Please call me"}).json()

    response = client.patch(f"/api/feedback/{created['id']}", json={"status": "resolved", "notes": "called"})

    assert response.status_code == 200
    assert response.json()["status"] == "resolved"
    assert response.json()["notes"] == "called"
    assert client.patch(f"/api/feedback/{uuid.uuid4()}", json={"notes": "x"}).status_code == 404


def test_insights_endpoints(client):
    client.post("/api/feedback/batch", json={"items": [
        {"content": "Payment crash", "ticket_id": "T-9", "channel": "phone",
         "customer_email": "cfo@corp.com", "customer_tier": "enterprise"},
    ]})

    urgent = client.get("/api/insights/urgent").json()
    assert urgent["summary"]["total_urgent"] == 1

    trends = client.get("/api/insights/trends", params={"period": "day"}).json()
    assert trends["volume"]["total"] == 1

    summary = client.get("/api/insights/summary").json()
    assert summary["metrics"]["total_feedback"] == 1

    assert client.get("/api/insights/trends", params={"period": "decade"}).status_code == 422


def test_patch_null_unassigns_and_null_status_is_rejected(client):
    created = client.post("/api/feedback", json={"source": "support", "content": "Please call me"}).json()
    client.patch(f"/api/feedback/{created['id']}", json={"assigned_to": "kim@team.com", "notes": "vip"})

    response = client.patch(f"/api/feedback/{created['id']}", json={"assigned_to": None})

    assert response.status_code == 200
    assert response.json()["assigned_to"] is None
    assert response.json()["notes"] == "vip"
    assert client.patch(f"/api/feedback/{created['id']}", json={"status": None}).status_code == 422


def test_urgent_queue_rejects_unbounded_window(client):
    assert client.get("/api/insights/urgent", params={"hours": 10**12}).status_code == 422
    assert client.get("/api/insights/urgent", params={"hours": 8760}).status_code == 200
