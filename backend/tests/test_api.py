"""API integration tests."""

from __future__ import annotations

import orjson
import pytest
from fastapi.testclient import TestClient

from transformation_tracker.app import app

LOCATIONS = {
    "current_location": "file:///work/report.docx",
    "final_location": "file:///done/report.docx",
    "metacard_location": "file:///source/report.docx",
}


@pytest.fixture
def client() -> TestClient:
    with TestClient(app) as test_client:
        yield test_client


def _create(client: TestClient) -> str:
    resp = client.post("/transformations", json=LOCATIONS)
    assert resp.status_code == 200
    return resp.json()["id"]


def test_health(client: TestClient) -> None:
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["ok"] is True


def test_transformation_lifecycle(client: TestClient) -> None:
    transform_id = _create(client)
    status = client.get(f"/transformations/{transform_id}").json()
    assert status["state"] == "IN_PROGRESS"
    assert status["metadata"] == []
    assert status["final_location"] == LOCATIONS["final_location"]

    added = client.post(f"/transformations/{transform_id}/metadata/summary")
    assert added.status_code == 200
    assert added.json()["state"] == "IN_PROGRESS"

    done = client.put(
        f"/transformations/{transform_id}/metadata/summary/content",
        content=b"short summary",
        headers={"Content-Type": "text/plain"},
    )
    assert done.status_code == 200
    assert done.json()["state"] == "SUCCESSFUL"
    assert done.json()["content_length"] == len(b"short summary")

    content = client.get(f"/transformations/{transform_id}/metadata/summary/content")
    assert content.status_code == 200
    assert content.content == b"short summary"
    assert content.headers["content-type"].startswith("text/plain")

    status = client.get(f"/transformations/{transform_id}").json()
    assert status["state"] == "SUCCESSFUL"
    assert status["completion_time"] is not None

    record = client.get(f"/transformations/{transform_id}/record")
    assert record.status_code == 200
    data = orjson.loads(record.content)
    assert data["clazz"] == "transformation"
    assert data["metadatas"][0]["content_type"] == "text/plain"


def test_failure_and_conflicts(client: TestClient) -> None:
    transform_id = _create(client)
    client.post(f"/transformations/{transform_id}/metadata/index")

    failed = client.put(
        f"/transformations/{transform_id}/metadata/index/failure",
        json={"message": "indexer crashed"},
    )
    assert failed.status_code == 200
    assert failed.json()["failure_reason"] == "TRANSFORMATION_FAILURE"

    again = client.put(f"/transformations/{transform_id}/metadata/index/content", content=b"late")
    assert again.status_code == 409
    assert "already completed" in again.json()["detail"]

    late_add = client.post(f"/transformations/{transform_id}/metadata/other")
    assert late_add.status_code == 409

    no_content = client.get(f"/transformations/{transform_id}/metadata/index/content")
    assert no_content.status_code == 404


def test_not_found_and_delete(client: TestClient) -> None:
    missing = client.get("/transformations/does-not-exist")
    assert missing.status_code == 404
    assert missing.json()["details"]["transform_id"] == "does-not-exist"

    transform_id = _create(client)
    missing_meta = client.get(f"/transformations/{transform_id}/metadata/nothing")
    assert missing_meta.status_code == 404
    assert missing_meta.json()["details"]["metadata_type"] == "nothing"

    assert client.delete(f"/transformations/{transform_id}").json() == {"status": "ok"}
    assert client.delete(f"/transformations/{transform_id}").status_code == 404
    assert client.get(f"/transformations/{transform_id}").status_code == 404


def test_content_limit_is_a_bad_request(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("XFRM_MAX_CONTENT_BYTES", "4")
    with TestClient(app) as client:
        transform_id = _create(client)
        client.post(f"/transformations/{transform_id}/metadata/big")
        resp = client.put(f"/transformations/{transform_id}/metadata/big/content", content=b"too large")
        assert resp.status_code == 400
        assert resp.json()["details"]["field"] == "content"
        status = client.get(f"/transformations/{transform_id}/metadata/big").json()
        assert status["state"] == "IN_PROGRESS"


def test_invalid_create_request(client: TestClient) -> None:
    resp = client.post("/transformations", json={**LOCATIONS, "final_location": ""})
    assert resp.status_code == 422
