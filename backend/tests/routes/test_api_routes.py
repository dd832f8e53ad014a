import time

import pytest
from fastapi.testclient import TestClient

from docreel.main import app

DOCUMENT = "Intro\nHello there. This is great.\n\nChapter One\nMore content here."


@pytest.fixture
def client(container):
    with TestClient(app) as test_client:
        yield test_client


def _upload(client, text=DOCUMENT):
    response = client.post("/api/upload", data={"text": text})
    assert response.status_code == 200
    return response.json()


def _wait_for_export(client, export_id, attempts=100):
    for _ in range(attempts):
        data = client.get(f"/api/export/status/{export_id}").json()
        if data["status"] in ("completed", "failed"):
            return data
        time.sleep(0.02)
    raise AssertionError("export did not finish")


# --- Full pipeline ---
def test_document_to_exported_video(client, container, clock):
    uploaded = _upload(client)
    session_id = uploaded["session_id"]
    assert [c["title"] for c in uploaded["chunks"]] == ["Intro", "Chapter One"]
    assert all(c["status"] == "pending" for c in uploaded["chunks"])

    chunk_ids = [c["id"] for c in uploaded["chunks"]]
    for chunk_id in chunk_ids:
        response = client.post("/api/scripts/generate", json={"chunk_id": chunk_id})
        assert response.status_code == 200
        script = response.json()["script"]
        assert script["script_chunks"]
        assert all(len(segment) <= 200 for segment in script["script_chunks"])

    # Videos are not ready yet
    response = client.post("/api/export", json={"session_id": session_id})
    assert response.status_code == 400
    assert response.json()["error_kind"] == "validation"

    video_ids = []
    for chunk_id in chunk_ids:
        response = client.post("/api/videos/generate", json={"chunk_id": chunk_id})
        assert response.status_code == 200
        assert response.json()["status"] == "pending"
        video_ids.append(response.json()["id"])

    clock.advance(45)
    partial = client.get(f"/api/videos/status/{video_ids[0]}").json()
    assert partial["status"] == "processing"
    assert partial["progress"] == 45

    clock.advance(60)
    for video_id in video_ids:
        data = client.get(f"/api/videos/status/{video_id}").json()
        assert data["status"] == "completed"
        assert data["video_url"].endswith(f"{video_id}.mp4")

    chunks = client.get(f"/api/chunks/session/{session_id}").json()
    assert chunks["status"] == "completed"
    assert all(c["status"] == "video_ready" for c in chunks["chunks"])

    response = client.post("/api/export", json={"session_id": session_id, "include_intro": True})
    assert response.status_code == 200
    export = _wait_for_export(client, response.json()["id"])

    assert export["status"] == "completed"
    assert export["progress"] == 100
    assert export["download_url"] == f"/api/export/download/{export['id']}"

    download = client.get(export["download_url"])
    assert download.status_code == 200
    assert download.headers["content-type"] == "video/mp4"
    assert download.content.startswith(b"Text Input")


# --- Upload ---
def test_upload_file(client):
    files = {"file": ("notes.txt", b"Overview\nSome body text.", "text/plain")}
    response = client.post("/api/upload", files=files)

    assert response.status_code == 200
    session_id = response.json()["session_id"]

    session = client.get(f"/api/upload/session/{session_id}").json()
    assert session["file_name"] == "notes.txt"
    assert session["chunks"][0]["title"] == "Overview"


def test_upload_requires_input(client):
    response = client.post("/api/upload", data={"file_name": "nothing.txt"})
    assert response.status_code == 400
    assert response.json()["message"] == "No file or text provided"


def test_upload_rejects_unsupported_type(client):
    files = {"file": ("image.png", b"\x89PNG", "image/png")}
    response = client.post("/api/upload", files=files)
    assert response.status_code == 400
    assert "Unsupported file type" in response.json()["message"]


def test_upload_too_large(client, monkeypatch):
    monkeypatch.setattr("docreel.routes.upload.MAX_UPLOAD_SIZE", 10)
    files = {"file": ("big.txt", b"x" * 100, "text/plain")}
    response = client.post("/api/upload", files=files)
    assert response.status_code == 413


def test_unknown_session(client):
    response = client.get("/api/upload/session/missing")
    assert response.status_code == 404
    assert response.json() == {"error": True, "error_kind": "not_found", "message": "Session not found"}


# --- Chunks ---
def test_chunk_edit_reorder_delete(client):
    uploaded = _upload(client)
    session_id = uploaded["session_id"]
    first, second = [c["id"] for c in uploaded["chunks"]]

    response = client.put(f"/api/chunks/{first}", json={"title": "Renamed", "content": ""})
    assert response.status_code == 200
    assert response.json()["title"] == "Renamed"
    assert response.json()["content"] == "Hello there. This is great."

    reordered = client.post(f"/api/chunks/session/{session_id}/reorder", json={"chunk_ids": [second, first]})
    assert [c["id"] for c in reordered.json()["chunks"]] == [second, first]
    assert [c["order"] for c in reordered.json()["chunks"]] == [0, 1]

    assert client.delete(f"/api/chunks/{second}").json()["message"] == "Chunk deleted successfully"
    remaining = client.get(f"/api/chunks/session/{session_id}").json()["chunks"]
    assert [(c["id"], c["order"]) for c in remaining] == [(first, 0)]

    assert client.get(f"/api/chunks/{second}").status_code == 404


# --- Scripts ---
def test_script_edit_and_fetch(client):
    chunk_id = _upload(client)["chunks"][0]["id"]
    assert client.get(f"/api/scripts/{chunk_id}").status_code == 404

    script = {
        "title": "Edited",
        "script_chunks": ["A line."],
        "camera_direction": "Wide",
        "environment": "Park",
    }
    response = client.put(f"/api/scripts/{chunk_id}", json={"script": script})
    assert response.status_code == 200

    assert client.get(f"/api/scripts/{chunk_id}").json() == script
    assert client.get(f"/api/chunks/{chunk_id}").json()["status"] == "script_ready"


def test_generate_requires_chunk_id(client):
    response = client.post("/api/scripts/generate", json={})
    assert response.status_code == 400
    assert response.json()["error_kind"] == "validation"


def test_video_requires_script(client):
    chunk_id = _upload(client)["chunks"][0]["id"]
    response = client.post("/api/videos/generate", json={"chunk_id": chunk_id})
    assert response.status_code == 400


# --- Connectivity and health ---
def test_connection_checks_without_providers(client):
    scripts = client.get("/api/scripts/test-connection").json()
    videos = client.get("/api/videos/test-connection").json()
    assert scripts["connected"] is False
    assert videos["connected"] is False


def test_health_and_request_id(client):
    response = client.get("/health", headers={"X-Request-ID": "req-abc"})

    assert response.status_code == 200
    assert response.headers["X-Request-ID"] == "req-abc"
    data = response.json()
    assert data["status"] == "healthy"
    assert data["checks"]["video_provider"] == "mock"
    assert "ffmpeg" in data["checks"]["tools"]


def test_unknown_export(client):
    assert client.get("/api/export/status/missing").status_code == 404
    assert client.get("/api/export/download/missing").status_code == 404
