from __future__ import annotations

from healthcare import __version__


def test_root_and_health(client):
    r = client.get("/")
    assert r.status_code == 200
    assert r.json()["version"] == __version__

    r = client.get("/api/health")
    assert r.json()["status"] == "OK"


def test_info_lists_upload_limits(client):
    body = client.get("/api/info").json()
    assert body["upload"]["max_size_mb"] == 10
    assert ".pdf" in body["upload"]["allowed_extensions"]
    assert body["endpoints"]["documents"] == "/api/documents"


def test_db_test_counts_seeded_admin(client):
    r = client.get("/api/db-test")
    assert r.status_code == 200
    assert r.json()["users"] == 1


def test_unknown_endpoint(client):
    r = client.get("/api/unknown")
    assert r.status_code == 404
    body = r.json()
    assert body["message"] == "Endpoint not found"
    assert body["requested_path"] == "/api/unknown"


def test_validation_errors_are_flattened(client):
    r = client.post("/api/auth/login", json={})
    assert r.status_code == 400
    body = r.json()
    assert body["message"] == "Validation failed"
    assert {e["field"] for e in body["errors"]} == {"email", "password"}
