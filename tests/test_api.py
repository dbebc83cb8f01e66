import pytest
from fastapi.testclient import TestClient

from api import server
from core.state import StateManager
from pipeline.orchestrator import Orchestrator


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setattr(server, "orch", Orchestrator(state=StateManager()))
    return TestClient(server.app)


def test_scan_endpoint(client, loopback, closed_port):
    srv = loopback(b"ready\n")
    resp = client.post(
        "/api/scan",
        json={"target": "127.0.0.1", "ports": [closed_port, srv.port], "workers": 2, "timeout": 1.0, "max_retries": 1},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["open_ports"] == [{"port": srv.port, "banner": "ready"}]
    assert body["total_ports"] == 2
    assert body["open_count"] == 1

    stored = client.get("/api/results", params={"target": "127.0.0.1"}).json()["results"]
    assert len(stored) == 1


def test_scan_rejects_empty_ports(client):
    resp = client.post("/api/scan", json={"target": "127.0.0.1", "ports": []})
    assert resp.status_code == 400


def test_scan_rejects_bad_worker_count(client):
    resp = client.post("/api/scan", json={"target": "127.0.0.1", "ports": [80], "workers": 0})
    assert resp.status_code == 400


def test_health(client):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json()["elk_configured"] is False
