from fastapi.testclient import TestClient
from app.main import app


client = TestClient(app)


def test_metrics_endpoint_exposes_counters():
    # Hit the store so the request and write counters have samples
    client.get("/api/users/401/my-list")
    client.post("/api/users/401/watch-progress", json={"tmdb_id": 603, "media_type": "movie", "title": "The Matrix", "current_time": 30, "duration": 60})
    m = client.get("/metrics")
    assert m.status_code == 200
    text = m.text
    assert "watchstate_request_latency_ms_bucket" in text
    assert "watchstate_progress_writes_total" in text
    assert "watchstate_store_errors_total" in text


def test_request_id_header_roundtrip():
    r = client.get("/readyz", headers={"X-Request-ID": "abc-123"})
    assert r.headers["X-Request-ID"] == "abc-123"
    assert client.get("/readyz").headers["X-Request-ID"]
