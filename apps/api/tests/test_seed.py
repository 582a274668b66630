from fastapi.testclient import TestClient

from app.main import app
from app.seed_minimal import seed_minimal


client = TestClient(app)


def test_seed_is_idempotent_and_visible_through_the_api():
    uid = seed_minimal()
    assert seed_minimal() == uid

    progress = client.get(f"/api/users/{uid}/watch-progress").json()
    assert [p["title"] for p in progress][:2] == ["The Matrix", "Breaking Bad"]
    assert client.get(f"/api/users/{uid}/my-list/550/movie").json() == {"is_in_list": True}

    r = client.get(f"/api/users/{uid}/watch-progress/resume", params={"tmdb_id": 1396, "media_type": "tv", "season": 1, "episode": 3})
    assert r.json()["position"] == 1210
