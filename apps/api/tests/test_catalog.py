import json

import pytest
import requests
from fastapi.testclient import TestClient

from app.main import app
from services.catalog.adapters import util
from services.catalog.adapters.tmdb import CatalogError, TMDBAdapter, image_url
from services.catalog.adapters.types import CatalogItem, Page


client = TestClient(app)


def _response(status=200, body=None):
    r = requests.Response()
    r.status_code = status
    r._content = json.dumps(body if body is not None else {}).encode()
    return r


class FakeGet:
    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def __call__(self, url, params=None, timeout=None):
        self.calls.append((url, params))
        out = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(out, Exception):
            raise out
        return out


@pytest.fixture(autouse=True)
def no_sleep(monkeypatch):
    monkeypatch.setattr(util.time, "sleep", lambda s: None)


def test_popular_passes_key_language_and_page(monkeypatch):
    fake = FakeGet(_response(body={"page": 2, "results": []}))
    monkeypatch.setattr(requests, "get", fake)
    out = TMDBAdapter(api_key="k", base_url="https://tmdb.test/3", language="it").popular("movie", page=2)
    assert out["page"] == 2
    url, params = fake.calls[0]
    assert url == "https://tmdb.test/3/movie/popular"
    assert params == {"api_key": "k", "language": "it", "page": 2}


def test_discover_sorts_by_popularity_and_drops_empty_params(monkeypatch):
    fake = FakeGet(_response(body={"results": []}))
    monkeypatch.setattr(requests, "get", fake)
    TMDBAdapter(api_key="k", base_url="https://tmdb.test/3").discover("tv", language="en")
    _, params = fake.calls[0]
    assert params["sort_by"] == "popularity.desc"
    assert params["language"] == "en"
    assert "with_genres" not in params


def test_retries_then_succeeds(monkeypatch):
    fake = FakeGet(_response(503), requests.ConnectionError("reset"), _response(body={"id": 550}))
    monkeypatch.setattr(requests, "get", fake)
    out = TMDBAdapter(api_key="k", retries=3).details("movie", 550)
    assert out == {"id": 550}
    assert len(fake.calls) == 3


def test_error_status_raises_catalog_error(monkeypatch):
    monkeypatch.setattr(requests, "get", FakeGet(_response(404)))
    with pytest.raises(CatalogError) as exc:
        TMDBAdapter(api_key="k").details("tv", 1)
    assert exc.value.status == 404


def test_network_failure_raises_catalog_error(monkeypatch):
    monkeypatch.setattr(requests, "get", FakeGet(requests.ConnectionError("down")))
    with pytest.raises(CatalogError):
        TMDBAdapter(api_key="k", retries=2).search_multi("matrix")


def test_with_backoff_returns_last_retryable_response():
    delays = []
    r = util.with_backoff(lambda: _response(429), retries=3, base_delay=0.5, sleep=delays.append)
    assert r.status_code == 429
    assert delays == [0.5, 1.0]


def test_page_skips_people_and_reads_titles():
    page = Page.from_tmdb({
        "page": 1,
        "total_pages": 3,
        "total_results": 50,
        "results": [
            {"id": 603, "media_type": "movie", "title": "The Matrix", "poster_path": "/m.jpg"},
            {"id": 1396, "media_type": "tv", "name": "Breaking Bad"},
            {"id": 287, "media_type": "person", "name": "Brad Pitt"},
        ],
    })
    assert [(i.tmdb_id, i.media_type, i.title) for i in page.items] == [(603, "movie", "The Matrix"), (1396, "tv", "Breaking Bad")]
    assert CatalogItem.from_tmdb({"id": 1, "name": "X"}, "tv").media_type == "tv"


def test_image_url():
    assert image_url("/p.jpg") == "https://image.tmdb.org/t/p/w500/p.jpg"
    assert image_url("/b.jpg", "w1280") == "https://image.tmdb.org/t/p/w1280/b.jpg"
    assert image_url(None) == ""


def test_proxy_routes(monkeypatch):
    fake = FakeGet(_response(body={"results": [{"id": 603}]}))
    monkeypatch.setattr(requests, "get", fake)
    assert client.get("/api/tmdb/movie/popular").json() == {"results": [{"id": 603}]}
    assert client.get("/api/tmdb/trending/tv/day").status_code == 200
    assert client.get("/api/tmdb/genre/movie/list").status_code == 200
    assert client.get("/api/tmdb/discover/tv", params={"with_genres": "18"}).status_code == 200
    assert client.get("/api/tmdb/search/multi", params={"query": "matrix"}).status_code == 200
    assert client.get("/api/tmdb/tv/1396/season/1").status_code == 200
    assert client.get("/api/tmdb/movie/603").status_code == 200
    paths = [url.split("/3", 1)[1] for url, _ in fake.calls]
    assert paths == [
        "/movie/popular",
        "/trending/tv/day",
        "/genre/movie/list",
        "/discover/tv",
        "/search/multi",
        "/tv/1396/season/1",
        "/movie/603",
    ]


def test_proxy_rejects_bad_input():
    assert client.get("/api/tmdb/person/popular").status_code == 422
    assert client.get("/api/tmdb/search/multi").status_code == 422


def test_proxy_failure_is_500_with_message(monkeypatch):
    monkeypatch.setattr(requests, "get", FakeGet(_response(500)))
    r = client.get("/api/tmdb/tv/popular")
    assert r.status_code == 500
    assert r.json() == {"error": "Failed to fetch popular TV shows"}
    r = client.get("/api/tmdb/movie/550")
    assert r.json() == {"error": "Failed to fetch movie details"}
