import pytest
import requests
from fastapi.testclient import TestClient

from app.main import app
from app.models import MediaKind
from app.schemas import ListItemCreate, ProgressUpsert
from app.store import StoreUnavailable
from services.player import cache as keys
from services.player.cache import ClientCache
from services.player.client import StoreClient
from services.player.state import WatchState
from services.player.tracker import ProgressTracker

from helpers import FIGHT_CLUB, USER


class FakeHTTP:
    def __init__(self, status=200, body=None, exc=None):
        self.status = status
        self.body = body
        self.exc = exc
        self.calls = []

    def request(self, method, url, timeout=None, **kwargs):
        self.calls.append((method, url, kwargs))
        if self.exc:
            raise self.exc
        r = requests.Response()
        r.status_code = self.status
        r._content = b"[]" if self.body is None else self.body
        return r


def test_network_error_is_store_unavailable():
    api = StoreClient(base_url="http://store.test/api", session=FakeHTTP(exc=requests.ConnectTimeout("slow")))
    with pytest.raises(StoreUnavailable):
        api.list_progress(1)


def test_server_error_is_store_unavailable():
    api = StoreClient(base_url="http://store.test/api", session=FakeHTTP(status=502))
    with pytest.raises(StoreUnavailable):
        api.list_watchlist(1)


def test_not_found_is_none_or_false():
    api = StoreClient(base_url="http://store.test/api", session=FakeHTTP(status=404))
    assert api.get_user(9) is None
    assert api.remove_progress("1-550-movie--") is False
    assert api.remove_from_watchlist(1, 550, MediaKind.movie) is False


def test_payload_omits_empty_fields():
    http = FakeHTTP(body=b'{"id":"1-550-movie--","user_id":1,"tmdb_id":550,"media_type":"movie","title":"Fight Club",'
                         b'"current_time":30,"duration":8340,"last_watched":"2025-01-01T20:00:00"}')
    api = StoreClient(base_url="http://store.test/api/", session=http)
    out = api.upsert_progress(1, ProgressUpsert(tmdb_id=550, media_type="movie", title="Fight Club", current_time=30, duration=8340))
    assert out.current_time == 30
    method, url, kwargs = http.calls[0]
    assert (method, url) == ("POST", "http://store.test/api/users/1/watch-progress")
    assert "season" not in kwargs["json"]
    assert kwargs["json"]["media_type"] == "movie"


def test_end_to_end_against_the_api():
    uid = 301
    api = StoreClient(base_url="http://testserver/api", session=TestClient(app))
    state = WatchState(api, ClientCache(prefix="e2e"))
    tracker = ProgressTracker(state, inline=True)
    tracker.open_session(uid, FIGHT_CLUB, "Fight Club")
    for second in range(1, 48):
        tracker.record_sample(uid, FIGHT_CLUB, second, 8340)
    tracker.flush_on_close(uid, FIGHT_CLUB)

    rows = api.list_progress(uid)
    assert [(r.tmdb_id, r.current_time) for r in rows] == [(550, 47)]

    added, entry = api.toggle_watchlist(uid, ListItemCreate(tmdb_id=550, media_type="movie", title="Fight Club"))
    assert added is True and entry.tmdb_id == 550
    assert api.remove_from_watchlist(uid, 550, MediaKind.movie) is True
    assert api.list_watchlist(uid) == []
    assert api.remove_progress(rows[0].id) is True


@pytest.mark.parametrize("status", [400, 401, 409, 429])
def test_client_errors_are_store_unavailable(status):
    api = StoreClient(base_url="http://store.test/api", session=FakeHTTP(status=status))
    with pytest.raises(StoreUnavailable) as info:
        api.list_progress(1)
    assert isinstance(info.value.__cause__, requests.HTTPError)
    assert str(status) in str(info.value)


def test_conflicting_store_keeps_samples_local():
    api = StoreClient(base_url="http://store.test/api", session=FakeHTTP(status=409))
    state = WatchState(api, ClientCache(prefix="conflict"))
    tracker = ProgressTracker(state, inline=True)
    tracker.open_session(1, FIGHT_CLUB, "Fight Club")
    assert tracker.record_sample(1, FIGHT_CLUB, 30, 8340) is True
    assert tracker.flush_on_close(1, FIGHT_CLUB, 33, 8340) is True
    assert tracker.get_resume_position(1, FIGHT_CLUB) == 33


def test_load_falls_back_to_cache_on_client_error():
    cache = ClientCache(prefix="rate-limited")
    cache.set(keys.MY_LIST, [{"id": 7, "user_id": 1, "tmdb_id": 550, "media_type": "movie", "title": "Fight Club",
                           "added_at": "2025-01-01T20:00:00"}])
    api = StoreClient(base_url="http://store.test/api", session=FakeHTTP(status=429))
    state = WatchState(api, cache, default_user=USER)
    state.load()
    assert [e.title for e in state.watchlist] == ["Fight Club"]
