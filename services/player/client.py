from __future__ import annotations

import logging
import os
from typing import Any, Optional

import requests

from app.models import MediaKind
from app.schemas import ListEntryOut, ListItemCreate, ProgressOut, ProgressUpsert, UserOut
from app.store import StoreUnavailable

logger = logging.getLogger(__name__)


class StoreClient:
    """HTTP backend for WatchState, speaking to the watch-state API.

    Mirrors the WatchStore method surface. Network failures, timeouts and 5xx
    answers raise StoreUnavailable, as does any other 4xx; 404s come back as
    None/False.
    Writes are not retried.
    """

    def __init__(self, base_url: str | None = None, timeout: float = 5, session: requests.Session | None = None):
        self.base_url = (base_url or os.getenv("WATCHSTATE_API_URL", "http://localhost:8000/api")).rstrip("/")
        self.timeout = timeout
        self.http = session or requests.Session()

    def _call(self, method: str, path: str, **kwargs: Any) -> Optional[requests.Response]:
        url = f"{self.base_url}{path}"
        try:
            r = self.http.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise StoreUnavailable(f"{method} {path}: {e.__class__.__name__}") from e
        if r.status_code == 404:
            return None
        if r.status_code >= 400:
            # conflicts, rate limits and gateway auth failures alike mean the write did not land
            cause = requests.HTTPError(f"HTTP {r.status_code} for {method} {url}", response=r)
            raise StoreUnavailable(f"{method} {path}: HTTP {r.status_code}") from cause
        return r

    def get_user(self, user_id: int) -> Optional[UserOut]:
        r = self._call("GET", f"/users/{user_id}")
        return UserOut.model_validate(r.json()) if r is not None else None

    def list_progress(self, user_id: int) -> list[ProgressOut]:
        r = self._call("GET", f"/users/{user_id}/watch-progress")
        return [ProgressOut.model_validate(x) for x in (r.json() if r is not None else [])]

    def upsert_progress(self, user_id: int, payload: ProgressUpsert) -> ProgressOut:
        r = self._call("POST", f"/users/{user_id}/watch-progress", json=payload.model_dump(mode="json", exclude_none=True))
        if r is None:
            raise StoreUnavailable(f"upsert_progress for user {user_id} answered 404")
        return ProgressOut.model_validate(r.json())

    def remove_progress(self, progress_id: str) -> bool:
        return self._call("DELETE", f"/watch-progress/{progress_id}") is not None

    def list_watchlist(self, user_id: int) -> list[ListEntryOut]:
        r = self._call("GET", f"/users/{user_id}/my-list")
        return [ListEntryOut.model_validate(x) for x in (r.json() if r is not None else [])]

    def toggle_watchlist(self, user_id: int, item: ListItemCreate) -> tuple[bool, Optional[ListEntryOut]]:
        r = self._call("POST", f"/users/{user_id}/my-list/toggle", json=item.model_dump(mode="json"))
        if r is None:
            raise StoreUnavailable(f"toggle_watchlist for user {user_id} answered 404")
        body = r.json()
        entry = body.get("item")
        return bool(body.get("added")), ListEntryOut.model_validate(entry) if entry else None

    def remove_from_watchlist(self, user_id: int, tmdb_id: int, media_type: MediaKind) -> bool:
        kind = getattr(media_type, "value", media_type)
        return self._call("DELETE", f"/users/{user_id}/my-list/{tmdb_id}/{kind}") is not None
