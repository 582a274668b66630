"""Client-side shadow of a user's watch state.

``WatchState`` is passed explicitly to whoever needs it (tracker, UI layer).
Its lifecycle is explicit too: call ``load()`` once on start, and every
mutation persists the client cache before returning.

Reads fall back to the cache when the backend raises ``StoreUnavailable``;
failed writes are logged and dropped while the local copy keeps the change.
"""
from __future__ import annotations

import logging
import threading
from typing import Any, Iterable, Optional, Protocol

from pydantic import ValidationError

from app.metrics import CACHE_FALLBACKS, STORE_ERRORS
from app.models import ContentRef, MediaKind, utcnow
from app.schemas import ListEntryOut, ListItemCreate, ProgressOut, ProgressUpsert, UserOut
from app.settings import settings
from app.store import StoreUnavailable

from . import cache as keys
from .cache import ClientCache
from .client import StoreClient

logger = logging.getLogger(__name__)


class Backend(Protocol):
    def list_progress(self, user_id: int) -> list[Any]: ...
    def upsert_progress(self, user_id: int, payload: ProgressUpsert) -> Any: ...
    def remove_progress(self, progress_id: str) -> bool: ...
    def list_watchlist(self, user_id: int) -> list[Any]: ...
    def toggle_watchlist(self, user_id: int, item: ListItemCreate) -> tuple[bool, Any]: ...
    def remove_from_watchlist(self, user_id: int, tmdb_id: int, media_type: MediaKind) -> bool: ...


def _validated(model, items: Iterable[Any]) -> list:
    out = []
    for x in items or []:
        try:
            out.append(model.model_validate(x))
        except ValidationError:
            logger.warning("dropping malformed cached entry", extra={"model": model.__name__})
    return out


class WatchState:
    def __init__(self, backend: Backend, cache: ClientCache, default_user: UserOut | None = None, language: str = "it"):
        self.backend = backend
        self.cache = cache
        self.user: Optional[UserOut] = default_user
        self.language = language
        self.progress: list[ProgressOut] = []
        self.watchlist: list[ListEntryOut] = []
        self._lock = threading.RLock()

    # --- lifecycle ---

    def load(self) -> "WatchState":
        cached_user = self.cache.get(keys.USER)
        if cached_user:
            try:
                self.user = UserOut.model_validate(cached_user)
            except ValidationError:
                logger.warning("cached user undecodable, keeping default")
        self.language = self.cache.get(keys.LANGUAGE) or self.language

        if self.user is not None:
            uid = self.user.id
            try:
                self.progress = _validated(ProgressOut, self.backend.list_progress(uid))
            except StoreUnavailable as e:
                logger.warning("loading watch progress failed, using cache", extra={"error": str(e)})
                CACHE_FALLBACKS.labels(key=keys.WATCH_PROGRESS).inc()
                self.progress = _validated(ProgressOut, self.cache.get(keys.WATCH_PROGRESS, []))
            try:
                self.watchlist = _validated(ListEntryOut, self.backend.list_watchlist(uid))
            except StoreUnavailable as e:
                logger.warning("loading my list failed, using cache", extra={"error": str(e)})
                CACHE_FALLBACKS.labels(key=keys.MY_LIST).inc()
                self.watchlist = _validated(ListEntryOut, self.cache.get(keys.MY_LIST, []))
        self.persist()
        return self

    def persist(self) -> None:
        with self._lock:
            if self.user is not None:
                self.cache.set(keys.USER, self.user.model_dump(mode="json"))
            self.cache.set(keys.LANGUAGE, self.language)
            self.cache.set(keys.WATCH_PROGRESS, [p.model_dump(mode="json") for p in self.progress])
            self.cache.set(keys.MY_LIST, [e.model_dump(mode="json") for e in self.watchlist])

    def set_user(self, user: UserOut | None) -> None:
        with self._lock:
            self.user = user
            if user is None:
                self.cache.remove(keys.USER)
        self.persist()

    def set_language(self, language: str) -> None:
        with self._lock:
            self.language = language
        self.persist()

    # --- progress ---

    def find_progress(self, user_id: int, ref: ContentRef) -> Optional[ProgressOut]:
        with self._lock:
            for p in self.progress:
                if p.user_id == user_id and p.ref == ref:
                    return p
        return None

    def apply_progress(self, record: Any) -> ProgressOut:
        """Upsert a record into the local list by (user, ContentRef)."""
        rec = ProgressOut.model_validate(record)
        with self._lock:
            for i, p in enumerate(self.progress):
                if p.user_id == rec.user_id and p.ref == rec.ref:
                    self.progress[i] = rec
                    break
            else:
                self.progress.insert(0, rec)
        self.persist()
        return rec

    def local_record(self, user_id: int, payload: ProgressUpsert) -> ProgressOut:
        return ProgressOut(
            id=payload.ref.progress_key(user_id),
            user_id=user_id,
            last_watched=payload.last_watched or utcnow(),
            **payload.model_dump(exclude={"last_watched"}),
        )

    def remove_progress(self, progress_id: str) -> bool:
        try:
            removed = self.backend.remove_progress(progress_id)
        except StoreUnavailable as e:
            STORE_ERRORS.labels(op="client_remove_progress").inc()
            logger.warning("removing progress failed", extra={"progress_id": progress_id, "error": str(e)})
            return False
        if removed:
            with self._lock:
                self.progress = [p for p in self.progress if p.id != progress_id]
            self.persist()
        return removed

    # --- watchlist ---

    def in_watchlist(self, user_id: int, tmdb_id: int, media_type: MediaKind) -> bool:
        with self._lock:
            return any(e.user_id == user_id and e.tmdb_id == tmdb_id and e.media_type == media_type for e in self.watchlist)

    def _drop_entry(self, user_id: int, tmdb_id: int, media_type: MediaKind) -> None:
        self.watchlist = [
            e for e in self.watchlist
            if not (e.user_id == user_id and e.tmdb_id == tmdb_id and e.media_type == media_type)
        ]

    def toggle_watchlist(self, user_id: int, ref: ContentRef, title: str, poster_path: str | None = None) -> bool:
        """Add or remove ``ref`` from the list. Returns True when it was added."""
        tmdb_id, kind = ref.list_key()
        item = ListItemCreate(tmdb_id=tmdb_id, media_type=kind, title=title, poster_path=poster_path)
        try:
            added, entry = self.backend.toggle_watchlist(user_id, item)
        except StoreUnavailable as e:
            STORE_ERRORS.labels(op="client_toggle_watchlist").inc()
            logger.warning("toggling my list failed, applying locally", extra={"tmdb_id": tmdb_id, "error": str(e)})
            added = not self.in_watchlist(user_id, tmdb_id, kind)
            entry = None
            if added:
                entry = ListEntryOut(id=0, user_id=user_id, added_at=utcnow(), **item.model_dump())
        with self._lock:
            self._drop_entry(user_id, tmdb_id, kind)
            if added and entry is not None:
                self.watchlist.insert(0, ListEntryOut.model_validate(entry))
        self.persist()
        return added

    def remove_from_watchlist(self, user_id: int, tmdb_id: int, media_type: MediaKind) -> bool:
        try:
            removed = self.backend.remove_from_watchlist(user_id, tmdb_id, media_type)
        except StoreUnavailable as e:
            STORE_ERRORS.labels(op="client_remove_from_watchlist").inc()
            logger.warning("removing from my list failed", extra={"tmdb_id": tmdb_id, "error": str(e)})
            return False
        with self._lock:
            self._drop_entry(user_id, tmdb_id, media_type)
        self.persist()
        return removed


def default_user() -> UserOut:
    return UserOut(
        id=settings.default_user_id,
        email=settings.default_user_email,
        name=settings.default_user_name,
        language=settings.default_language,
    )


def open_state(base_url: str | None = None, http: Any = None) -> WatchState:
    """WatchState over the HTTP API, cached under the configured prefix, loaded.

    Starts as the configured default user unless the cache remembers another one.
    """
    cache = ClientCache(prefix=settings.cache_prefix, redis_url=settings.resolved_redis_url())
    backend = StoreClient(base_url, session=http)
    return WatchState(backend, cache, default_user=default_user(), language=settings.default_language).load()
