from __future__ import annotations

import json
import logging
from typing import Any

from redis import Redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)

USER = "user"
LANGUAGE = "language"
WATCH_PROGRESS = "watch_progress"
MY_LIST = "my_list"

KEYS = (USER, LANGUAGE, WATCH_PROGRESS, MY_LIST)


class ClientCache:
    """Last-known copies of the user's watch state, JSON encoded.

    Backed by Redis when a URL is given, by a process-local dict otherwise.
    Pure key-value: no merge logic lives here.
    """

    def __init__(self, prefix: str = "watchstate", redis_url: str | None = None):
        self.prefix = prefix
        self._local: dict[str, str] = {}
        self._r: Redis | None = Redis.from_url(redis_url) if redis_url else None

    def _key(self, key: str) -> str:
        return f"{self.prefix}:{key}"

    def _read(self, key: str) -> str | None:
        if self._r is not None:
            try:
                raw = self._r.get(self._key(key))
                return raw.decode() if isinstance(raw, bytes) else raw
            except RedisError as e:
                logger.warning("client cache read failed", extra={"key": key, "error": str(e)})
        return self._local.get(key)

    def _write(self, key: str, raw: str) -> None:
        # always keep the local copy so a flaky redis still leaves something to read
        self._local[key] = raw
        if self._r is not None:
            try:
                self._r.set(self._key(key), raw)
            except RedisError as e:
                logger.warning("client cache write failed", extra={"key": key, "error": str(e)})

    def get(self, key: str, default: Any = None) -> Any:
        raw = self._read(key)
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning("client cache entry undecodable", extra={"key": key})
            return default

    def set(self, key: str, value: Any) -> None:
        self._write(key, json.dumps(value))

    def remove(self, key: str) -> None:
        self._local.pop(key, None)
        if self._r is not None:
            try:
                self._r.delete(self._key(key))
            except RedisError as e:
                logger.warning("client cache delete failed", extra={"key": key, "error": str(e)})

    def clear(self) -> None:
        for key in KEYS:
            self.remove(key)
