from __future__ import annotations

import logging
import os
from typing import Any, Dict

import requests
from .util import with_backoff
from .types import MediaType, TimeWindow

logger = logging.getLogger(__name__)

IMAGE_BASE_URL = "https://image.tmdb.org/t/p"


class CatalogError(RuntimeError):
    def __init__(self, path: str, status: int | None = None, detail: str | None = None):
        self.path = path
        self.status = status
        super().__init__(f"TMDB API error: {status if status is not None else detail} ({path})")


def image_url(path: str | None, size: str = "w500") -> str:
    """Poster (w500) or backdrop (w1280) URL for a TMDB image path; empty when there is none."""
    if not path:
        return ""
    return f"{IMAGE_BASE_URL}/{size}{path}"


class TMDBAdapter:
    """Thin GET client for the TMDB v3 API. Returns decoded JSON untouched."""

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        language: str | None = None,
        timeout: float = 10,
        retries: int = 3,
    ):
        self.api_key = api_key if api_key is not None else os.getenv("TMDB_API_KEY", "")
        self.base_url = (base_url or os.getenv("TMDB_BASE_URL", "https://api.themoviedb.org/3")).rstrip("/")
        self.language = language or os.getenv("DEFAULT_LANGUAGE", "it")
        self.timeout = timeout
        self.retries = retries

    def _get(self, path: str, **params: Any) -> Dict[str, Any]:
        query = {"api_key": self.api_key, "language": params.pop("language", None) or self.language}
        query.update({k: v for k, v in params.items() if v is not None})
        url = f"{self.base_url}{path}"
        try:
            r = with_backoff(
                lambda: requests.get(url, params=query, timeout=self.timeout),
                retries=self.retries,
            )
        except requests.RequestException as e:
            logger.warning("tmdb request failed", extra={"path": path, "error": str(e)})
            raise CatalogError(path, detail=e.__class__.__name__) from e
        if not r.ok:
            logger.warning("tmdb error status", extra={"path": path, "status": r.status_code})
            raise CatalogError(path, status=r.status_code)
        return r.json()

    # --- lists ---

    def popular(self, media_type: MediaType, page: int = 1, language: str | None = None) -> Dict[str, Any]:
        return self._get(f"/{media_type}/popular", page=page, language=language)

    def trending(self, media_type: MediaType, time_window: TimeWindow = "week", language: str | None = None) -> Dict[str, Any]:
        return self._get(f"/trending/{media_type}/{time_window}", language=language)

    def discover(self, media_type: MediaType, with_genres: str | None = None, page: int = 1, language: str | None = None) -> Dict[str, Any]:
        return self._get(
            f"/discover/{media_type}",
            with_genres=with_genres,
            page=page,
            language=language,
            sort_by="popularity.desc",
        )

    def genres(self, media_type: MediaType, language: str | None = None) -> Dict[str, Any]:
        return self._get(f"/genre/{media_type}/list", language=language)

    def search_multi(self, query: str, page: int = 1, language: str | None = None) -> Dict[str, Any]:
        return self._get("/search/multi", query=query, page=page, language=language)

    # --- details ---

    def details(self, media_type: MediaType, tmdb_id: int, language: str | None = None) -> Dict[str, Any]:
        return self._get(f"/{media_type}/{tmdb_id}", language=language)

    def season(self, tv_id: int, season_number: int, language: str | None = None) -> Dict[str, Any]:
        return self._get(f"/tv/{tv_id}/season/{season_number}", language=language)
