from __future__ import annotations

import os
from typing import Any
from urllib.parse import urlencode


class EmbedAdapter:
    """Builds player URLs for the vixsrc embed provider.

    The provider takes the TMDB id (plus season/episode for series) in the path
    and `startAt` in seconds as a query param.
    """

    def __init__(
        self,
        base_url: str | None = None,
        primary_color: str | None = None,
        secondary_color: str | None = None,
        language: str | None = None,
    ):
        self.base_url = (base_url or os.getenv("EMBED_BASE_URL", "https://vixsrc.to")).rstrip("/")
        self.primary_color = primary_color if primary_color is not None else os.getenv("EMBED_PRIMARY_COLOR", "B20710")
        self.secondary_color = secondary_color if secondary_color is not None else os.getenv("EMBED_SECONDARY_COLOR", "170000")
        self.language = language or os.getenv("DEFAULT_LANGUAGE", "it")

    def _query(self, language: str | None, start_at: int | None) -> str:
        params: list[tuple[str, str]] = [("lang", language or self.language)]
        if self.primary_color:
            params.append(("primaryColor", self.primary_color))
        if self.secondary_color:
            params.append(("secondaryColor", self.secondary_color))
        if start_at:
            params.append(("startAt", str(int(start_at))))
        return urlencode(params)

    def movie_url(self, tmdb_id: int, language: str | None = None, start_at: int | None = None) -> str:
        return f"{self.base_url}/movie/{tmdb_id}?{self._query(language, start_at)}"

    def tv_url(self, tmdb_id: int, season: int, episode: int, language: str | None = None, start_at: int | None = None) -> str:
        return f"{self.base_url}/tv/{tmdb_id}/{season}/{episode}?{self._query(language, start_at)}"

    def url_for(self, ref: Any, language: str | None = None, start_at: int | None = None) -> str:
        kind = getattr(ref.media_type, "value", ref.media_type)
        if kind == "movie":
            return self.movie_url(ref.tmdb_id, language=language, start_at=start_at)
        if ref.season is None or ref.episode is None:
            raise ValueError("series playback needs season and episode")
        return self.tv_url(ref.tmdb_id, ref.season, ref.episode, language=language, start_at=start_at)
