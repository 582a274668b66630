from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Literal

MediaType = Literal["movie", "tv"]
TimeWindow = Literal["day", "week"]


@dataclass
class CatalogItem:
    """The slice of a TMDB result the watch-state core relies on."""
    tmdb_id: int
    media_type: MediaType | None
    title: str
    poster_path: str | None
    backdrop_path: str | None = None
    raw: dict[str, Any] | None = None

    @classmethod
    def from_tmdb(cls, data: dict[str, Any], media_type: MediaType | None = None) -> "CatalogItem":
        # movies carry "title", series carry "name"
        title = data.get("title") or data.get("name") or ""
        kind = data.get("media_type") or media_type
        if kind not in ("movie", "tv"):
            kind = media_type
        return cls(
            tmdb_id=int(data["id"]),
            media_type=kind,
            title=str(title).strip(),
            poster_path=data.get("poster_path"),
            backdrop_path=data.get("backdrop_path"),
            raw=data,
        )


@dataclass
class Page:
    page: int
    total_pages: int
    total_results: int
    items: list[CatalogItem]

    @classmethod
    def from_tmdb(cls, data: dict[str, Any], media_type: MediaType | None = None) -> "Page":
        items = []
        for r in data.get("results") or []:
            # multi search also returns people
            if r.get("media_type") == "person" or "id" not in r:
                continue
            items.append(CatalogItem.from_tmdb(r, media_type))
        return cls(
            page=int(data.get("page") or 1),
            total_pages=int(data.get("total_pages") or 0),
            total_results=int(data.get("total_results") or 0),
            items=items,
        )
