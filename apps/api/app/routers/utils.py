from fastapi import Depends, HTTPException
from sqlmodel import Session

from services.catalog.adapters.tmdb import TMDBAdapter
from services.catalog.adapters.vixsrc import EmbedAdapter

from ..db import get_session
from ..settings import settings
from ..store import WatchStore


def get_store(session: Session = Depends(get_session)) -> WatchStore:
    return WatchStore(session)


def get_tmdb() -> TMDBAdapter:
    return TMDBAdapter(api_key=settings.tmdb_api_key, base_url=settings.tmdb_base_url, language=settings.default_language)


def get_embed() -> EmbedAdapter:
    return EmbedAdapter(
        base_url=settings.embed_base_url,
        primary_color=settings.embed_primary_color,
        secondary_color=settings.embed_secondary_color,
        language=settings.default_language,
    )


def not_found(what: str) -> HTTPException:
    return HTTPException(status_code=404, detail=f"{what} not found")
