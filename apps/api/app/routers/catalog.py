import logging
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from services.catalog.adapters.tmdb import CatalogError, TMDBAdapter

from ..metrics import CATALOG_ERRORS
from .utils import get_tmdb

router = APIRouter(prefix="/tmdb", tags=["catalog"])
logger = logging.getLogger(__name__)

Kind = Literal["movie", "tv"]
Window = Literal["day", "week"]

_LABELS = {"movie": "movies", "tv": "TV shows"}


def _proxy(endpoint: str, failure: str, call):
    try:
        return call()
    except CatalogError as e:
        CATALOG_ERRORS.labels(endpoint=endpoint).inc()
        logger.error("catalog request failed", extra={"endpoint": endpoint, "status": e.status, "error": str(e)})
        return JSONResponse(status_code=500, content={"error": f"Failed to fetch {failure}"})


@router.get("/{media_type}/popular")
def popular(media_type: Kind, page: int = Query(1, ge=1), language: Optional[str] = None, tmdb: TMDBAdapter = Depends(get_tmdb)):
    return _proxy("popular", f"popular {_LABELS[media_type]}", lambda: tmdb.popular(media_type, page=page, language=language))


@router.get("/trending/{media_type}/{time_window}")
def trending(media_type: Kind, time_window: Window, language: Optional[str] = None, tmdb: TMDBAdapter = Depends(get_tmdb)):
    return _proxy("trending", f"trending {_LABELS[media_type]}", lambda: tmdb.trending(media_type, time_window, language=language))


@router.get("/genre/{media_type}/list")
def genres(media_type: Kind, language: Optional[str] = None, tmdb: TMDBAdapter = Depends(get_tmdb)):
    return _proxy("genres", f"{media_type} genres", lambda: tmdb.genres(media_type, language=language))


@router.get("/discover/{media_type}")
def discover(
    media_type: Kind,
    with_genres: Optional[str] = None,
    page: int = Query(1, ge=1),
    language: Optional[str] = None,
    tmdb: TMDBAdapter = Depends(get_tmdb),
):
    return _proxy(
        "discover",
        f"{_LABELS[media_type]} by genre",
        lambda: tmdb.discover(media_type, with_genres=with_genres, page=page, language=language),
    )


@router.get("/search/multi")
def search_multi(
    query: str = Query(..., min_length=1),
    page: int = Query(1, ge=1),
    language: Optional[str] = None,
    tmdb: TMDBAdapter = Depends(get_tmdb),
):
    return _proxy("search", "search results", lambda: tmdb.search_multi(query, page=page, language=language))


@router.get("/tv/{tv_id}/season/{season_number}")
def season(tv_id: int, season_number: int, language: Optional[str] = None, tmdb: TMDBAdapter = Depends(get_tmdb)):
    return _proxy("season", "season details", lambda: tmdb.season(tv_id, season_number, language=language))


@router.get("/{media_type}/{tmdb_id}")
def details(media_type: Kind, tmdb_id: int, language: Optional[str] = None, tmdb: TMDBAdapter = Depends(get_tmdb)):
    label = "movie details" if media_type == "movie" else "TV show details"
    return _proxy("details", label, lambda: tmdb.details(media_type, tmdb_id, language=language))
