from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query

from services.catalog.adapters.vixsrc import EmbedAdapter

from ..models import ContentRef, MediaKind
from ..schemas import ProgressOut, ProgressUpsert, ResumeOut
from ..store import WatchStore
from .utils import get_embed, get_store, not_found

router = APIRouter(tags=["progress"])


@router.get("/users/{user_id}/watch-progress", response_model=list[ProgressOut])
def list_progress(user_id: int = Path(..., ge=1), store: WatchStore = Depends(get_store)):
    return store.list_progress(user_id)


@router.post("/users/{user_id}/watch-progress", response_model=ProgressOut)
def save_progress(payload: ProgressUpsert, user_id: int = Path(..., ge=1), store: WatchStore = Depends(get_store)):
    return store.upsert_progress(user_id, payload)


@router.get("/users/{user_id}/watch-progress/resume", response_model=ResumeOut)
def resume_position(
    user_id: int = Path(..., ge=1),
    tmdb_id: int = Query(..., ge=1),
    media_type: MediaKind = Query(...),
    season: Optional[int] = Query(default=None, ge=1),
    episode: Optional[int] = Query(default=None, ge=1),
    language: Optional[str] = None,
    store: WatchStore = Depends(get_store),
    embed: EmbedAdapter = Depends(get_embed),
):
    ref = ContentRef(tmdb_id=tmdb_id, media_type=media_type, season=season, episode=episode)
    record = store.get_progress(user_id, ref)
    position = record.current_time if record is not None and record.current_time > 0 else None
    try:
        url = embed.url_for(ref, language=language, start_at=position)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return ResumeOut(position=position, embed_url=url)


@router.delete("/watch-progress/{progress_id}")
def delete_progress(progress_id: str, store: WatchStore = Depends(get_store)):
    if not store.remove_progress(progress_id):
        raise not_found("Progress")
    return {"success": True}
