from fastapi import APIRouter, Depends, Path

from ..models import MediaKind
from ..schemas import InListOut, ListEntryOut, ListItemCreate, ToggleResult
from ..store import WatchStore
from .utils import get_store, not_found

router = APIRouter(tags=["watchlist"])


@router.get("/users/{user_id}/my-list", response_model=list[ListEntryOut])
def list_watchlist(user_id: int = Path(..., ge=1), store: WatchStore = Depends(get_store)):
    return store.list_watchlist(user_id)


@router.post("/users/{user_id}/my-list", response_model=ListEntryOut)
def add_to_watchlist(payload: ListItemCreate, user_id: int = Path(..., ge=1), store: WatchStore = Depends(get_store)):
    # Idempotent: adding an entry already in the list returns the existing row
    return store.add_to_watchlist(user_id, payload)


@router.post("/users/{user_id}/my-list/toggle", response_model=ToggleResult)
def toggle_watchlist(payload: ListItemCreate, user_id: int = Path(..., ge=1), store: WatchStore = Depends(get_store)):
    added, entry = store.toggle_watchlist(user_id, payload)
    return ToggleResult(added=added, item=ListEntryOut.model_validate(entry) if entry is not None else None)


@router.get("/users/{user_id}/my-list/{tmdb_id}/{media_type}", response_model=InListOut)
def check_watchlist(
    user_id: int = Path(..., ge=1),
    tmdb_id: int = Path(..., ge=1),
    media_type: MediaKind = Path(...),
    store: WatchStore = Depends(get_store),
):
    return InListOut(is_in_list=store.is_in_watchlist(user_id, tmdb_id, media_type))


@router.delete("/users/{user_id}/my-list/{tmdb_id}/{media_type}")
def remove_from_watchlist(
    user_id: int = Path(..., ge=1),
    tmdb_id: int = Path(..., ge=1),
    media_type: MediaKind = Path(...),
    store: WatchStore = Depends(get_store),
):
    if not store.remove_from_watchlist(user_id, tmdb_id, media_type):
        raise not_found("Item in list")
    return {"success": True}
