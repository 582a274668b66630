from fastapi import APIRouter, Depends, HTTPException, Path

from ..schemas import UserCreate, UserOut, UserUpdate
from ..store import WatchStore
from .utils import get_store, not_found

router = APIRouter(tags=["users"])


@router.post("/users", response_model=UserOut)
def create_user(payload: UserCreate, store: WatchStore = Depends(get_store)):
    try:
        return store.create_user(payload)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/users/{user_id}", response_model=UserOut)
def get_user(user_id: int = Path(..., ge=1), store: WatchStore = Depends(get_store)):
    user = store.get_user(user_id)
    if user is None:
        raise not_found("User")
    return user


@router.put("/users/{user_id}", response_model=UserOut)
def update_user(payload: UserUpdate, user_id: int = Path(..., ge=1), store: WatchStore = Depends(get_store)):
    try:
        user = store.update_user(user_id, payload)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if user is None:
        raise not_found("User")
    return user
