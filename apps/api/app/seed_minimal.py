from __future__ import annotations

from datetime import timedelta

from sqlmodel import Session

from .db import init_db, get_engine
from .models import MediaKind, utcnow
from .schemas import ListItemCreate, ProgressUpsert
from .settings import settings
from .store import WatchStore


def seed_minimal() -> int:
    """Default user plus a little watch state for local development. Returns the user id."""
    init_db()
    engine = get_engine()
    with Session(engine) as session:
        store = WatchStore(session)
        user = store.ensure_default_user(settings.default_user_email, settings.default_user_name, settings.default_language)

        watchlist = [
            {"tmdb_id": 550, "media_type": MediaKind.movie, "title": "Fight Club", "poster_path": "/pB8BM7pdSp6B6Ih7QZ4DrQ3PmJK.jpg"},
            {"tmdb_id": 1396, "media_type": MediaKind.tv, "title": "Breaking Bad", "poster_path": "/ztkUQFLlC19CCMYHW9o1zWhJRNq.jpg"},
        ]
        for item in watchlist:
            store.add_to_watchlist(user.id, ListItemCreate(**item))

        now = utcnow()
        progress = [
            {"tmdb_id": 603, "media_type": MediaKind.movie, "title": "The Matrix", "current_time": 842, "duration": 8160},
            {"tmdb_id": 1396, "media_type": MediaKind.tv, "title": "Breaking Bad", "season": 1, "episode": 3, "current_time": 1210, "duration": 2880},
        ]
        for i, entry in enumerate(progress):
            store.upsert_progress(user.id, ProgressUpsert(last_watched=now - timedelta(minutes=i), **entry))
        return user.id


if __name__ == "__main__":
    seed_minimal()
