"""Durable, deduplicated storage for watch progress and the watchlist.

Identity is enforced by the schema, not by check-then-insert:

* ``watch_progress.id`` is derived from (user, tmdb_id, media_type, season,
  episode), so an upsert is one ``INSERT ... ON CONFLICT (id) DO UPDATE``.
* ``my_list`` carries a unique constraint on (user_id, tmdb_id, media_type);
  adds are ``INSERT ... ON CONFLICT DO NOTHING``.

Every SQLAlchemy failure is rolled back and surfaced as ``StoreUnavailable``.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import delete
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select

from .metrics import STORE_ERRORS
from .models import ContentRef, MediaKind, MyListItem, User, WatchProgress, utcnow
from .schemas import ListItemCreate, ProgressUpsert, UserCreate, UserUpdate

logger = logging.getLogger(__name__)


class StoreUnavailable(RuntimeError):
    """The persistent store could not be reached or refused the operation."""


class WatchStore:
    def __init__(self, session: Session):
        self.session = session

    @contextmanager
    def _guard(self, op: str) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as e:
            try:
                self.session.rollback()
            except SQLAlchemyError:
                pass
            STORE_ERRORS.labels(op=op).inc()
            logger.warning("store_error", extra={"op": op, "error": str(e)})
            raise StoreUnavailable(f"{op} failed: {e.__class__.__name__}") from e

    def _insert(self):
        if self.session.get_bind().dialect.name == "postgresql":
            return pg_insert
        return sqlite_insert

    # --- users ---

    def create_user(self, payload: UserCreate) -> User:
        """Raises ValueError when the email is already registered."""
        with self._guard("create_user"):
            user = User(**payload.model_dump())
            self.session.add(user)
            try:
                self.session.commit()
            except IntegrityError:
                self.session.rollback()
                raise ValueError(f"email already registered: {payload.email}")
            self.session.refresh(user)
            return user

    def get_user(self, user_id: int) -> Optional[User]:
        with self._guard("get_user"):
            return self.session.get(User, user_id)

    def update_user(self, user_id: int, payload: UserUpdate) -> Optional[User]:
        """Raises ValueError when the new email belongs to another user."""
        with self._guard("update_user"):
            user = self.session.get(User, user_id)
            if user is None:
                return None
            for k, v in payload.model_dump(exclude_unset=True).items():
                setattr(user, k, v)
            self.session.add(user)
            try:
                self.session.commit()
            except IntegrityError:
                self.session.rollback()
                raise ValueError(f"email already registered: {payload.email}")
            self.session.refresh(user)
            return user

    def ensure_default_user(self, email: str, name: str, language: str = "it") -> User:
        with self._guard("ensure_default_user"):
            user = self.session.exec(select(User).where(User.email == email)).first()
            if user is None:
                user = User(email=email, name=name, language=language)
                self.session.add(user)
                self.session.commit()
                self.session.refresh(user)
                logger.info("default user created", extra={"user_id": user.id})
            return user

    # --- watch progress ---

    def upsert_progress(self, user_id: int, payload: ProgressUpsert) -> WatchProgress:
        ref = payload.ref
        key = ref.progress_key(user_id)
        watched = payload.last_watched or utcnow()
        table = WatchProgress.__table__
        with self._guard("upsert_progress"):
            stmt = self._insert()(table).values(
                id=key,
                user_id=user_id,
                tmdb_id=ref.tmdb_id,
                media_type=ref.media_type,
                title=payload.title,
                poster_path=payload.poster_path,
                current_time=payload.current_time,
                duration=payload.duration,
                season=ref.season,
                episode=ref.episode,
                last_watched=watched,
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=[table.c.id],
                set_={
                    "title": payload.title,
                    "poster_path": payload.poster_path,
                    "current_time": payload.current_time,
                    "duration": payload.duration,
                    "last_watched": watched,
                },
            )
            self.session.exec(stmt)
            self.session.commit()
            return self.session.exec(
                select(WatchProgress).where(WatchProgress.id == key).execution_options(populate_existing=True)
            ).one()

    def get_progress(self, user_id: int, ref: ContentRef) -> Optional[WatchProgress]:
        with self._guard("get_progress"):
            return self.session.get(WatchProgress, ref.progress_key(user_id))

    def list_progress(self, user_id: int) -> list[WatchProgress]:
        with self._guard("list_progress"):
            q = (
                select(WatchProgress)
                .where(WatchProgress.user_id == user_id)
                .order_by(WatchProgress.last_watched.desc(), WatchProgress.id)
            )
            return list(self.session.exec(q).all())

    def remove_progress(self, progress_id: str) -> bool:
        with self._guard("remove_progress"):
            res = self.session.exec(delete(WatchProgress).where(WatchProgress.id == progress_id))
            self.session.commit()
            return (res.rowcount or 0) > 0

    # --- watchlist ---

    def _list_row(self, user_id: int, tmdb_id: int, media_type: MediaKind) -> Optional[MyListItem]:
        return self.session.exec(
            select(MyListItem)
            .where(
                MyListItem.user_id == user_id,
                MyListItem.tmdb_id == tmdb_id,
                MyListItem.media_type == media_type,
            )
            .execution_options(populate_existing=True)
        ).first()

    def _insert_list_row(self, user_id: int, item: ListItemCreate) -> None:
        stmt = self._insert()(MyListItem.__table__).values(
            user_id=user_id,
            tmdb_id=item.tmdb_id,
            media_type=item.media_type,
            title=item.title,
            poster_path=item.poster_path,
            added_at=utcnow(),
        )
        self.session.exec(stmt.on_conflict_do_nothing(index_elements=["user_id", "tmdb_id", "media_type"]))

    def add_to_watchlist(self, user_id: int, item: ListItemCreate) -> MyListItem:
        with self._guard("add_to_watchlist"):
            self._insert_list_row(user_id, item)
            self.session.commit()
            return self._list_row(user_id, item.tmdb_id, item.media_type)

    def toggle_watchlist(self, user_id: int, item: ListItemCreate) -> tuple[bool, Optional[MyListItem]]:
        """Remove the entry when present, insert it otherwise.

        Returns ``(added, entry)``; ``entry`` is None when the entry was removed.
        """
        with self._guard("toggle_watchlist"):
            res = self.session.exec(
                delete(MyListItem).where(
                    MyListItem.user_id == user_id,
                    MyListItem.tmdb_id == item.tmdb_id,
                    MyListItem.media_type == item.media_type,
                )
            )
            if (res.rowcount or 0) > 0:
                self.session.commit()
                return False, None
            self._insert_list_row(user_id, item)
            self.session.commit()
            return True, self._list_row(user_id, item.tmdb_id, item.media_type)

    def remove_from_watchlist(self, user_id: int, tmdb_id: int, media_type: MediaKind) -> bool:
        with self._guard("remove_from_watchlist"):
            res = self.session.exec(
                delete(MyListItem).where(
                    MyListItem.user_id == user_id,
                    MyListItem.tmdb_id == tmdb_id,
                    MyListItem.media_type == media_type,
                )
            )
            self.session.commit()
            return (res.rowcount or 0) > 0

    def is_in_watchlist(self, user_id: int, tmdb_id: int, media_type: MediaKind) -> bool:
        with self._guard("is_in_watchlist"):
            return self._list_row(user_id, tmdb_id, media_type) is not None

    def list_watchlist(self, user_id: int) -> list[MyListItem]:
        with self._guard("list_watchlist"):
            q = (
                select(MyListItem)
                .where(MyListItem.user_id == user_id)
                .order_by(MyListItem.added_at.desc(), MyListItem.id.desc())
            )
            return list(self.session.exec(q).all())
