from __future__ import annotations

import enum
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field as PydanticField
from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MediaKind(str, enum.Enum):
    movie = "movie"
    tv = "tv"


class ContentRef(BaseModel):
    """Identity of a playable piece of media.

    Two refs are equal only when all four fields match; a missing
    season/episode is its own identity, distinct from any number.
    """

    model_config = ConfigDict(frozen=True)

    tmdb_id: int = PydanticField(ge=1)
    media_type: MediaKind
    season: Optional[int] = PydanticField(default=None, ge=1)
    episode: Optional[int] = PydanticField(default=None, ge=1)

    def progress_key(self, user_id: int) -> str:
        return "-".join([
            str(user_id),
            str(self.tmdb_id),
            self.media_type.value,
            str(self.season) if self.season is not None else "",
            str(self.episode) if self.episode is not None else "",
        ])

    def list_key(self) -> tuple[int, MediaKind]:
        # Watchlist identity ignores season/episode
        return (self.tmdb_id, self.media_type)


class User(SQLModel, table=True):
    __tablename__ = "users"
    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(index=True, unique=True)
    name: str
    avatar: Optional[str] = None
    language: str = Field(default="it")
    created_at: datetime = Field(default_factory=utcnow)


class WatchProgress(SQLModel, table=True):
    __tablename__ = "watch_progress"
    # Derived from (user, tmdb_id, media_type, season, episode), see ContentRef.progress_key
    id: str = Field(primary_key=True, max_length=96)
    user_id: int = Field(index=True)
    tmdb_id: int
    media_type: MediaKind
    title: str
    poster_path: Optional[str] = None
    current_time: int = Field(default=0, ge=0)
    duration: int = Field(default=0, ge=0)
    season: Optional[int] = None
    episode: Optional[int] = None
    last_watched: datetime = Field(default_factory=utcnow, index=True)

    @property
    def ref(self) -> ContentRef:
        return ContentRef(tmdb_id=self.tmdb_id, media_type=self.media_type, season=self.season, episode=self.episode)


class MyListItem(SQLModel, table=True):
    __tablename__ = "my_list"
    __table_args__ = (
        UniqueConstraint("user_id", "tmdb_id", "media_type", name="uq_my_list_user_tmdb_type"),
    )
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(index=True)
    tmdb_id: int
    media_type: MediaKind
    title: str
    poster_path: Optional[str] = None
    added_at: datetime = Field(default_factory=utcnow)
