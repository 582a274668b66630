from __future__ import annotations

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

from .models import ContentRef, MediaKind


class UserCreate(BaseModel):
    email: str
    name: str
    avatar: Optional[str] = None
    language: str = "it"


class UserUpdate(BaseModel):
    email: Optional[str] = None
    name: Optional[str] = None
    avatar: Optional[str] = None
    language: Optional[str] = None


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    name: str
    avatar: Optional[str] = None
    language: str


class ProgressUpsert(BaseModel):
    tmdb_id: int = Field(ge=1)
    media_type: MediaKind
    title: str = Field(min_length=1)
    poster_path: Optional[str] = None
    current_time: int = Field(default=0, ge=0)
    duration: int = Field(default=0, ge=0)
    season: Optional[int] = Field(default=None, ge=1)
    episode: Optional[int] = Field(default=None, ge=1)
    # Defaults to "now" in the store
    last_watched: Optional[datetime] = None

    @property
    def ref(self) -> ContentRef:
        return ContentRef(tmdb_id=self.tmdb_id, media_type=self.media_type, season=self.season, episode=self.episode)


class ProgressOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: int
    tmdb_id: int
    media_type: MediaKind
    title: str
    poster_path: Optional[str] = None
    current_time: int
    duration: int
    season: Optional[int] = None
    episode: Optional[int] = None
    last_watched: datetime

    @property
    def ref(self) -> ContentRef:
        return ContentRef(tmdb_id=self.tmdb_id, media_type=self.media_type, season=self.season, episode=self.episode)


class ListItemCreate(BaseModel):
    tmdb_id: int = Field(ge=1)
    media_type: MediaKind
    title: str = Field(min_length=1)
    poster_path: Optional[str] = None


class ListEntryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    tmdb_id: int
    media_type: MediaKind
    title: str
    poster_path: Optional[str] = None
    added_at: datetime


class ToggleResult(BaseModel):
    added: bool
    item: Optional[ListEntryOut] = None


class InListOut(BaseModel):
    is_in_list: bool


class ResumeOut(BaseModel):
    position: Optional[int] = None
    embed_url: str
