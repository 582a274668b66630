"""Turns playback-position samples into occasional progress writes.

Throttling is a function of the reported position only: a sample is written
when its whole-second position is a multiple of ``interval``. Seeking can
therefore skip a write or repeat one; there is no wall-clock timer. Closing
the player always writes the last sample, so the final position is kept.
"""
from __future__ import annotations

import logging
import math
import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Optional

from app.metrics import PROGRESS_WRITE_FAILURES, PROGRESS_WRITES
from app.models import ContentRef
from app.schemas import ProgressUpsert
from app.settings import settings
from app.store import StoreUnavailable
from services.catalog.adapters.vixsrc import EmbedAdapter

from .state import WatchState

logger = logging.getLogger(__name__)

_background: Optional[Executor] = None
_background_lock = threading.Lock()


def background_executor() -> Executor:
    """Process-wide single writer, so progress writes reach the store in order."""
    global _background
    with _background_lock:
        if _background is None:
            _background = ThreadPoolExecutor(max_workers=1, thread_name_prefix="progress-writes")
        return _background


@dataclass
class PlaybackSession:
    user_id: int
    ref: ContentRef
    title: str
    poster_path: Optional[str] = None
    current_time: int = 0
    duration: int = 0


class ProgressTracker:
    def __init__(
        self,
        state: WatchState,
        embed: EmbedAdapter | None = None,
        interval: int | None = None,
        executor: Executor | None = None,
        inline: bool = False,
    ):
        if interval is None:
            interval = settings.progress_write_interval
        if interval < 1:
            raise ValueError("interval must be >= 1")
        self.state = state
        self.embed = embed or EmbedAdapter()
        self.interval = interval
        # inline=True waits for the store on every write; otherwise writes are fire-and-forget
        self.executor: Optional[Executor] = None if inline else (executor or background_executor())
        self._sessions: dict[tuple[int, ContentRef], PlaybackSession] = {}

    # --- sessions ---

    def open_session(self, user_id: int, ref: ContentRef, title: str, poster_path: str | None = None) -> PlaybackSession:
        key = (user_id, ref)
        session = self._sessions.get(key)
        if session is None:
            session = PlaybackSession(user_id=user_id, ref=ref, title=title, poster_path=poster_path)
            self._sessions[key] = session
        return session

    def session(self, user_id: int, ref: ContentRef) -> Optional[PlaybackSession]:
        return self._sessions.get((user_id, ref))

    def _session_for(self, user_id: int, ref: ContentRef) -> PlaybackSession:
        session = self._sessions.get((user_id, ref))
        if session is not None:
            return session
        title, poster_path = self._known_details(user_id, ref)
        return self.open_session(user_id, ref, title, poster_path)

    def _known_details(self, user_id: int, ref: ContentRef) -> tuple[str, Optional[str]]:
        known = self.state.find_progress(user_id, ref)
        if known is not None:
            return known.title, known.poster_path
        # no catalog title without open_session; the tmdb id stands in until a titled session overwrites it
        return str(ref.tmdb_id), None

    # --- samples ---

    def record_sample(self, user_id: int, ref: ContentRef, current_seconds: float, duration_seconds: float) -> bool:
        """Record the latest position. Returns True when a write was issued."""
        session = self._session_for(user_id, ref)
        session.current_time = max(0, math.floor(current_seconds))
        session.duration = max(0, math.floor(duration_seconds))
        if session.current_time <= 0 or session.duration <= 0:
            return False
        if session.current_time % self.interval != 0:
            return False
        self._write(session, trigger="sample")
        return True

    def flush_on_close(
        self,
        user_id: int,
        ref: ContentRef,
        current_seconds: float | None = None,
        duration_seconds: float | None = None,
    ) -> bool:
        """Write the last position regardless of throttling, then end the session."""
        session = self._sessions.pop((user_id, ref), None)
        if session is None:
            title, poster_path = self._known_details(user_id, ref)
            session = PlaybackSession(user_id=user_id, ref=ref, title=title, poster_path=poster_path)
        if current_seconds is not None:
            session.current_time = max(0, math.floor(current_seconds))
        if duration_seconds is not None:
            session.duration = max(0, math.floor(duration_seconds))
        if session.current_time <= 0 or session.duration <= 0:
            return False
        self._write(session, trigger="close")
        return True

    def _write(self, session: PlaybackSession, trigger: str) -> None:
        payload = ProgressUpsert(
            tmdb_id=session.ref.tmdb_id,
            media_type=session.ref.media_type,
            title=session.title,
            poster_path=session.poster_path,
            current_time=session.current_time,
            duration=session.duration,
            season=session.ref.season,
            episode=session.ref.episode,
        )
        # local copy first so reads inside the session see the sample even if the store is down
        self.state.apply_progress(self.state.local_record(session.user_id, payload))
        PROGRESS_WRITES.labels(trigger=trigger).inc()
        if self.executor is None:
            self._persist(session.user_id, payload)
        else:
            future = self.executor.submit(self._persist, session.user_id, payload)
            future.add_done_callback(self._report_crash)

    def _persist(self, user_id: int, payload: ProgressUpsert) -> None:
        try:
            self.state.backend.upsert_progress(user_id, payload)
        except StoreUnavailable as e:
            PROGRESS_WRITE_FAILURES.inc()
            logger.warning(
                "progress write dropped",
                extra={"user_id": user_id, "tmdb_id": payload.tmdb_id, "position": payload.current_time, "error": str(e)},
            )

    @staticmethod
    def _report_crash(future: Future) -> None:
        exc = future.exception()
        if exc is not None:
            PROGRESS_WRITE_FAILURES.inc()
            logger.error("progress write crashed", exc_info=(type(exc), exc, exc.__traceback__))

    # --- resume ---

    def get_resume_position(self, user_id: int, ref: ContentRef) -> Optional[int]:
        record = self.state.find_progress(user_id, ref)
        if record is None or record.current_time <= 0:
            return None
        return int(record.current_time)

    def embed_url(self, user_id: int, ref: ContentRef, language: str | None = None) -> str:
        return self.embed.url_for(ref, language=language or self.state.language, start_at=self.get_resume_position(user_id, ref))
