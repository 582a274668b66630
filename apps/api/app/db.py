from __future__ import annotations

import logging
from pathlib import Path
from typing import Generator, Optional

from redis import Redis
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine

from .settings import settings

logger = logging.getLogger(__name__)

_engine: Optional[Engine] = None
_schema_ready = False


def _sqlite_file(url: str) -> Optional[Path]:
    """Path of an on-disk sqlite database, None for memory or other backends."""
    parsed = make_url(url)
    if parsed.get_backend_name() != "sqlite" or parsed.database in (None, "", ":memory:"):
        return None
    path = Path(parsed.database)
    return path if path.is_absolute() else Path.cwd() / path


def make_engine(url: str) -> Engine:
    if not url.startswith("sqlite"):
        return create_engine(url, echo=False, pool_pre_ping=True)
    path = _sqlite_file(url)
    if path is None:
        # memory db: every checkout must share the one connection
        return create_engine(url, echo=False, connect_args={"check_same_thread": False}, poolclass=StaticPool)
    path.parent.mkdir(parents=True, exist_ok=True)
    return create_engine(url, echo=False, connect_args={"check_same_thread": False})


def get_engine() -> Engine:
    global _engine
    if _engine is None:
        _engine = make_engine(settings.resolved_database_url())
    return _engine


def init_db() -> None:
    """Create tables for sqlite; Postgres schemas come from the Alembic revisions."""
    global _schema_ready
    if _schema_ready:
        return
    if settings.use_sqlite:
        from . import models  # noqa: F401
        SQLModel.metadata.create_all(get_engine())
        logger.info("sqlite schema ready")
    _schema_ready = True


def get_session() -> Generator[Session, None, None]:
    init_db()
    with Session(get_engine()) as session:
        yield session


def get_redis() -> Optional[Redis]:
    url = settings.resolved_redis_url()
    if not url:
        return None
    return Redis.from_url(url)
