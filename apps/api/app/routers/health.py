from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter
from pydantic import BaseModel
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from ..db import get_redis, get_session
from ..settings import settings

router = APIRouter(tags=["health"])
logger = logging.getLogger(__name__)


class Health(BaseModel):
    status: str
    time_utc: str
    checks: dict
    version: str | None = None
    sha: str | None = None


def _db_check() -> dict:
    backend = "sqlite" if settings.use_sqlite else "postgres"
    try:
        with next(get_session()) as s:
            s.exec(text("SELECT 1"))
    except SQLAlchemyError as e:
        return {"ok": False, "backend": backend, "error": str(e)}
    return {"ok": True, "backend": backend}


def _redis_check() -> dict:
    r = get_redis()
    if r is None:
        return {"ok": True, "disabled": True}
    try:
        return {"ok": bool(r.ping())}
    except RedisError as e:
        return {"ok": False, "error": str(e)}


def _catalog_check() -> dict:
    # the proxy answers 500s without a key, the rest of the API still works
    return {"ok": True, "configured": bool(settings.tmdb_api_key)}


def _report(checks: dict[str, dict]) -> Health:
    status = "ok" if all(c.get("ok") for c in checks.values()) else "degraded"
    if status != "ok":
        logger.warning("health degraded", extra={"checks": checks})
    return Health(
        status=status,
        time_utc=datetime.now(timezone.utc).isoformat(),
        checks=checks,
        version=settings.app_version,
        sha=settings.git_sha,
    )


@router.get("/healthz", response_model=Health)
async def healthz():
    return _report({"db": _db_check(), "redis": _redis_check(), "catalog": _catalog_check()})


@router.get("/readyz", response_model=Health)
async def readyz():
    # ready once the database answers; redis and catalog are optional
    return _report({"db": _db_check()})
