import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlmodel import Session

from .db import get_engine, init_db
from .logging_setup import configure_logging
from .metrics import BUILD_INFO, router as metrics_router
from .middleware import RequestIdAndTimingMiddleware
from .routers import catalog, health, progress, users, watchlist
from .settings import settings
from .store import StoreUnavailable, WatchStore

logger = logging.getLogger(__name__)


def bootstrap() -> None:
    init_db()
    try:
        with Session(get_engine()) as s:
            WatchStore(s).ensure_default_user(
                settings.default_user_email, settings.default_user_name, settings.default_language
            )
    except StoreUnavailable as e:
        # the API still serves the catalog without a database
        logger.error("bootstrap failed", extra={"error": str(e)})


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    bootstrap()
    BUILD_INFO.labels(version=settings.app_version, sha=settings.git_sha or "unknown", env=settings.environment).set(1)
    logger.info("api started", extra={"version": settings.app_version, "env": settings.environment})
    yield


app = FastAPI(title="Watch-state API", version=settings.app_version, lifespan=lifespan)

app.add_middleware(RequestIdAndTimingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.allow_origins.split(",") if o.strip()],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StoreUnavailable)
async def store_unavailable(request: Request, exc: StoreUnavailable):
    return JSONResponse(status_code=503, content={"error": "Store unavailable"})


app.include_router(health.router)
app.include_router(metrics_router)
for r in (catalog.router, users.router, progress.router, watchlist.router):
    app.include_router(r, prefix="/api")
