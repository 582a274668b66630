from prometheus_client import Counter, Histogram, Gauge, CONTENT_TYPE_LATEST, generate_latest
from starlette.responses import Response
from fastapi import APIRouter


REQUEST_LATENCY_MS = Histogram(
    "watchstate_request_latency_ms",
    "Latency of API requests in milliseconds",
    buckets=(5, 10, 25, 50, 100, 200, 400, 800, 1600, 3200),
)

# Total API errors (incremented on 5xx)
REQUEST_ERRORS = Counter(
    "watchstate_request_errors_total",
    "Total API errors",
    ["route"],
)

# Progress writes issued by the tracker, split by trigger (sample|close)
PROGRESS_WRITES = Counter(
    "watchstate_progress_writes_total",
    "Progress writes issued by the player tracker",
    ["trigger"],
)
PROGRESS_WRITE_FAILURES = Counter(
    "watchstate_progress_write_failures_total",
    "Progress writes dropped because the store was unavailable",
)

STORE_ERRORS = Counter(
    "watchstate_store_errors_total",
    "Store operations that failed",
    ["op"],
)
CACHE_FALLBACKS = Counter(
    "watchstate_cache_fallbacks_total",
    "Reads served from the client cache because the store was unavailable",
    ["key"],
)
CATALOG_ERRORS = Counter(
    "watchstate_catalog_errors_total",
    "Catalog adapter error count",
    ["endpoint"],
)

# Build info gauge (set once at startup)
BUILD_INFO = Gauge(
    "watchstate_build_info",
    "Build info tagged with version, sha, env",
    labelnames=["version", "sha", "env"],
)


router = APIRouter()


@router.get("/metrics")
async def metrics():
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
