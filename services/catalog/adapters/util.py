from __future__ import annotations

import logging
import time
from typing import Callable, Iterable, TypeVar

import requests

T = TypeVar("T")

logger = logging.getLogger(__name__)

RETRYABLE_STATUS = (429, 500, 502, 503, 504)


def with_backoff(
    func: Callable[[], T],
    *,
    retries: int = 3,
    base_delay: float = 0.5,
    retry_on: Iterable[int] = RETRYABLE_STATUS,
    sleep: Callable[[float], None] | None = None,
) -> T:
    """Run a function with simple exponential backoff on network errors and 429/5xx.
    The callable should raise or return a requests.Response or data; if a Response is returned,
    its status code decides whether to retry. The last retryable Response is returned as-is
    once attempts run out so the caller can report its status.
    """
    retry_on = tuple(retry_on)
    sleep = sleep or time.sleep
    last_exc: Exception | None = None
    last_resp: requests.Response | None = None
    delay = base_delay
    for attempt in range(retries):
        try:
            out = func()
            if isinstance(out, requests.Response) and out.status_code in retry_on:
                last_resp = out
                last_exc = None
                logger.info("retryable status", extra={"status": out.status_code, "attempt": attempt + 1})
            else:
                return out
        except requests.RequestException as e:
            last_exc = e
            last_resp = None
            logger.info("request failed", extra={"error": str(e), "attempt": attempt + 1})
        if attempt + 1 < retries:
            sleep(delay)
            delay *= 2
    if last_resp is not None:
        return last_resp  # type: ignore[return-value]
    if last_exc:
        raise last_exc
    raise RuntimeError("with_backoff exhausted without exception")
