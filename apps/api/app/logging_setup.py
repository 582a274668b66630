import logging
import os
import sys
from contextvars import ContextVar
from pythonjsonlogger import jsonlogger


LOG_FORMAT = os.getenv("LOG_FORMAT", "json").lower()
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

_request_id: ContextVar[str | None] = ContextVar("request_id", default=None)

# Libraries that are chatty at INFO
_QUIET = ("sqlalchemy.engine", "urllib3.connectionpool")


class RequestIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore
        record.request_id = _request_id.get()
        return True


request_id_filter = RequestIdFilter()


def configure_logging(level: str | None = None, fmt: str | None = None):
    root = logging.getLogger()
    root.setLevel((level or LOG_LEVEL).upper())
    for h in list(root.handlers):
        root.removeHandler(h)

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(request_id_filter)
    if (fmt or LOG_FORMAT).lower() == "json":
        handler.setFormatter(jsonlogger.JsonFormatter("%(levelname)s %(message)s %(asctime)s %(name)s %(request_id)s"))
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s [%(name)s] [req=%(request_id)s] %(message)s"))
    root.addHandler(handler)

    for name in _QUIET:
        logging.getLogger(name).setLevel(logging.WARNING)


def set_request_id(value: str | None):
    _request_id.set(value)
