"""Structured JSON logging for the Catalog Enhancer service.

``configure_logging()`` runs once at import of ``app.main``. From then on
every ``logging.getLogger(__name__)`` record, including the ones emitted by
the ``catalog_enhancer`` engine, is written to stdout as one JSON line.

Two context variables are stamped onto each record when set:

* ``request_id``: bound by ``RequestIdMiddleware`` from the incoming
  ``X-Request-ID`` header (or a fresh hex id), echoed back on the response.
* ``session_id``: bound by the enhancement routes via ``bind_session_id`` so
  quality ratings, generations and ledger writes of one wizard can be
  grepped together across requests.
"""

import json
import logging
import time
import uuid
from contextvars import ContextVar
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

SERVICE_NAME = "catalog-enhancer"

_request_id_var: ContextVar[str] = ContextVar("request_id", default="")
_session_id_var: ContextVar[str] = ContextVar("session_id", default="")


def bind_session_id(session_id: str) -> None:
    """Tag the remaining records of the current request with an enhancement session."""
    _session_id_var.set(session_id)


# Attributes every LogRecord carries; anything else came in through extra={}
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {
    "message",
    "asctime",
    "taskName",
}


class _JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict = {
            "timestamp": self.formatTime(record, self.datefmt),
            "service": SERVICE_NAME,
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, var in (("request_id", _request_id_var), ("session_id", _session_id_var)):
            value = var.get()
            if value:
                payload[key] = value

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RECORD_ATTRS and not key.startswith("_"):
                payload[key] = value

        return json.dumps(payload, default=str, ensure_ascii=False)


def configure_logging(level: str = "INFO") -> None:
    """Install a single JSON-to-stdout handler on the root logger.

    Args:
        level: logging level name, e.g. ``"INFO"`` or ``"DEBUG"``
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    handler = logging.StreamHandler()
    handler.setFormatter(_JsonFormatter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(numeric_level)

    # Provider SDKs log every HTTP round trip at INFO
    for noisy in ("httpx", "httpcore", "openai", "anthropic", "uvicorn.access"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    logging.getLogger(__name__).info(
        "Structured JSON logging initialised",
        extra={"log_level": level.upper()},
    )


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Bind an ``X-Request-ID`` to every request and write one access record.

    An upstream ID is honoured; otherwise a UUID4 hex is generated.
    """

    def __init__(self, app: ASGIApp, header_name: str = "X-Request-ID") -> None:
        super().__init__(app)
        self._header_name = header_name

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(self._header_name) or uuid.uuid4().hex

        request_token = _request_id_var.set(request_id)
        session_token = _session_id_var.set("")
        start = time.monotonic()

        try:
            response = await call_next(request)
        finally:
            duration_ms = round((time.monotonic() - start) * 1000, 1)
            _session_id_var.reset(session_token)
            _request_id_var.reset(request_token)

        response.headers[self._header_name] = request_id

        logging.getLogger("app.access").info(
            "%s %s %s",
            request.method,
            request.url.path,
            response.status_code,
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
            },
        )

        return response
