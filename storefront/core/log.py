from __future__ import annotations

import json
import logging
import sys
import time
import uuid
from contextvars import ContextVar

from fastapi import Request, Response
from uvicorn.logging import ColourizedFormatter

from storefront.core.config import settings

# Set by the access middleware, read by every record emitted while serving the request
request_id_var: ContextVar[str] = ContextVar("request_id", default="-")

_STANDARD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime"}


class _RequestIdLogFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = request_id_var.get()  # type: ignore[attr-defined]
        return True


class _JsonLogFormatter(logging.Formatter):
    """One JSON object per line; ``extra={...}`` fields become top-level keys."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "service": settings.APP_NAME,
            "request_id": getattr(record, "request_id", "-"),
        }
        for key, value in vars(record).items():
            if key not in _STANDARD_ATTRS and key not in entry:
                entry[key] = value
        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


def setup_logging() -> None:
    """Installs the stdout handler on the root logger. Calling it twice is harmless."""
    root = logging.getLogger()
    root.setLevel(settings.LOG_LEVEL.upper())
    if any(getattr(h, "_storefront", False) for h in root.handlers):
        return

    if settings.LOG_FORMAT.lower() == "json":
        formatter: logging.Formatter = _JsonLogFormatter(datefmt="%Y-%m-%dT%H:%M:%S%z")
    else:
        formatter = ColourizedFormatter(
            "%(levelprefix)s [%(request_id)s] %(name)s - %(message)s", use_colors=True
        )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    handler.addFilter(_RequestIdLogFilter())
    handler._storefront = True  # type: ignore[attr-defined]
    root.addHandler(handler)

    for noisy in ("uvicorn.access", "uvicorn.error", "sqlalchemy.engine", "aio_pika", "aiormq"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


async def access_log_middleware(request: Request, call_next) -> Response:
    """One ``request`` log line per HTTP exchange; echoes the id as ``X-Request-ID``."""
    request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
    request.state.request_id = request_id
    token = request_id_var.set(request_id)

    started = time.perf_counter()
    try:
        response = await call_next(request)
    finally:
        request_id_var.reset(token)

    logging.getLogger("storefront.access").info(
        "request",
        extra={
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "status": response.status_code,
            "latency_ms": round((time.perf_counter() - started) * 1000, 2),
            "client_ip": request.client.host if request.client else "-",
            "user_agent": request.headers.get("user-agent", "-"),
        },
    )
    response.headers["X-Request-ID"] = request_id
    return response
