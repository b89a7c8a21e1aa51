"""Logging setup and HTTP access logging middleware."""
from __future__ import annotations

import logging
from time import perf_counter
from typing import Optional

from fastapi import FastAPI, Request

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

access_logger = logging.getLogger("app.access")


def configure_logging(level: str = "INFO") -> None:
    """Attach a single stream handler to the root logger."""
    root = logging.getLogger()
    root.setLevel(level.upper())
    if any(getattr(handler, "_app_handler", False) for handler in root.handlers):
        return

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    handler._app_handler = True  # type: ignore[attr-defined]
    root.addHandler(handler)


def add_request_logging(app: FastAPI) -> None:
    """Log method, path, status, client and latency for every request."""

    @app.middleware("http")
    async def request_logger(request: Request, call_next):  # type: ignore[override]
        start = perf_counter()
        response = await call_next(request)
        duration_ms = (perf_counter() - start) * 1000
        client_ip: Optional[str] = None
        if request.client:
            client_ip = request.client.host
        access_logger.info(
            "%s %s | status=%s | client=%s | duration=%.2fms",
            request.method,
            request.url.path,
            response.status_code,
            client_ip or "unknown",
            duration_ms,
        )
        return response
