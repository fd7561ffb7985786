"""Logging helpers for the claims triage service."""
from __future__ import annotations

import logging
import re
import time
from typing import Callable, Union

from fastapi import FastAPI, Request

_RE_EMAIL = re.compile(r"[\w.+-]+@[\w-]+\.[\w.-]+")
_RE_PHONE = re.compile(r"(?<![\w-])(?:\+\d{1,3}[\s.-]?)?\(?\d{3}\)?[\s.-]\d{3}[\s.-]\d{4}\b")


class PIIRedactor(logging.Filter):
    """Filter that redacts e-mail addresses and phone numbers from log records."""

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: D401
        if isinstance(record.msg, str):
            record.msg = redact(record.msg)
        return True


def redact(text: str) -> str:
    return _RE_PHONE.sub("[REDACTED]", _RE_EMAIL.sub("[REDACTED]", text))


def setup_logging(level: Union[int, str] = logging.INFO) -> None:
    """Configure global logging handlers."""

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
    redactor = PIIRedactor()
    for handler in logging.getLogger().handlers:
        if not any(isinstance(f, PIIRedactor) for f in handler.filters):
            handler.addFilter(redactor)
    logging.getLogger("uvicorn.access").addFilter(redactor)


async def timing_middleware(request: Request, call_next: Callable):
    """Log HTTP request duration."""

    start = time.perf_counter()
    response = await call_next(request)
    duration_ms = (time.perf_counter() - start) * 1000
    logging.getLogger("claimtriage.request").info(
        "%s %s -> %s in %.2f ms", request.method, request.url.path, response.status_code, duration_ms
    )
    return response


def register_middleware(app: FastAPI) -> None:
    app.middleware("http")(timing_middleware)
