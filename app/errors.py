"""
Error envelope, spam-suppressed error logging and request logging

Every error response has the shape
    {"success": false, "error": "...", "timestamp": "..."}
with a "debug" block added when ENVIRONMENT=development.
"""

import logging
import time
import traceback
from datetime import datetime, timezone
from threading import Lock

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import config

logger = logging.getLogger(__name__)

ERROR_SPAM_THRESHOLD = 10  # Full logging stops after this many repeats
ERROR_SPAM_WINDOW_SECONDS = 60

# Paths that would flood the request log
QUIET_PATHS = {"/api/health"}


class ErrorTracker:
    """Counts identical errors so repeated failures log one short line each"""

    def __init__(self, threshold: int = ERROR_SPAM_THRESHOLD, window_seconds: float = ERROR_SPAM_WINDOW_SECONDS):
        self.threshold = threshold
        self.window_seconds = window_seconds
        self._counts: dict[str, dict] = {}
        self._lock = Lock()

    def record(self, key: str, now: float | None = None) -> tuple[int, bool]:
        """
        Register one occurrence of `key`.

        Returns (count, is_spam). The count restarts at 1 when the previous
        occurrence is older than the window.
        """
        now = time.monotonic() if now is None else now
        with self._lock:
            entry = self._counts.get(key)
            if entry is None or now - entry["last_time"] > self.window_seconds:
                entry = {"count": 1, "last_time": now}
                self._counts[key] = entry
            else:
                entry["count"] += 1
                entry["last_time"] = now
            count = entry["count"]
        return count, count > self.threshold

    def reset(self):
        with self._lock:
            self._counts.clear()


error_tracker = ErrorTracker()


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def error_payload(message: str, exc: Exception | None = None) -> dict:
    payload = {"success": False, "error": message, "timestamp": utc_timestamp()}
    if config.ENVIRONMENT == "development" and exc is not None:
        stack = traceback.format_exception(type(exc), exc, exc.__traceback__)
        lines = [line.rstrip() for chunk in stack for line in chunk.splitlines() if line.strip()]
        payload["debug"] = {"name": type(exc).__name__, "stack": lines[:5]}
    return payload


def _log_error(request: Request, status_code: int, message: str, exc: Exception):
    count, is_spam = error_tracker.record(f"{request.url.path}:{message}")
    if is_spam:
        logger.warning(f"⚠️ Repeated error ({count} times): {message}")
        return

    details = {
        "name": type(exc).__name__,
        "message": message,
        "statusCode": status_code,
        "path": request.url.path,
        "method": request.method,
        "userAgent": (request.headers.get("user-agent") or "")[:50],
    }
    if status_code >= 500:
        logger.error(f"❌ Error in {request.method} {request.url.path}: {details}", exc_info=exc)
    else:
        logger.warning(f"⚠️ {request.method} {request.url.path}: {details}")


def _detail_message(detail) -> str:
    if isinstance(detail, str):
        return detail
    if isinstance(detail, dict) and "message" in detail:
        return str(detail["message"])
    return str(detail)


def _validation_message(exc: RequestValidationError) -> str:
    messages = []
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        field = ".".join(loc)
        msg = error.get("msg", "Invalid value")
        messages.append(f"{field}: {msg}" if field else msg)
    return "; ".join(messages) or "Invalid request"


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404 and exc.detail == "Not Found" and request.url.path.startswith("/api"):
        message = "API endpoint not found"
    else:
        message = _detail_message(exc.detail)
    _log_error(request, exc.status_code, message, exc)
    return JSONResponse(
        status_code=exc.status_code,
        content=error_payload(message, exc),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    message = _validation_message(exc)
    _log_error(request, 400, message, exc)
    return JSONResponse(status_code=400, content=error_payload(message, exc))


async def unhandled_exception_handler(request: Request, exc: Exception):
    message = str(exc) or "Internal Server Error"
    _log_error(request, 500, message, exc)
    return JSONResponse(status_code=500, content=error_payload(message, exc))


async def log_requests(request: Request, call_next):
    start_time = time.perf_counter()
    response = await call_next(request)
    if request.url.path not in QUIET_PATHS:
        duration_ms = (time.perf_counter() - start_time) * 1000
        level = "⚠️" if response.status_code >= 400 else "ℹ️"
        logger.info(
            f"{level} {request.method} {request.url.path} → {response.status_code} ({duration_ms:.0f}ms)"
        )
    return response


def register_error_handlers(app: FastAPI):
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
    app.middleware("http")(log_requests)
