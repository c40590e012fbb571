"""
# Logging Utilities

Request and lifecycle logging helpers used by `main.py`.

- `RequestLoggingMiddleware`: one line per request with method, path, status and duration.
- `log_application_lifecycle`: structured startup/shutdown events.
- `log_error_with_context`: error logging with an attached context dictionary.
"""

import time
from typing import Any, Callable, Dict, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from betcompare_api.managers.logging_manager import get_logger

request_logger = get_logger(prefix="[REQUEST]")
lifecycle_logger = get_logger(prefix="[LIFECYCLE]")
error_logger = get_logger(prefix="[ERROR]")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every HTTP request with its outcome and timing."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.time()
        client_ip = request.client.host if request.client else "unknown"
        try:
            response = await call_next(request)
        except Exception:
            request_logger.error(
                "%s %s from %s failed after %.3fs",
                request.method,
                request.url.path,
                client_ip,
                time.time() - start_time,
                exc_info=True,
            )
            raise

        request_logger.info(
            "%s %s from %s -> %d in %.3fs",
            request.method,
            request.url.path,
            client_ip,
            response.status_code,
            time.time() - start_time,
        )
        return response


def log_application_lifecycle(event: str, details: Optional[Dict[str, Any]] = None) -> None:
    lifecycle_logger.info("Application lifecycle event: %s - %s", event, details or {})


def log_error_with_context(error: Exception, context: Optional[Dict[str, Any]] = None) -> None:
    error_logger.error("%s: %s - context: %s", type(error).__name__, error, context or {}, exc_info=error)
