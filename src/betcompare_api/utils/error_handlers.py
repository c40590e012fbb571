"""
# Error Handlers

Application-level exception handlers that render every failure into the
public error envelope:

```json
{"success": false, "message": "Validation failed", "errors": [{"field": "name", "message": "..."}]}
```

| Source | Status | Message |
|--------|--------|---------|
| `RequestValidationError` | 400 | `Validation failed` plus itemized `errors` |
| `HTTPException` | its own | its `detail` |
| anything else | 500 | `Internal server error` (details only in the log) |
"""

from typing import Any, Dict, List

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from betcompare_api.managers.logging_manager import get_logger

logger = get_logger(prefix="[Error Handler]")

VALIDATION_FAILED = "Validation failed"
NOT_FOUND_MESSAGE = "Route not found"


def format_validation_errors(errors: List[Dict[str, Any]]) -> List[Dict[str, str]]:
    """
    Flatten pydantic error entries into `{field, message}` pairs.

    The `body`/`query`/`path` location prefix is dropped and nested locations are
    joined with dots, so `("body", "rating", "overall")` becomes `rating.overall`.
    """
    formatted = []
    for error in errors:
        location = [str(part) for part in error.get("loc", ())]
        if location and location[0] in ("body", "query", "path", "header"):
            location = location[1:]
        message = error.get("msg", "Invalid value")
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        formatted.append({"field": ".".join(location) or "body", "message": message})
    return formatted


def error_envelope(message: str, errors: List[Dict[str, str]] = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": False, "message": message}
    if errors:
        body["errors"] = errors
    return body


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = format_validation_errors(exc.errors())
    logger.info("Validation failed for %s %s: %s", request.method, request.url.path, errors)
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=error_envelope(VALIDATION_FAILED, errors))


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
        message = NOT_FOUND_MESSAGE
        errors = None
    elif isinstance(exc.detail, dict):
        message = exc.detail.get("message", VALIDATION_FAILED)
        errors = exc.detail.get("errors")
    else:
        message = str(exc.detail)
        errors = None
    return JSONResponse(
        status_code=exc.status_code,
        content=error_envelope(message, errors),
        headers=getattr(exc, "headers", None),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error on %s %s: %s", request.method, request.url.path, exc, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_envelope("Internal server error"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
