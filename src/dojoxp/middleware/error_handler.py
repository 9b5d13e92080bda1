"""JSON error responses for the engine's error taxonomy.

Every error body carries ``detail``; retryable store failures also carry
``"retryable": true`` and a ``Retry-After`` header. Duplicates and reached caps
never reach this module: they are successful activity results.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from dojoxp.errors import DojoError

logger = structlog.get_logger()

RETRY_AFTER_SECONDS = 1


async def dojo_error_handler(request: Request, exc: DojoError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.warning(
            "engine_error",
            path=request.url.path,
            error_type=type(exc).__name__,
            error=exc.detail,
            retryable=exc.retryable,
        )
    body: dict[str, object] = {"detail": exc.detail}
    headers: dict[str, str] | None = None
    if exc.retryable:
        body["retryable"] = True
        headers = {"Retry-After": str(RETRY_AFTER_SECONDS)}
    return JSONResponse(status_code=exc.status_code, content=body, headers=headers)


async def http_error_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=exc.headers)


async def request_validation_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies (missing fields, wrong JSON types) are 422."""
    return JSONResponse(status_code=422, content={"detail": "Validation error", "errors": exc.errors()})


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "unhandled_exception",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        exc_info=exc,
    )
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


def setup_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DojoError, dojo_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, http_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, request_validation_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, unhandled_error_handler)
