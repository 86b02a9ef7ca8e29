"""Global error handlers with consistent JSON error responses."""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from glp.progress.errors import StorageError

logger = structlog.get_logger()


def setup_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers."""

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
        """Handle HTTP exceptions with consistent JSON format."""
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
        """Handle validation errors with consistent JSON format."""
        return JSONResponse(
            status_code=422,
            content={"detail": "Validation error", "errors": jsonable_errors(exc)},
        )

    @app.exception_handler(StorageError)
    async def storage_exception_handler(request: Request, exc: StorageError) -> JSONResponse:
        """Persistence failures are reported as errors, never as empty progress."""
        logger.error(
            "storage_error",
            path=request.url.path,
            method=request.method,
            operation=exc.operation,
            retryable=exc.retryable,
            exc_info=exc,
        )
        if exc.retryable:
            return JSONResponse(
                status_code=500,
                content={"detail": "Storage unavailable", "retryable": True},
            )
        return JSONResponse(
            status_code=500,
            content={"detail": "Storage rejected the request", "retryable": False},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all for unhandled exceptions, always JSON."""
        logger.error(
            "unhandled_exception",
            path=request.url.path,
            method=request.method,
            error=str(exc),
            exc_info=exc,
        )
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    """Validation errors without the raw exception objects pydantic may attach in ``ctx``."""
    errors = []
    for error in exc.errors():
        cleaned = {k: v for k, v in error.items() if k != "ctx"}
        if "ctx" in error:
            cleaned["ctx"] = {k: str(v) for k, v in error["ctx"].items()}
        errors.append(cleaned)
    return errors
