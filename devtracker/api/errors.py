"""Structured error responses for event store failures."""
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import structlog
from .schemas import ErrorResponse
from ..errors import NotInitialized, StorageUnavailable, StoreError, ValidationError

log = structlog.get_logger()


def _correlation_id(request: Request) -> str | None:
    return getattr(request.state, "correlation_id", None)


def _respond(status_code: int, body: ErrorResponse) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


def _record(request: Request, exc: StoreError):
    metrics = getattr(request.app.state, "metrics", None)
    if metrics is not None:
        metrics.record_store_error(operation=request.url.path, kind=type(exc).__name__)


async def handle_validation_error(request: Request, exc: ValidationError) -> JSONResponse:
    _record(request, exc)
    log.warning("event.rejected", problems=exc.problems, path=request.url.path)
    return _respond(400, ErrorResponse(
        error="ValidationError",
        message="Event failed validation",
        correlation_id=_correlation_id(request),
        path=request.url.path,
        detail=exc.problems,
    ))


async def handle_not_initialized(request: Request, exc: NotInitialized) -> JSONResponse:
    _record(request, exc)
    log.warning("store.not_initialized", path=request.url.path)
    return _respond(409, ErrorResponse(
        error="NotInitialized",
        message="Event store is not initialized; call /init first",
        correlation_id=_correlation_id(request),
        path=request.url.path,
    ))


async def handle_storage_unavailable(request: Request, exc: StorageUnavailable) -> JSONResponse:
    _record(request, exc)
    log.error(
        "store.unavailable",
        operation=exc.operation,
        error=str(exc.cause) if exc.cause else None,
        error_type=type(exc.cause).__name__ if exc.cause else None,
        path=request.url.path,
    )
    return _respond(503, ErrorResponse(
        error="StorageUnavailable",
        message="Database error",
        correlation_id=_correlation_id(request),
        path=request.url.path,
    ))


def register_error_handlers(app: FastAPI):
    """Map each store error kind to its HTTP status."""
    app.add_exception_handler(ValidationError, handle_validation_error)
    app.add_exception_handler(NotInitialized, handle_not_initialized)
    app.add_exception_handler(StorageUnavailable, handle_storage_unavailable)
