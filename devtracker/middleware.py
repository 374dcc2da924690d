"""
Middleware for observability and request validation.
"""
import uuid
import time
import orjson
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
import structlog
from .api.schemas import ErrorResponse

log = structlog.get_logger()


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """
    Middleware to add correlation IDs to all requests.

    - Extracts correlation ID from X-Correlation-ID header if present
    - Generates new UUID if not present
    - Binds correlation ID to structlog context and request state
    - Adds correlation ID to response headers
    """

    async def dispatch(self, request: Request, call_next):
        correlation_id = request.headers.get("x-correlation-id") or str(uuid.uuid4())

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            correlation_id=correlation_id,
            http_method=request.method,
            http_path=request.url.path,
        )
        request.state.correlation_id = correlation_id

        response = await call_next(request)
        response.headers["x-correlation-id"] = correlation_id
        return response


class MetricsMiddleware(BaseHTTPMiddleware):
    """
    Middleware to collect HTTP metrics for Prometheus.

    - Records request count by method, path, status
    - Records request duration histogram
    - Tracks active requests
    """

    def __init__(self, app, metrics):
        super().__init__(app)
        self.metrics = metrics

    async def dispatch(self, request: Request, call_next):
        # Skip metrics endpoint to avoid recursion
        if request.url.path == "/metrics":
            return await call_next(request)

        active = self.metrics.http_requests_active.labels(service=self.metrics.service_name)
        active.inc()
        start_time = time.time()

        try:
            response = await call_next(request)
            duration = time.time() - start_time

            self.metrics.http_requests_total.labels(
                service=self.metrics.service_name,
                method=request.method,
                path=request.url.path,
                status=response.status_code,
            ).inc()

            self.metrics.http_request_duration.labels(
                service=self.metrics.service_name,
                method=request.method,
                path=request.url.path,
            ).observe(duration)

            log.info(
                "http_request",
                http_status=response.status_code,
                duration_ms=round(duration * 1000, 2),
            )

            return response

        except Exception as e:
            duration = time.time() - start_time

            self.metrics.http_requests_total.labels(
                service=self.metrics.service_name,
                method=request.method,
                path=request.url.path,
                status=500,
            ).inc()

            log.error(
                "http_request_error",
                error=str(e),
                error_type=type(e).__name__,
                duration_ms=round(duration * 1000, 2),
            )

            raise

        finally:
            active.dec()


def _error_body(request: Request, error: str, message: str, detail=None) -> dict:
    return ErrorResponse(
        error=error,
        message=message,
        correlation_id=getattr(request.state, "correlation_id", None),
        path=request.url.path,
        detail=detail,
    ).model_dump(exclude_none=True)


class PayloadValidationMiddleware(BaseHTTPMiddleware):
    """Rejects oversized bodies and malformed JSON before they reach a route."""

    def __init__(self, app, max_size: int):
        super().__init__(app)
        self.max_size = max_size

    def _too_large(self, request: Request, size: int) -> JSONResponse:
        log.warning(
            "payload.too_large",
            size=size,
            max_size=self.max_size,
            path=request.url.path
        )
        body = _error_body(
            request,
            "PayloadTooLarge",
            f"Request payload exceeds maximum size of {self.max_size} bytes",
        )
        body.update(max_size=self.max_size, received_size=size)
        return JSONResponse(status_code=413, content=body)

    async def dispatch(self, request: Request, call_next):
        if request.method not in ("POST", "PUT", "PATCH"):
            return await call_next(request)

        content_length = request.headers.get("content-length")
        if content_length and content_length.isdigit() and int(content_length) > self.max_size:
            return self._too_large(request, int(content_length))

        # Starlette caches the body so the route can read it again
        body = await request.body()
        if len(body) > self.max_size:
            return self._too_large(request, len(body))

        if body and request.headers.get("content-type", "").startswith("application/json"):
            try:
                orjson.loads(body)
            except orjson.JSONDecodeError as e:
                log.warning("invalid.json", error=str(e), path=request.url.path)
                content = _error_body(
                    request,
                    "InvalidJSON",
                    "Request body is not valid JSON",
                    detail=[{"field": "body", "message": str(e)}],
                )
                return JSONResponse(status_code=400, content=content)

        return await call_next(request)
