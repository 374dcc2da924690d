"""
Development Event Tracker - ingestion and retrieval of development events.

Features:
- Event store with memory or Redis persistence
- Exact-match filtering and free-text search over event payloads
- Structured logging with correlation IDs
- Prometheus metrics
- Health checks (liveness and readiness)
"""
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import make_asgi_app
from .config import get_settings
from .logging import setup_logging, get_logger
from .api.errors import register_error_handlers
from .api.router import router
from .middleware import CorrelationIdMiddleware, MetricsMiddleware, PayloadValidationMiddleware
from .metrics import Metrics
from .health import HealthChecker
from .services.event_store import store

VERSION = "0.1.0"

settings = get_settings()

setup_logging(json_output=settings.LOG_JSON, service_name="devtracker")
logger = get_logger()

metrics = Metrics(service_name="devtracker", version=VERSION)
health_checker = HealthChecker(store, service_name="devtracker", version=VERSION)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        "service_starting",
        version=VERSION,
        env=settings.ENV,
        adapter=type(store.adapter).__name__,
    )
    if settings.AUTO_PROVISION:
        created = await store.provision()
        logger.info("store.provisioned", created=created)
    yield
    logger.info("service_stopping")
    await store.close()
    metrics.app_up.labels(service="devtracker", version=VERSION).set(0)


app = FastAPI(
    title="Development Event Tracker",
    version=VERSION,
    description="Ingests development events and serves filtered, searchable timelines",
    lifespan=lifespan,
)
app.state.metrics = metrics

# Added last runs first: correlation ID wraps everything else
app.add_middleware(PayloadValidationMiddleware, max_size=settings.MAX_EVENT_SIZE)
app.add_middleware(MetricsMiddleware, metrics=metrics)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["api", "Keep-Alive", "User-Agent", "Content-Type"],
)
app.add_middleware(CorrelationIdMiddleware)

register_error_handlers(app)
app.include_router(router)

metrics_app = make_asgi_app(registry=metrics.registry)
app.mount("/metrics", metrics_app)


@app.get("/health")
async def health():
    """
    Liveness probe - basic health check.

    Returns 200 if service is running.
    """
    logger.debug("health_check_liveness")
    return health_checker.liveness()


@app.get("/health/ready")
async def health_ready():
    """
    Readiness probe - comprehensive health check.

    Returns:
        200: Service is ready to handle traffic
        503: Service is not ready
    """
    logger.debug("health_check_readiness")
    metrics.update_system_metrics()
    result = await health_checker.readiness()
    status_code = 200 if result["status"] == "ready" else 503
    return JSONResponse(content=result, status_code=status_code)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "devtracker.main:app",
        host="0.0.0.0",
        port=settings.SERVICE_PORT,
    )
