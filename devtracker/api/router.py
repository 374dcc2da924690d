from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, PlainTextResponse
import orjson
import structlog
from .schemas import ErrorResponse, IngestResponse, StatusResponse
from ..event_models import StoredEvent
from ..query.models import EventFilter
from ..services.event_store import EventStore, store as default_store

router = APIRouter()
log = structlog.get_logger()


def get_store() -> EventStore:
    return default_store


@router.get("/", response_class=PlainTextResponse)
async def index():
    return "Development Event Tracker API"


@router.api_route("/init", methods=["GET", "POST"], response_model=StatusResponse)
async def initialize_store(request: Request, store: EventStore = Depends(get_store)):
    """Drop every stored event and restart the id sequence."""
    await store.initialize()
    request.app.state.metrics.store_resets_total.inc()
    log.info("store.initialized")
    return StatusResponse(status="initialized")


@router.post("/ingest", response_model=IngestResponse)
async def ingest_event(request: Request, store: EventStore = Depends(get_store)):
    # Parsed here rather than by a body model so that every field problem
    # is reported by the store's own validation.
    body = await request.body()
    try:
        raw = orjson.loads(body)
    except orjson.JSONDecodeError as e:
        log.warning("invalid.json", error=str(e), path=request.url.path)
        error = ErrorResponse(
            error="InvalidJSON",
            message="Invalid JSON format",
            correlation_id=getattr(request.state, "correlation_id", None),
            path=request.url.path,
            detail=[{"field": "body", "message": str(e)}],
        )
        return JSONResponse(status_code=400, content=error.model_dump(exclude_none=True))

    stored = await store.append(raw)
    request.app.state.metrics.record_event_ingested(stored.source, stored.event_type, len(body))
    log.info(
        "event.ingested",
        id=stored.id,
        source=stored.source,
        event_type=stored.event_type,
    )
    return IngestResponse(id=stored.id)


@router.get("/events", response_model=list[StoredEvent])
async def list_events(
    request: Request,
    source: str | None = None,
    event_type: str | None = None,
    q: str | None = None,
    store: EventStore = Depends(get_store),
):
    filters = EventFilter(source=source, event_type=event_type, query=q)
    events = await store.query(filters)
    request.app.state.metrics.record_query(filtered=not filters.is_empty, result_count=len(events))
    log.info("events.queried", filters=filters.model_dump(exclude_none=True), count=len(events))
    return events
