"""Event store service with pluggable persistence adapters."""
from collections.abc import Mapping
from typing import Any
from ..adapters.base import StoreAdapter
from ..adapters.memory import InMemoryAdapter
from ..adapters.redis_store import RedisAdapter
from ..config import get_settings
from ..event_models import StoredEvent, parse_event
from ..query.compiler import compile_filter
from ..query.models import EventFilter
from .barrier import ResetBarrier
import structlog

log = structlog.get_logger()
settings = get_settings()


class EventStore:
    """
    Event store that validates events and delegates persistence to an adapter.

    The adapter is selected based on the STORE_ADAPTER configuration setting.
    ``initialize`` is a barrier: it never interleaves with an append or query.
    """

    def __init__(self, adapter: StoreAdapter | None = None):
        """
        Initialize event store with optional adapter.

        Args:
            adapter: Persistence adapter to use (defaults to configured adapter)
        """
        if adapter is None:
            adapter = _create_default_adapter()
        self._adapter = adapter
        self._barrier = ResetBarrier()

    @property
    def adapter(self) -> StoreAdapter:
        return self._adapter

    async def initialize(self) -> None:
        """Discard every stored event and restart the id sequence."""
        async with self._barrier.exclusive():
            await self._adapter.reset()

    async def provision(self) -> bool:
        """Create the schema if missing; never discards events."""
        async with self._barrier.exclusive():
            return await self._adapter.provision()

    async def append(self, raw_event: Mapping[str, Any]) -> StoredEvent:
        """
        Validate and persist an ingested event.

        Args:
            raw_event: Decoded ingestion payload

        Returns:
            The stored event with its assigned id

        Raises:
            ValidationError: If the payload is malformed; nothing is written
            NotInitialized: If the store has not been initialized
            StorageUnavailable: If the backend fails
        """
        evt = parse_event(raw_event)
        async with self._barrier.shared():
            return await self._adapter.append(evt)

    async def query(self, filters: EventFilter | Mapping[str, Any] | None = None) -> list[StoredEvent]:
        """
        Retrieve events matching every supplied filter, newest first.

        Raises:
            ValidationError: If a filter mapping has unknown keys
            NotInitialized: If the store has not been initialized
            StorageUnavailable: If the backend fails
        """
        compiled = compile_filter(filters)
        async with self._barrier.shared():
            return await self._adapter.query(compiled)

    async def health_check(self) -> bool:
        """Check backend adapter health."""
        return await self._adapter.health_check()

    async def close(self) -> None:
        await self._adapter.close()


def _create_default_adapter() -> StoreAdapter:
    """
    Create the default adapter based on configuration.

    Returns:
        StoreAdapter instance based on STORE_ADAPTER setting
    """
    if settings.STORE_ADAPTER == "redis":
        if not settings.REDIS_URL:
            log.warning(
                "adapter.fallback",
                requested="redis",
                actual="memory",
                reason="REDIS_URL not configured"
            )
            return InMemoryAdapter()

        log.info("adapter.selected", type="redis", url=str(settings.REDIS_URL))
        return RedisAdapter()
    else:
        log.info("adapter.selected", type="memory")
        return InMemoryAdapter()


# Global event store instance
store = EventStore()
