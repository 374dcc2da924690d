"""In-memory event store adapter."""
import threading
from .base import StoreAdapter
from ..errors import NotInitialized
from ..event_models import NewEvent, StoredEvent
from ..query.compiler import CompiledQuery


class InMemoryAdapter(StoreAdapter):
    """In-memory implementation of the event store adapter.

    The lock guards only the counter increment and the list append, and the
    snapshot taken for a query; filtering and sorting run outside it.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._events: list[StoredEvent] | None = None
        self._last_id = 0

    async def reset(self) -> None:
        with self._lock:
            self._events = []
            self._last_id = 0

    async def provision(self) -> bool:
        with self._lock:
            if self._events is not None:
                return False
            self._events = []
            self._last_id = 0
            return True

    async def append(self, evt: NewEvent) -> StoredEvent:
        with self._lock:
            if self._events is None:
                raise NotInitialized()
            self._last_id += 1
            stored = evt.stored(self._last_id)
            self._events.append(stored)
        return stored.model_copy(deep=True)

    async def query(self, compiled: CompiledQuery) -> list[StoredEvent]:
        with self._lock:
            if self._events is None:
                raise NotInitialized()
            snapshot = list(self._events)
        # Readers get copies; stored events are never mutated
        return [e.model_copy(deep=True) for e in compiled.apply(snapshot)]

    async def health_check(self) -> bool:
        """In-memory adapter is always healthy."""
        return True
