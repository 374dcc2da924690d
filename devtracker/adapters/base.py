"""Base adapter interface for event store backends."""
from abc import ABC, abstractmethod
from ..event_models import NewEvent, StoredEvent
from ..query.compiler import CompiledQuery


class StoreAdapter(ABC):
    """Abstract interface for event store persistence implementations.

    Adapters own id assignment and durable storage. Coordination between
    resets and other operations is handled by ``EventStore``.
    """

    @abstractmethod
    async def reset(self) -> None:
        """
        Drop and recreate the event collection, restarting the id sequence.

        Raises:
            StorageUnavailable: If the backend cannot be reached
        """
        pass

    @abstractmethod
    async def provision(self) -> bool:
        """
        Create the event collection only if it does not exist.

        Returns:
            True if the collection was created, False if it already existed
        """
        pass

    @abstractmethod
    async def append(self, evt: NewEvent) -> StoredEvent:
        """
        Persist a validated event under the next id in the sequence.

        Args:
            evt: The validated event to store

        Returns:
            The stored event with its assigned id

        Raises:
            NotInitialized: If the collection has not been created
            StorageUnavailable: If the backend cannot be reached
        """
        pass

    @abstractmethod
    async def query(self, compiled: CompiledQuery) -> list[StoredEvent]:
        """
        Retrieve matching events in retrieval order.

        Args:
            compiled: Compiled filter conditions

        Returns:
            Materialized list of matching events, newest first

        Raises:
            NotInitialized: If the collection has not been created
            StorageUnavailable: If the backend cannot be reached
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Check if the backend is healthy and accessible.

        Returns:
            True if backend is healthy, False otherwise
        """
        pass

    async def close(self) -> None:
        """Release backend connections; adapters without any keep this no-op."""
        pass
