"""Typed failures raised by the event store.

The store never logs and never decides user-visible wording; the HTTP layer
maps each kind to a status code (see ``devtracker.api.errors``).
"""
from typing import Any


class StoreError(Exception):
    """Base class for every event store failure."""


class ValidationError(StoreError):
    """An ingested event or a filter set is malformed or incomplete."""

    def __init__(self, problems: list[dict[str, Any]]):
        self.problems = problems
        summary = "; ".join(f"{p['field']}: {p['message']}" for p in problems)
        super().__init__(summary or "invalid event")

    @classmethod
    def from_pydantic(cls, exc, default_field: str = "event") -> "ValidationError":
        """Flatten a pydantic error into field/message problems."""
        return cls([
            {
                "field": ".".join(str(part) for part in err["loc"]) or default_field,
                "message": err["msg"],
            }
            for err in exc.errors()
        ])


class StorageUnavailable(StoreError):
    """The persistence backend could not complete the operation."""

    def __init__(self, operation: str, cause: BaseException | None = None):
        self.operation = operation
        self.cause = cause
        message = f"storage unavailable during {operation}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class NotInitialized(StoreError):
    """Append or query ran before the store schema was created."""

    def __init__(self):
        super().__init__("event store has not been initialized")
