"""Compiles an event filter into a single filtered, ordered retrieval."""
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from .models import EventFilter, FilterCondition
from ..errors import ValidationError
from ..event_models import StoredEvent, search_projection


class CompiledQuery:
    """
    Conjunction of filter conditions plus the retrieval order.

    Events are returned newest first by timestamp; equal timestamps fall
    back to the later-appended event (higher id) first.
    """

    def __init__(self, conditions: list[FilterCondition] | None = None):
        self.conditions = conditions or []

    def matches(self, event: StoredEvent) -> bool:
        """
        Check if event satisfies every condition.

        Args:
            event: Event to check

        Returns:
            True if all conditions match (always True with no conditions)
        """
        for condition in self.conditions:
            if not self._matches_condition(event, condition):
                return False
        return True

    def apply(self, events: Iterable[StoredEvent]) -> list[StoredEvent]:
        """Filter events and sort them into retrieval order."""
        selected = [e for e in events if self.matches(e)]
        selected.sort(key=lambda e: e.sort_key, reverse=True)
        return selected

    @staticmethod
    def _matches_condition(event: StoredEvent, condition: FilterCondition) -> bool:
        if condition.operator == "equals":
            return getattr(event, condition.field) == condition.value
        elif condition.operator == "contains":
            # Condition values for "contains" are lower-cased at compile time
            text = event.search_text or search_projection(event.data)
            return condition.value in text
        return False


def compile_filter(filters: EventFilter | Mapping[str, Any] | None = None) -> CompiledQuery:
    """
    Translate optional filters into a compiled query.

    Args:
        filters: EventFilter, mapping with the same keys, or None for no filter

    Returns:
        CompiledQuery whose conditions are combined with AND

    Raises:
        ValidationError: If the mapping has unknown keys or non-string values
    """
    if filters is None:
        filters = EventFilter()
    elif not isinstance(filters, EventFilter):
        try:
            filters = EventFilter.model_validate(dict(filters))
        except PydanticValidationError as e:
            raise ValidationError.from_pydantic(e, default_field="filters") from None

    conditions = []
    if filters.source is not None:
        conditions.append(FilterCondition(field="source", operator="equals", value=filters.source))
    if filters.event_type is not None:
        conditions.append(FilterCondition(field="event_type", operator="equals", value=filters.event_type))
    if filters.query is not None:
        conditions.append(FilterCondition(field="data", operator="contains", value=filters.query.lower()))
    return CompiledQuery(conditions)
