"""Filter models for event retrieval."""
from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic import field_validator
from typing import Any, Literal


class EventFilter(BaseModel):
    """
    Optional retrieval constraints; any subset may be supplied.

    A value that is empty after trimming means "no constraint", since an
    empty optional form field is indistinguishable from no input. Unknown
    keys are rejected rather than dropped, so a misspelled filter never
    widens the result to every event.
    """
    model_config = ConfigDict(extra="forbid")

    source: str | None = Field(default=None, description="Exact match on source")
    event_type: str | None = Field(
        default=None,
        validation_alias=AliasChoices("event_type", "eventType"),
        description="Exact match on event_type",
    )
    query: str | None = Field(default=None, description="Case-insensitive substring of data")

    @field_validator("source", "event_type", "query", mode="before")
    @classmethod
    def blank_is_absent(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def is_empty(self) -> bool:
        return self.source is None and self.event_type is None and self.query is None


class FilterCondition(BaseModel):
    """Single predicate over a stored event."""
    field: Literal["source", "event_type", "data"] = Field(..., description="Event field to test")
    operator: Literal["equals", "contains"] = "equals"
    value: str = Field(..., description="Value to match against")
