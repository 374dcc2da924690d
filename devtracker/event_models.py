from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, Iterator

import orjson
from pydantic import BaseModel, Field, PrivateAttr, field_serializer, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from .errors import ValidationError


def _strings(data: Any) -> Iterator[str]:
    if isinstance(data, str):
        yield data
    elif isinstance(data, Mapping):
        for key, value in data.items():
            yield str(key)
            yield from _strings(value)
    elif isinstance(data, (list, tuple)):
        for item in data:
            yield from _strings(item)


def search_projection(data: Any) -> str:
    """
    Lower-cased text of a payload, matched by free-text search.

    The serialized JSON comes first, so terms spanning keys and values
    still match. Keys and strings whose JSON form is escaped (backslashes,
    quotes, control characters) follow on their own lines as written.
    """
    text = orjson.dumps(data, option=orjson.OPT_NON_STR_KEYS).decode()
    raw = [s for s in _strings(data) if s not in text]
    return "\n".join([text, *raw]).lower()


def format_timestamp(ts: datetime) -> str:
    return ts.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


class NewEvent(BaseModel):
    """A validated event that has not been assigned an id yet."""
    timestamp: datetime = Field(..., description="ISO-8601 time the event occurred")
    source: str = Field(..., description="Origin identifier, e.g. Shell or LogFile")
    event_type: str = Field(..., description="Event type discriminator")
    data: Any = Field(..., description="Opaque JSON payload")

    _search_text: str = PrivateAttr(default="")

    @field_validator("timestamp", mode="before")
    @classmethod
    def parse_timestamp(cls, value: Any) -> datetime:
        if not isinstance(value, str):
            raise ValueError("timestamp must be an ISO-8601 string")
        try:
            parsed = datetime.fromisoformat(value.strip())
        except ValueError:
            raise ValueError(f"timestamp {value!r} is not valid ISO-8601") from None
        if parsed.tzinfo is None:
            return parsed.replace(tzinfo=timezone.utc)
        return parsed.astimezone(timezone.utc)

    @field_validator("source", "event_type")
    @classmethod
    def strip_label(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value

    @model_validator(mode="after")
    def project_search_text(self) -> "NewEvent":
        try:
            encoded = orjson.dumps(self.data, option=orjson.OPT_NON_STR_KEYS)
        except orjson.JSONEncodeError as e:
            raise ValueError(f"data must be JSON-serializable: {e}") from None
        # The stored payload never shares objects with the caller's input
        self.data = orjson.loads(encoded)
        self._search_text = search_projection(self.data)
        return self

    @property
    def search_text(self) -> str:
        return self._search_text

    def stored(self, event_id: int) -> "StoredEvent":
        return StoredEvent(
            id=event_id,
            timestamp=self.timestamp,
            source=self.source,
            event_type=self.event_type,
            data=self.data,
            search_text=self._search_text,
        )


class StoredEvent(BaseModel):
    id: int
    timestamp: datetime
    source: str
    event_type: str
    data: Any = None
    # Append-time projection of ``data``; never part of the wire format
    search_text: str = Field(default="", exclude=True, repr=False)

    @field_serializer("timestamp")
    def serialize_timestamp(self, ts: datetime) -> str:
        return format_timestamp(ts)

    @property
    def sort_key(self) -> tuple[datetime, int]:
        return (self.timestamp, self.id)


def parse_event(raw: Any) -> NewEvent:
    """
    Validate a raw ingestion payload.

    Args:
        raw: Mapping decoded from the ingestion request body

    Returns:
        The validated, normalized event

    Raises:
        ValidationError: If a required field is missing or malformed
    """
    if not isinstance(raw, Mapping):
        raise ValidationError([{"field": "event", "message": "event must be a JSON object"}])
    try:
        return NewEvent.model_validate(dict(raw))
    except PydanticValidationError as e:
        raise ValidationError.from_pydantic(e) from None
