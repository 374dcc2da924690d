from pydantic import BaseModel, Field
from typing import Any, Dict, List


class StatusResponse(BaseModel):
    status: str


class IngestResponse(BaseModel):
    status: str = "ingested"
    id: int


class ErrorResponse(BaseModel):
    error: str
    message: str
    correlation_id: str | None = None
    path: str | None = None
    detail: List[Dict[str, Any]] | None = Field(default=None, description="Per-field validation problems")
