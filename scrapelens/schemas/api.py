from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Response bodies use camelCase keys on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class IngestResponse(CamelModel):
    inserted_count: int
    fetched_count: int
    normalized_count: int
    note: Optional[str] = None
    sample_keys: Optional[list[str]] = None
    sample_item: Optional[dict[str, Any]] = None


class AnalyzeResponse(CamelModel):
    processed: int
    failed: int
    first_error: Optional[str] = None
    note: Optional[str] = None


class SelfTestResponse(BaseModel):
    ok: bool
    status: Optional[int] = None
    body: Optional[str] = None
    provider: Optional[str] = None
    model: Optional[str] = None
    error: Optional[str] = None


class ErrorResponse(BaseModel):
    error: str


class HealthResponse(BaseModel):
    database: str
    last_ingest_status: str | None
    last_analysis_status: str | None


class RunOut(BaseModel):
    run_id: str
    kind: str
    status: str
    records_processed: int
    records_failed: int
    error_message: str | None = None
    started_at: datetime
    ended_at: datetime | None

    model_config = ConfigDict(from_attributes=True)
