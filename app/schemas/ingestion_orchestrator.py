"""
Response models for background CSV ingestion jobs.

Both status models read straight from an ``IngestionJob`` row; the row's
``id`` is exposed as ``job_id``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class _JobView(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    job_id: UUID = Field(validation_alias="id")
    job_type: str
    status: str
    created_at: datetime


class IngestionJobAcceptedResponse(_JobView):
    status_url: str = ""


class IngestionJobStatusResponse(_JobView):
    processed_rows: int = 0
    persisted_rows: int = 0
    updated_at: datetime
    started_at: datetime | None = None
    completed_at: datetime | None = None
    request_payload: dict[str, Any] | None = None
    result_payload: dict[str, Any] | None = None
    error_message: str | None = None


class IngestionStatusListResponse(BaseModel):
    jobs: list[IngestionJobStatusResponse] = Field(default_factory=list)
