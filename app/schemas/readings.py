"""
app/schemas/readings.py

Request/response schemas for the readings endpoints.
"""

from __future__ import annotations

from datetime import date
from typing import Any

from pydantic import BaseModel, Field


class IngestionSummaryResponse(BaseModel):
    total_rows: int = Field(..., ge=0)
    valid_rows: int = Field(..., ge=0)
    invalid_rows: int = Field(..., ge=0)


class IngestResponse(BaseModel):
    """
    Result of one synchronous CSV upload.
    """

    message: str
    summary: IngestionSummaryResponse
    error_file_download_url: str | None = None
    omitted_error_rows: int = Field(default=0, ge=0, description="Rejected rows left out of the error report")


class ParametersResponse(BaseModel):
    parameters: list[str] = Field(default_factory=list)


class DateRangeResponse(BaseModel):
    start: date | None = None
    end: date | None = None


class DataSummaryResponse(BaseModel):
    total_records: int = Field(..., ge=0)
    date_range: DateRangeResponse


class ReadingPageResponse(BaseModel):
    """
    One page of readings; each item holds ``id``, ``date``, ``time`` and the
    requested parameter keyed by its name.
    """

    parameter: str
    items: list[dict[str, Any]] = Field(default_factory=list)
    total: int = Field(..., ge=0)
    page: int = Field(..., ge=1)
    limit: int = Field(..., ge=1)
    total_pages: int = Field(..., ge=0)


class TimeSeriesResponse(BaseModel):
    parameter: str
    items: list[dict[str, Any]] = Field(default_factory=list)
    total: int = Field(..., ge=0)
    truncated: bool = False


class StatisticsBucketResponse(BaseModel):
    period: str
    avg_value: float | None = None
    min_value: float | None = None
    max_value: float | None = None
    count: int = Field(..., ge=0)


class StatisticsResponse(BaseModel):
    parameter: str
    aggregation: str
    statistics: list[StatisticsBucketResponse] = Field(default_factory=list)
