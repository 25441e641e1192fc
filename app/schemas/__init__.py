"""
app/schemas package marker.
"""

from app.schemas.ingestion_orchestrator import (
    IngestionJobAcceptedResponse,
    IngestionJobStatusResponse,
    IngestionStatusListResponse,
)
from app.schemas.readings import (
    DataSummaryResponse,
    DateRangeResponse,
    IngestionSummaryResponse,
    IngestResponse,
    ParametersResponse,
    ReadingPageResponse,
    StatisticsBucketResponse,
    StatisticsResponse,
    TimeSeriesResponse,
)

__all__ = [
    "DataSummaryResponse",
    "DateRangeResponse",
    "IngestionJobAcceptedResponse",
    "IngestionJobStatusResponse",
    "IngestionStatusListResponse",
    "IngestionSummaryResponse",
    "IngestResponse",
    "ParametersResponse",
    "ReadingPageResponse",
    "StatisticsBucketResponse",
    "StatisticsResponse",
    "TimeSeriesResponse",
]
