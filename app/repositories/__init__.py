"""
app/repositories package marker.
"""

from app.repositories.reading_repository import (
    AGGREGATIONS,
    BucketStatistics,
    DateRange,
    InvalidAggregationError,
    InvalidPaginationError,
    ReadingPage,
    ReadingQueryError,
    ReadingRepository,
    UnknownParameterError,
)

__all__ = [
    "AGGREGATIONS",
    "BucketStatistics",
    "DateRange",
    "InvalidAggregationError",
    "InvalidPaginationError",
    "ReadingPage",
    "ReadingQueryError",
    "ReadingRepository",
    "UnknownParameterError",
]
