"""
app/services/readings_query_service.py

Read-side service for the dashboard: parameter list, data summary,
time series and bucketed statistics.

Summary, parameter list and statistics responses are cached in the shared
TTL cache; ingestion clears it when new rows are stored.
"""

from __future__ import annotations

import logging
from datetime import date
from functools import lru_cache
from typing import Any

from sqlalchemy.orm import Session

from app.cache import TTLCache, get_query_cache
from app.config import get_cache_settings, get_query_settings
from app.domain.air_quality import MEASUREMENT_FIELD_NAMES
from app.repositories.reading_repository import (
    AGGREGATIONS,
    BucketStatistics,
    InvalidAggregationError,
    InvalidPaginationError,
    ReadingPage,
    ReadingRepository,
    UnknownParameterError,
)

logger = logging.getLogger(__name__)

DEFAULT_AGGREGATION = "daily"

__all__ = [
    "DEFAULT_AGGREGATION",
    "InvalidAggregationError",
    "InvalidPaginationError",
    "ReadingsQueryService",
    "UnknownParameterError",
    "get_readings_query_service",
]


class ReadingsQueryService:
    def __init__(
        self,
        *,
        cache: TTLCache,
        cache_ttl_seconds: float,
        default_limit: int = 1000,
        max_limit: int = 10000,
    ) -> None:
        self._cache = cache
        self._cache_ttl_seconds = cache_ttl_seconds
        self._default_limit = default_limit
        self._max_limit = max_limit

    @property
    def default_limit(self) -> int:
        return self._default_limit

    @property
    def max_limit(self) -> int:
        return self._max_limit

    def available_parameters(self) -> list[str]:
        cached = self._cache.get("parameters")
        if cached is not None:
            return list(cached)
        parameters = list(MEASUREMENT_FIELD_NAMES)
        self._cache.set("parameters", parameters, self._cache_ttl_seconds)
        return list(parameters)

    def data_summary(self, db: Session) -> dict[str, Any]:
        cached = self._cache.get("summary")
        if cached is not None:
            return cached

        repository = ReadingRepository(db)
        date_range = repository.min_max_date()
        summary = {
            "total_records": repository.count(),
            "date_range": {"start": date_range.start, "end": date_range.end},
        }
        self._cache.set("summary", summary, self._cache_ttl_seconds)
        return summary

    def time_series(
        self,
        db: Session,
        parameter: str,
        *,
        start_date: date | None = None,
        end_date: date | None = None,
        page: int = 1,
        limit: int | None = None,
    ) -> ReadingPage:
        """
        One page of readings for *parameter* ordered by date then time.
        """

        self._require_parameter(parameter)
        effective_limit = self._default_limit if limit is None else limit
        if page < 1:
            raise InvalidPaginationError("page must be >= 1")
        if effective_limit < 1 or effective_limit > self._max_limit:
            raise InvalidPaginationError(f"limit must be between 1 and {self._max_limit}")

        return ReadingRepository(db).query_range(
            parameter,
            start_date=start_date,
            end_date=end_date,
            page=page,
            limit=effective_limit,
        )

    def statistics(
        self,
        db: Session,
        parameter: str,
        aggregation: str | None = DEFAULT_AGGREGATION,
        *,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> list[BucketStatistics]:
        self._require_parameter(parameter)
        granularity = aggregation or DEFAULT_AGGREGATION
        if granularity not in AGGREGATIONS:
            raise InvalidAggregationError(granularity)

        cache_key = f"statistics:{parameter}:{granularity}:{start_date}:{end_date}"
        cached = self._cache.get(cache_key)
        if cached is not None:
            return cached

        result = ReadingRepository(db).aggregate(
            parameter,
            granularity,
            start_date=start_date,
            end_date=end_date,
        )
        logger.debug(
            "Statistics computed parameter=%s aggregation=%s buckets=%s",
            parameter,
            granularity,
            len(result),
        )
        self._cache.set(cache_key, result, self._cache_ttl_seconds)
        return result

    @staticmethod
    def _require_parameter(parameter: str) -> None:
        if parameter not in MEASUREMENT_FIELD_NAMES:
            raise UnknownParameterError(parameter)


@lru_cache(maxsize=1)
def get_readings_query_service() -> ReadingsQueryService:
    query_settings = get_query_settings()
    return ReadingsQueryService(
        cache=get_query_cache(),
        cache_ttl_seconds=get_cache_settings().ttl_seconds,
        default_limit=query_settings.default_limit,
        max_limit=query_settings.max_limit,
    )
