"""
app/repositories/reading_repository.py

Persistence and query layer for air-quality readings.
"""

from __future__ import annotations

import math
import uuid
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from sqlalchemy import String, cast, delete, func, insert, literal_column, select
from sqlalchemy.orm import Session
from sqlalchemy.sql.elements import ColumnElement

from app.domain.air_quality import MEASUREMENT_FIELD_NAMES, NormalizedReading
from app.mappers.reading_mapper import to_record_payload
from db.models.reading import Reading

AGGREGATIONS: tuple[str, ...] = ("hourly", "daily", "monthly")


class ReadingQueryError(ValueError):
    """Base class for rejected query arguments."""


class UnknownParameterError(ReadingQueryError):
    def __init__(self, parameter: str) -> None:
        super().__init__(
            f"Unknown parameter {parameter!r}. "
            f"Expected one of: {', '.join(MEASUREMENT_FIELD_NAMES)}"
        )
        self.parameter = parameter


class InvalidAggregationError(ReadingQueryError):
    def __init__(self, aggregation: str) -> None:
        super().__init__(
            f"Unknown aggregation {aggregation!r}. Expected one of: {', '.join(AGGREGATIONS)}"
        )
        self.aggregation = aggregation


class InvalidPaginationError(ReadingQueryError):
    """Raised for page < 1 or a limit outside the allowed window."""


@dataclass(frozen=True)
class DateRange:
    start: date | None
    end: date | None


@dataclass(frozen=True)
class ReadingPage:
    items: list[dict[str, Any]] = field(default_factory=list)
    total: int = 0
    page: int = 1
    limit: int = 0
    total_pages: int = 0


@dataclass(frozen=True)
class BucketStatistics:
    period: str
    avg: float | None
    min: float | None
    max: float | None
    count: int


def parameter_column(parameter: str) -> Any:
    if parameter not in MEASUREMENT_FIELD_NAMES:
        raise UnknownParameterError(parameter)
    return getattr(Reading, parameter)


def _inline(sql: str) -> ColumnElement[Any]:
    return literal_column(sql)


def _bucket_expression(granularity: str) -> ColumnElement[str]:
    # Constants are rendered inline so the GROUP BY expression matches the
    # SELECT expression under server-side parameter binding.
    day = cast(Reading.date, String)
    if granularity == "daily":
        return day
    if granularity == "monthly":
        return func.substr(day, _inline("1"), _inline("7"))
    if granularity == "hourly":
        return (
            day
            + _inline("' '")
            + func.substr(Reading.time, _inline("1"), _inline("2"))
            + _inline("':00'")
        )
    raise InvalidAggregationError(granularity)


class ReadingRepository:
    """
    Repository for batch persistence and range queries over ``readings``.

    Writes never commit; the caller owns the transaction.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def count(self) -> int:
        return int(self._session.scalar(select(func.count(Reading.id))) or 0)

    def insert_batch(
        self,
        readings: Sequence[NormalizedReading],
        *,
        ingestion_id: uuid.UUID | None = None,
    ) -> int:
        if not readings:
            return 0

        payloads = [to_record_payload(reading, ingestion_id=ingestion_id) for reading in readings]
        self._session.execute(insert(Reading), payloads)
        return len(payloads)

    def delete_ingestion(self, ingestion_id: uuid.UUID) -> int:
        """
        Remove every reading stored by one ingestion call.
        """

        result = self._session.execute(
            delete(Reading).where(Reading.ingestion_id == ingestion_id)
        )
        return int(result.rowcount or 0)

    def commit(self) -> None:
        self._session.commit()

    def rollback(self) -> None:
        self._session.rollback()

    def query_range(
        self,
        parameter: str,
        *,
        start_date: date | None = None,
        end_date: date | None = None,
        page: int = 1,
        limit: int = 1000,
    ) -> ReadingPage:
        column = parameter_column(parameter)
        if page < 1:
            raise InvalidPaginationError("page must be >= 1")
        if limit < 1:
            raise InvalidPaginationError("limit must be >= 1")

        filters = self._date_filters(start_date, end_date)

        total = int(
            self._session.scalar(select(func.count(Reading.id)).where(*filters)) or 0
        )

        stmt = (
            select(Reading.id, Reading.date, Reading.time, column.label(parameter))
            .where(*filters)
            .order_by(Reading.date.asc(), Reading.time.asc(), Reading.id.asc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        items = [
            {"id": row.id, "date": row.date, "time": row.time, parameter: row[3]}
            for row in self._session.execute(stmt)
        ]

        return ReadingPage(
            items=items,
            total=total,
            page=page,
            limit=limit,
            total_pages=math.ceil(total / limit) if total else 0,
        )

    def aggregate(
        self,
        parameter: str,
        granularity: str,
        *,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> list[BucketStatistics]:
        """
        Per-bucket avg/min/max/count over non-null values, ascending by bucket.
        """

        column = parameter_column(parameter)
        bucket = _bucket_expression(granularity).label("period")

        stmt = (
            select(
                bucket,
                func.avg(column).label("avg"),
                func.min(column).label("min"),
                func.max(column).label("max"),
                func.count(column).label("count"),
            )
            .where(*self._date_filters(start_date, end_date), column.is_not(None))
            .group_by(bucket)
            .order_by(bucket.asc())
        )

        return [
            BucketStatistics(
                period=str(row.period),
                avg=_as_float(row.avg),
                min=_as_float(row.min),
                max=_as_float(row.max),
                count=int(row.count),
            )
            for row in self._session.execute(stmt)
        ]

    def min_max_date(self) -> DateRange:
        row = self._session.execute(select(func.min(Reading.date), func.max(Reading.date))).one()
        return DateRange(start=_as_date(row[0]), end=_as_date(row[1]))

    @staticmethod
    def _date_filters(
        start_date: date | None,
        end_date: date | None,
    ) -> list[ColumnElement[bool]]:
        filters: list[ColumnElement[bool]] = []
        if start_date is not None:
            filters.append(Reading.date >= start_date)
        if end_date is not None:
            filters.append(Reading.date <= end_date)
        return filters


def _as_float(value: Any) -> float | None:
    if value is None:
        return None
    return float(value)


def _as_date(value: Any) -> date | None:
    if value is None or isinstance(value, date):
        return value
    # SQLite returns aggregate results over DATE columns as text.
    return date.fromisoformat(str(value))
