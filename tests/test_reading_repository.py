"""
tests/test_reading_repository.py

Repository and query service behaviour on an in-memory SQLite database.
"""

from __future__ import annotations

import uuid
from datetime import date

import pytest
from sqlalchemy.orm import Session

from app.cache import TTLCache
from app.domain.air_quality import NormalizedReading
from app.repositories.reading_repository import (
    InvalidAggregationError,
    InvalidPaginationError,
    ReadingRepository,
    UnknownParameterError,
)
from app.services.readings_query_service import ReadingsQueryService


def _reading(day: date, time: str, **values: float | None) -> NormalizedReading:
    return NormalizedReading(date=day, time=time, **values)


@pytest.fixture()
def seeded(db_session: Session) -> ReadingRepository:
    repository = ReadingRepository(db_session)
    repository.insert_batch(
        [
            _reading(date(2004, 3, 10), "18:00:00", co=2.0, temperature=13.6),
            _reading(date(2004, 3, 10), "18:30:00", co=4.0),
            _reading(date(2004, 3, 10), "19:00:00", co=None),
            _reading(date(2004, 3, 11), "00:00:00", co=1.0),
            _reading(date(2004, 4, 1), "09:00:00", co=3.0),
        ],
        ingestion_id=uuid.uuid4(),
    )
    repository.commit()
    return repository


class TestReadingRepository:
    def test_count_and_date_range(self, seeded: ReadingRepository) -> None:
        assert seeded.count() == 5
        date_range = seeded.min_max_date()
        assert (date_range.start, date_range.end) == (date(2004, 3, 10), date(2004, 4, 1))

    def test_empty_table(self, db_session: Session) -> None:
        repository = ReadingRepository(db_session)

        assert repository.count() == 0
        assert repository.min_max_date().start is None
        assert repository.insert_batch([]) == 0

    def test_query_range_orders_and_paginates(self, seeded: ReadingRepository) -> None:
        page = seeded.query_range("co", page=1, limit=2)

        assert page.total == 5
        assert page.total_pages == 3
        assert [item["time"] for item in page.items] == ["18:00:00", "18:30:00"]
        assert page.items[0]["co"] == pytest.approx(2.0)
        assert set(page.items[0]) == {"id", "date", "time", "co"}

        last = seeded.query_range("co", page=3, limit=2)
        assert [item["date"] for item in last.items] == [date(2004, 4, 1)]

    def test_query_range_date_bounds_are_inclusive(self, seeded: ReadingRepository) -> None:
        both = seeded.query_range("co", start_date=date(2004, 3, 11), end_date=date(2004, 4, 1))
        start_only = seeded.query_range("co", start_date=date(2004, 3, 11))
        end_only = seeded.query_range("co", end_date=date(2004, 3, 10))

        assert both.total == 2
        assert start_only.total == 2
        assert end_only.total == 3

    def test_query_range_rejects_bad_arguments(self, seeded: ReadingRepository) -> None:
        with pytest.raises(UnknownParameterError):
            seeded.query_range("ozone")
        with pytest.raises(InvalidPaginationError):
            seeded.query_range("co", page=0)

    def test_daily_aggregation(self, seeded: ReadingRepository) -> None:
        buckets = seeded.aggregate("co", "daily")

        assert [bucket.period for bucket in buckets] == ["2004-03-10", "2004-03-11", "2004-04-01"]
        first = buckets[0]
        assert first.avg == pytest.approx(3.0)
        assert (first.min, first.max, first.count) == (2.0, 4.0, 2)

    def test_monthly_aggregation(self, seeded: ReadingRepository) -> None:
        buckets = seeded.aggregate("co", "monthly")

        assert [(bucket.period, bucket.count) for bucket in buckets] == [("2004-03", 3), ("2004-04", 1)]
        assert buckets[0].avg == pytest.approx(7.0 / 3)

    def test_hourly_aggregation(self, seeded: ReadingRepository) -> None:
        buckets = seeded.aggregate("co", "hourly", start_date=date(2004, 3, 10), end_date=date(2004, 3, 10))

        assert [(bucket.period, bucket.count) for bucket in buckets] == [("2004-03-10 18:00", 2)]

    def test_unknown_granularity(self, seeded: ReadingRepository) -> None:
        with pytest.raises(InvalidAggregationError):
            seeded.aggregate("co", "weekly")

    def test_delete_ingestion(self, db_session: Session) -> None:
        repository = ReadingRepository(db_session)
        keep, drop = uuid.uuid4(), uuid.uuid4()
        repository.insert_batch([_reading(date(2004, 3, 10), "18:00:00")], ingestion_id=keep)
        repository.insert_batch(
            [_reading(date(2004, 3, 10), "19:00:00"), _reading(date(2004, 3, 10), "20:00:00")],
            ingestion_id=drop,
        )
        repository.commit()

        assert repository.delete_ingestion(drop) == 2
        repository.commit()
        assert repository.count() == 1


class TestReadingsQueryService:
    @pytest.fixture()
    def service(self) -> ReadingsQueryService:
        return ReadingsQueryService(cache=TTLCache(), cache_ttl_seconds=300, default_limit=2, max_limit=3)

    def test_available_parameters(self, service: ReadingsQueryService) -> None:
        parameters = service.available_parameters()

        assert parameters[0] == "co"
        assert len(parameters) == 13
        assert "relative_humidity" in parameters

    def test_summary_is_cached(self, service: ReadingsQueryService, seeded: ReadingRepository, db_session: Session) -> None:
        first = service.data_summary(db_session)
        seeded.insert_batch([_reading(date(2005, 1, 1), "00:00:00")])
        seeded.commit()

        assert service.data_summary(db_session) == first
        assert first["total_records"] == 5
        assert first["date_range"] == {"start": date(2004, 3, 10), "end": date(2004, 4, 1)}

    def test_time_series_uses_default_limit(self, service: ReadingsQueryService, seeded: ReadingRepository, db_session: Session) -> None:
        page = service.time_series(db_session, "co")

        assert page.limit == 2
        assert len(page.items) == 2

    @pytest.mark.parametrize("page, limit", [(0, 2), (1, 0), (1, 4)])
    def test_time_series_rejects_pagination(
        self,
        service: ReadingsQueryService,
        db_session: Session,
        page: int,
        limit: int,
    ) -> None:
        with pytest.raises(InvalidPaginationError):
            service.time_series(db_session, "co", page=page, limit=limit)

    def test_statistics_defaults_to_daily(self, service: ReadingsQueryService, seeded: ReadingRepository, db_session: Session) -> None:
        buckets = service.statistics(db_session, "co", None)

        assert buckets[0].period == "2004-03-10"

    def test_statistics_validation(self, service: ReadingsQueryService, db_session: Session) -> None:
        with pytest.raises(UnknownParameterError):
            service.statistics(db_session, "ozone")
        with pytest.raises(InvalidAggregationError):
            service.statistics(db_session, "co", "yearly")
        with pytest.raises(ValueError):
            service.statistics(db_session, "co", "yearly")
