"""
tests/test_csv_ingestion_service.py

Coordinator tests against an in-memory repository double.

No database: batching, counting, and failure handling are observed
through the calls the service makes on the repository.
"""

from __future__ import annotations

import io
import uuid
from pathlib import Path
from typing import Sequence

import pytest
from sqlalchemy.exc import OperationalError

from app.cache import TTLCache
from app.domain.air_quality import NormalizedReading
from app.services.csv_ingestion_service import (
    CSVHeaderValidationError,
    CSVIngestionService,
    CSVPersistenceError,
    CSVStreamError,
)
from app.validators.reading_validator import DATE_ERROR_MESSAGE, TIME_ERROR_MESSAGE

HEADER = (
    "Date;Time;CO(GT);PT08.S1(CO);NMHC(GT);C6H6(GT);PT08.S2(NMHC);NOx(GT);"
    "PT08.S3(NOx);NO2(GT);PT08.S4(NO2);PT08.S5(O3);T;RH;AH;;"
)
VALID_ROW = "10/03/2004;18.00.00;2,6;1360;150;11,9;1046;166;1056;113;1692;1268;13,6;48,9;0,7578;;"


class FakeRepository:
    def __init__(self, *, fail_on_call: int | None = None) -> None:
        self.batches: list[list[NormalizedReading]] = []
        self.ingestion_ids: list[uuid.UUID | None] = []
        self.commits = 0
        self.rollbacks = 0
        self._fail_on_call = fail_on_call

    def insert_batch(
        self,
        readings: Sequence[NormalizedReading],
        *,
        ingestion_id: uuid.UUID | None = None,
    ) -> int:
        if self._fail_on_call is not None and len(self.batches) + 1 == self._fail_on_call:
            raise OperationalError("INSERT INTO readings", {}, Exception("connection lost"))
        self.batches.append(list(readings))
        self.ingestion_ids.append(ingestion_id)
        return len(readings)

    def commit(self) -> None:
        self.commits += 1

    def rollback(self) -> None:
        self.rollbacks += 1

    @property
    def stored(self) -> list[NormalizedReading]:
        return [reading for batch in self.batches for reading in batch]


def _csv_bytes(*rows: str, bom: bool = False) -> io.BytesIO:
    text = "\n".join((HEADER, *rows)) + "\n"
    data = text.encode("utf-8")
    if bom:
        data = b"\xef\xbb\xbf" + data
    return io.BytesIO(data)


def _service(**overrides: object) -> CSVIngestionService:
    options: dict[str, object] = {
        "batch_size": 1000,
        "max_error_rows": 0,
        "log_validation_errors": False,
    }
    options.update(overrides)
    return CSVIngestionService(**options)  # type: ignore[arg-type]


class TestIngestion:
    def test_three_rows_one_invalid(self) -> None:
        repository = FakeRepository()
        stream = _csv_bytes(
            VALID_ROW,
            "31/02/2004;19.00.00;2;1292;112;9,4;955;103;1174;92;1559;972;13,3;47,7;0,7255;;",
            "10/03/2004;20.00.00;-200;1402;88;9,0;939;131;1140;114;1555;1074;11,9;54,0;0,7502;;",
        )

        summary = _service().ingest(stream, repository=repository)

        assert (summary.total_rows, summary.valid_rows, summary.invalid_rows) == (3, 2, 1)
        assert summary.has_errors
        assert len(summary.error_rows) == 1
        error = summary.error_rows[0]
        assert error.row_index == 3
        assert error.errors == (DATE_ERROR_MESSAGE,)
        assert error.original_row["Date"] == "31/02/2004"
        assert len(repository.batches) == 1
        assert repository.stored[0].co == pytest.approx(2.6)
        assert repository.stored[1].co is None
        assert repository.ingestion_ids == [summary.ingestion_id]
        assert repository.commits == 1

    def test_rows_are_batched(self) -> None:
        repository = FakeRepository()
        stream = _csv_bytes(*([VALID_ROW] * 2500))

        summary = _service().ingest(stream, repository=repository)

        assert [len(batch) for batch in repository.batches] == [1000, 1000, 500]
        assert repository.commits == 3
        assert summary.valid_rows == 2500
        assert summary.invalid_rows == 0

    def test_header_only_file(self) -> None:
        repository = FakeRepository()

        summary = _service().ingest(_csv_bytes(), repository=repository)

        assert (summary.total_rows, summary.valid_rows, summary.invalid_rows) == (0, 0, 0)
        assert summary.error_rows == []
        assert repository.batches == []

    def test_all_invalid_rows_write_nothing(self) -> None:
        repository = FakeRepository()
        stream = _csv_bytes(";;;;;;;;;;;;;;;;", "bad;bad;1;1;1;1;1;1;1;1;1;1;1;1;1;;")

        summary = _service().ingest(stream, repository=repository)

        assert summary.invalid_rows == 2
        assert summary.valid_rows == 0
        assert repository.batches == []
        assert repository.commits == 0
        assert summary.error_rows[0].errors == (DATE_ERROR_MESSAGE, TIME_ERROR_MESSAGE)
        assert [row.row_index for row in summary.error_rows] == [2, 3]

    def test_trailing_blank_lines_are_ignored(self) -> None:
        repository = FakeRepository()
        stream = io.BytesIO(f"{HEADER}\n{VALID_ROW}\n\n\n".encode("utf-8"))

        summary = _service().ingest(stream, repository=repository)

        assert summary.total_rows == 1

    def test_bom_is_tolerated(self) -> None:
        repository = FakeRepository()

        summary = _service().ingest(_csv_bytes(VALID_ROW, bom=True), repository=repository)

        assert summary.valid_rows == 1

    def test_error_rows_are_capped_but_counted(self) -> None:
        repository = FakeRepository()
        stream = _csv_bytes(*([";;;;;;;;;;;;;;;;"] * 5))

        summary = _service(max_error_rows=2).ingest(stream, repository=repository)

        assert summary.invalid_rows == 5
        assert len(summary.error_rows) == 2
        assert summary.omitted_error_rows == 3
        assert summary.error_rows_truncated

    def test_every_rejected_row_is_kept_by_default(self) -> None:
        repository = FakeRepository()
        stream = _csv_bytes(*([";;;;;;;;;;;;;;;;"] * 10005))

        summary = _service().ingest(stream, repository=repository)

        assert summary.invalid_rows == 10005
        assert len(summary.error_rows) == 10005
        assert summary.error_rows[-1].row_index == 10006
        assert not summary.error_rows_truncated

    def test_progress_callback_after_each_batch(self) -> None:
        repository = FakeRepository()
        calls: list[tuple[int, int]] = []
        stream = _csv_bytes(*([VALID_ROW] * 5))

        _service(batch_size=2).ingest(
            stream,
            repository=repository,
            progress_callback=lambda processed, persisted: calls.append((processed, persisted)),
        )

        assert calls == [(2, 2), (4, 4), (5, 5)]

    def test_cache_cleared_after_rows_stored(self) -> None:
        cache = TTLCache()
        cache.set("summary", {"total_records": 0}, 300)

        _service(cache=cache).ingest(_csv_bytes(VALID_ROW), repository=FakeRepository())

        assert cache.get("summary") is None

    def test_cache_kept_when_nothing_stored(self) -> None:
        cache = TTLCache()
        cache.set("summary", {"total_records": 0}, 300)

        _service(cache=cache).ingest(_csv_bytes(";;;;"), repository=FakeRepository())

        assert cache.get("summary") == {"total_records": 0}

    def test_ingest_path(self, tmp_path: Path) -> None:
        csv_path = tmp_path / "AirQualityUCI.csv"
        csv_path.write_bytes(_csv_bytes(VALID_ROW, VALID_ROW).getvalue())

        summary = _service().ingest_path(csv_path, repository=FakeRepository())

        assert summary.valid_rows == 2


class TestFailures:
    def test_missing_header(self) -> None:
        with pytest.raises(CSVHeaderValidationError):
            _service().ingest(io.BytesIO(b""), repository=FakeRepository())

    def test_non_utf8_stream(self) -> None:
        stream = io.BytesIO(HEADER.encode("utf-8") + b"\n10/03/2004;18.00.00;\xff\xfe;;\n")

        with pytest.raises(CSVHeaderValidationError) as excinfo:
            _service().ingest(stream, repository=FakeRepository())

        assert isinstance(excinfo.value, CSVStreamError)
        assert excinfo.value.persisted_rows == 0

    def test_decode_error_after_committed_batches(self) -> None:
        repository = FakeRepository()
        cache = TTLCache()
        cache.set("summary", {"total_records": 0}, 300)
        data = _csv_bytes(*([VALID_ROW] * 3000)).getvalue() + b"10/03/2004;18.00.00;\xff;;\n"

        with pytest.raises(CSVStreamError) as excinfo:
            _service(cache=cache).ingest(io.BytesIO(data), repository=repository)

        assert excinfo.value.persisted_rows == 2000
        assert repository.commits == 2
        assert repository.ingestion_ids == [excinfo.value.ingestion_id] * 2
        assert cache.get("summary") is None

    def test_batch_failure_clears_cache_for_committed_rows(self) -> None:
        cache = TTLCache()
        cache.set("summary", {"total_records": 0}, 300)

        with pytest.raises(CSVPersistenceError):
            _service(batch_size=2, cache=cache).ingest(
                _csv_bytes(*([VALID_ROW] * 5)),
                repository=FakeRepository(fail_on_call=2),
            )

        assert cache.get("summary") is None

    def test_batch_failure_keeps_earlier_batches(self) -> None:
        repository = FakeRepository(fail_on_call=2)
        stream = _csv_bytes(*([VALID_ROW] * 5))

        with pytest.raises(CSVPersistenceError) as excinfo:
            _service(batch_size=2).ingest(stream, repository=repository)

        assert excinfo.value.persisted_rows == 2
        assert isinstance(excinfo.value.ingestion_id, uuid.UUID)
        assert repository.ingestion_ids == [excinfo.value.ingestion_id]
        assert repository.commits == 1
        assert repository.rollbacks == 1
        assert len(repository.batches) == 1
