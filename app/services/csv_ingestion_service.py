"""
app/services/csv_ingestion_service.py

Service layer for air-quality CSV ingestion.

The file is read as a stream, validated row by row, and valid readings are
written in fixed-size batches. Each batch commits on its own, so a write
failure part-way leaves earlier batches stored; every stored row carries
the call's ``ingestion_id`` so a partial load can be found and removed.
"""

from __future__ import annotations

import csv
import io
import logging
import uuid
from collections.abc import Callable
from functools import lru_cache
from pathlib import Path
from typing import BinaryIO, Protocol, Sequence

from sqlalchemy.exc import SQLAlchemyError

from app.cache import TTLCache, get_query_cache
from app.config import get_csv_ingestion_settings
from app.domain.air_quality import IngestionSummary, NormalizedReading, RowValidationResult
from app.mappers.reading_mapper import missing_headers, unrecognized_headers
from app.validators.reading_validator import ReadingRowValidator

logger = logging.getLogger(__name__)

CSV_DELIMITER = ";"

ProgressCallback = Callable[[int, int], None]


class CSVHeaderValidationError(ValueError):
    """
    Raised when the CSV stream cannot be decoded or has no header row.
    """


class CSVStreamError(CSVHeaderValidationError):
    """
    Raised when decoding or parsing fails after data rows were read.

    Batches committed before the failure stay stored, exactly as for
    ``CSVPersistenceError``.
    """

    def __init__(self, message: str, *, ingestion_id: uuid.UUID, persisted_rows: int) -> None:
        super().__init__(message)
        self.ingestion_id = ingestion_id
        self.persisted_rows = persisted_rows


class CSVPersistenceError(RuntimeError):
    """
    Raised when a batch of valid rows cannot be persisted.

    Batches committed before the failure stay stored; ``persisted_rows``
    counts them and ``ingestion_id`` identifies them.
    """

    def __init__(self, message: str, *, ingestion_id: uuid.UUID, persisted_rows: int) -> None:
        super().__init__(message)
        self.ingestion_id = ingestion_id
        self.persisted_rows = persisted_rows


class ReadingStore(Protocol):
    def insert_batch(
        self,
        readings: Sequence[NormalizedReading],
        *,
        ingestion_id: uuid.UUID | None = None,
    ) -> int: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...


class CSVIngestionService:
    """
    Coordinates CSV parsing, row validation, and batched persistence.
    """

    def __init__(
        self,
        *,
        batch_size: int,
        max_error_rows: int = 0,
        log_validation_errors: bool,
        validator: ReadingRowValidator | None = None,
        cache: TTLCache | None = None,
    ) -> None:
        self._batch_size = max(1, batch_size)
        self._max_error_rows = max(0, max_error_rows)
        self._log_validation_errors = log_validation_errors
        self._validator = validator or ReadingRowValidator()
        self._cache = cache

    @property
    def batch_size(self) -> int:
        return self._batch_size

    def ingest_path(
        self,
        path: str | Path,
        *,
        repository: ReadingStore,
        progress_callback: ProgressCallback | None = None,
    ) -> IngestionSummary:
        with open(path, "rb") as handle:
            return self.ingest(handle, repository=repository, progress_callback=progress_callback)

    def ingest(
        self,
        stream: BinaryIO,
        *,
        repository: ReadingStore,
        progress_callback: ProgressCallback | None = None,
    ) -> IngestionSummary:
        """
        Stream a semicolon-separated CSV, keep rejected rows, persist valid rows in batches.

        ``progress_callback(processed_rows, persisted_rows)`` is invoked after
        every committed batch.
        """

        ingestion_id = uuid.uuid4()
        text_stream: io.TextIOWrapper | None = None

        total_rows = 0
        invalid_rows = 0
        persisted_rows = 0
        error_rows: list[RowValidationResult] = []
        batch: list[NormalizedReading] = []

        try:
            text_stream = io.TextIOWrapper(stream, encoding="utf-8-sig", newline="")
            reader = csv.DictReader(text_stream, delimiter=CSV_DELIMITER)
            headers = reader.fieldnames or []
            if not headers:
                raise CSVHeaderValidationError("CSV header row is missing.")
            self._log_header_shape(headers)

            for position, raw_row in enumerate(reader):
                total_rows += 1
                result = self._validator.validate_row(raw_row, position + 2)

                if not result.is_valid or result.reading is None:
                    invalid_rows += 1
                    self._record_error(error_rows, result)
                    continue

                batch.append(result.reading)
                if len(batch) >= self._batch_size:
                    persisted_rows += self._persist_batch(
                        repository=repository,
                        batch=batch,
                        ingestion_id=ingestion_id,
                        persisted_rows=persisted_rows,
                    )
                    batch.clear()
                    if progress_callback is not None:
                        progress_callback(total_rows, persisted_rows)

            if batch:
                persisted_rows += self._persist_batch(
                    repository=repository,
                    batch=batch,
                    ingestion_id=ingestion_id,
                    persisted_rows=persisted_rows,
                )
                batch.clear()
                if progress_callback is not None:
                    progress_callback(total_rows, persisted_rows)

        except UnicodeDecodeError as exc:
            raise self._stream_error(
                "CSV must be UTF-8 encoded.",
                ingestion_id=ingestion_id,
                persisted_rows=persisted_rows,
            ) from exc
        except csv.Error as exc:
            raise self._stream_error(
                f"Invalid CSV format: {exc}",
                ingestion_id=ingestion_id,
                persisted_rows=persisted_rows,
            ) from exc
        finally:
            if text_stream is not None:
                try:
                    text_stream.detach()
                except ValueError:
                    pass
            # Committed batches are visible whether or not the run finished.
            if persisted_rows > 0 and self._cache is not None:
                self._cache.clear()

        omitted_error_rows = invalid_rows - len(error_rows)
        if omitted_error_rows:
            logger.warning(
                "Error report truncated ingestion_id=%s kept=%s omitted=%s",
                ingestion_id,
                len(error_rows),
                omitted_error_rows,
            )

        logger.info(
            "CSV ingestion finished ingestion_id=%s total=%s valid=%s invalid=%s",
            ingestion_id,
            total_rows,
            persisted_rows,
            invalid_rows,
        )

        return IngestionSummary(
            total_rows=total_rows,
            valid_rows=persisted_rows,
            invalid_rows=invalid_rows,
            error_rows=error_rows,
            ingestion_id=ingestion_id,
            omitted_error_rows=omitted_error_rows,
        )

    def _stream_error(
        self,
        message: str,
        *,
        ingestion_id: uuid.UUID,
        persisted_rows: int,
    ) -> CSVStreamError:
        if persisted_rows:
            logger.error(
                "CSV stream failed after partial load ingestion_id=%s persisted=%s: %s",
                ingestion_id,
                persisted_rows,
                message,
            )
        return CSVStreamError(message, ingestion_id=ingestion_id, persisted_rows=persisted_rows)

    def _persist_batch(
        self,
        *,
        repository: ReadingStore,
        batch: list[NormalizedReading],
        ingestion_id: uuid.UUID,
        persisted_rows: int,
    ) -> int:
        try:
            inserted = repository.insert_batch(list(batch), ingestion_id=ingestion_id)
            repository.commit()
        except SQLAlchemyError as exc:
            repository.rollback()
            logger.error(
                "Batch write failed ingestion_id=%s batch_size=%s persisted=%s",
                ingestion_id,
                len(batch),
                persisted_rows,
            )
            raise CSVPersistenceError(
                "Failed to persist valid CSV rows.",
                ingestion_id=ingestion_id,
                persisted_rows=persisted_rows,
            ) from exc

        logger.debug("Batch committed ingestion_id=%s rows=%s", ingestion_id, inserted)
        return inserted

    def _record_error(
        self,
        error_rows: list[RowValidationResult],
        result: RowValidationResult,
    ) -> None:
        if self._log_validation_errors:
            logger.warning(
                "CSV validation error row=%s errors=%s",
                result.row_index,
                "; ".join(result.errors),
            )

        # 0 keeps every rejected row.
        if not self._max_error_rows or len(error_rows) < self._max_error_rows:
            error_rows.append(result)

    def _log_header_shape(self, headers: Sequence[str]) -> None:
        missing = missing_headers(headers)
        if missing:
            logger.warning("CSV header is missing known columns columns=%s", missing)
        extra = unrecognized_headers(headers)
        if extra:
            logger.debug("CSV header has ignored columns columns=%s", extra)


@lru_cache(maxsize=1)
def get_csv_ingestion_service() -> CSVIngestionService:
    """
    Build and cache the ingestion service with env-driven settings.
    """

    settings = get_csv_ingestion_settings()
    return CSVIngestionService(
        batch_size=settings.batch_size,
        max_error_rows=settings.max_error_rows,
        log_validation_errors=settings.log_validation_errors,
        cache=get_query_cache(),
    )
