"""
app/validators/reading_validator.py

Row-level validation and type parsing for air-quality CSV ingestion.
"""

from __future__ import annotations

import logging
from datetime import date

from app.domain.air_quality import (
    DATE_HEADER,
    MEASUREMENT_FIELDS,
    TIME_HEADER,
    RawRow,
    RowValidationResult,
)
from app.mappers.reading_mapper import build_reading
from app.validators.field_parsers import parse_date, parse_numeric_value, parse_time

logger = logging.getLogger(__name__)

DATE_ERROR_MESSAGE = "Date is required and must be in DD/MM/YYYY format"
TIME_ERROR_MESSAGE = "Time is required and must be in HH.MM.SS format"


class ReadingRowValidator:
    """
    Validates one raw CSV row and builds its normalized reading.

    A row is valid when both date and time parse. Measurement columns never
    affect validity: an unparseable or missing value is stored as NULL.
    """

    def validate_row(self, raw_row: RawRow, row_index: int) -> RowValidationResult:
        """
        Validate and parse one raw row.

        ``row_index`` is the user-facing file line number of the row.
        """

        errors: list[str] = []

        reading_date = self._parse_date(raw_row.get(DATE_HEADER), errors)
        reading_time = self._parse_time(raw_row.get(TIME_HEADER), errors)

        measurements: dict[str, float] = {}
        for measurement in MEASUREMENT_FIELDS:
            value = parse_numeric_value(raw_row.get(measurement.header))
            if value is not None:
                measurements[measurement.field] = value

        if errors or reading_date is None or reading_time is None:
            logger.debug("Row rejected row=%s errors=%s", row_index, errors)
            return RowValidationResult(
                row_index=row_index,
                original_row=raw_row,
                is_valid=False,
                errors=tuple(errors),
                reading=None,
            )

        return RowValidationResult(
            row_index=row_index,
            original_row=raw_row,
            is_valid=True,
            errors=(),
            reading=build_reading(
                reading_date=reading_date,
                reading_time=reading_time,
                measurements=measurements,
            ),
        )

    def _parse_date(self, value: str | None, errors: list[str]) -> date | None:
        parsed = parse_date(value)
        if parsed is None:
            errors.append(DATE_ERROR_MESSAGE)
        return parsed

    def _parse_time(self, value: str | None, errors: list[str]) -> str | None:
        parsed = parse_time(value)
        if parsed is None:
            errors.append(TIME_ERROR_MESSAGE)
        return parsed
