"""
app/mappers/reading_mapper.py

Explicit construction of readings from parsed values.

Only the known measurement field names are accepted; anything else is
rejected rather than copied onto the record.
"""

from __future__ import annotations

import uuid
from datetime import date
from typing import Any, Mapping, Sequence

from app.domain.air_quality import (
    DATE_HEADER,
    MEASUREMENT_FIELD_NAMES,
    MEASUREMENT_FIELDS,
    TIME_HEADER,
    NormalizedReading,
)

KNOWN_HEADERS: tuple[str, ...] = (
    DATE_HEADER,
    TIME_HEADER,
    *(m.header for m in MEASUREMENT_FIELDS),
)

_KNOWN_FIELD_SET = frozenset(MEASUREMENT_FIELD_NAMES)


class UnknownMeasurementFieldError(ValueError):
    """
    Raised when a value is supplied for a field the reading schema does not have.
    """

    def __init__(self, fields: Sequence[str]) -> None:
        super().__init__(f"Unknown measurement fields: {', '.join(sorted(fields))}")
        self.fields = tuple(fields)


def build_reading(
    *,
    reading_date: date,
    reading_time: str,
    measurements: Mapping[str, float],
) -> NormalizedReading:
    """
    Build a NormalizedReading from recognized measurement names only.
    """

    unknown = [name for name in measurements if name not in _KNOWN_FIELD_SET]
    if unknown:
        raise UnknownMeasurementFieldError(unknown)

    return NormalizedReading(date=reading_date, time=reading_time, **measurements)


def to_record_payload(
    reading: NormalizedReading,
    *,
    ingestion_id: uuid.UUID | None = None,
) -> dict[str, Any]:
    """
    Flatten a reading into column values for the ``readings`` table.
    """

    payload: dict[str, Any] = {
        "date": reading.date,
        "time": reading.time,
        "ingestion_id": ingestion_id,
    }
    payload.update(reading.measurements())
    return payload


def unrecognized_headers(headers: Sequence[str]) -> list[str]:
    """
    Return CSV headers that no parser consumes (kept for logging only).
    """

    known = set(KNOWN_HEADERS)
    return [header for header in headers if header and header not in known]


def missing_headers(headers: Sequence[str]) -> list[str]:
    present = set(headers)
    return [header for header in KNOWN_HEADERS if header not in present]
