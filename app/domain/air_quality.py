"""
app/domain/air_quality.py

Domain models used by the air-quality CSV ingestion flow.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date
from typing import Mapping

RawRow = Mapping[str, str | None]
"""One CSV data row keyed by its original header, values unparsed."""


@dataclass(frozen=True)
class MeasurementField:
    """
    One known sensor column: original CSV header plus normalized field name.
    """

    header: str
    field: str


MEASUREMENT_FIELDS: tuple[MeasurementField, ...] = (
    MeasurementField(header="CO(GT)", field="co"),
    MeasurementField(header="PT08.S1(CO)", field="pt08_s1_co"),
    MeasurementField(header="NMHC(GT)", field="nmhc"),
    MeasurementField(header="C6H6(GT)", field="c6h6"),
    MeasurementField(header="PT08.S2(NMHC)", field="pt08_s2_nmhc"),
    MeasurementField(header="NOx(GT)", field="nox"),
    MeasurementField(header="PT08.S3(NOx)", field="pt08_s3_nox"),
    MeasurementField(header="NO2(GT)", field="no2"),
    MeasurementField(header="PT08.S4(NO2)", field="pt08_s4_no2"),
    MeasurementField(header="PT08.S5(O3)", field="pt08_s5_o3"),
    MeasurementField(header="T", field="temperature"),
    MeasurementField(header="RH", field="relative_humidity"),
    MeasurementField(header="AH", field="absolute_humidity"),
)

MEASUREMENT_FIELD_NAMES: tuple[str, ...] = tuple(m.field for m in MEASUREMENT_FIELDS)

DATE_HEADER = "Date"
TIME_HEADER = "Time"


@dataclass(frozen=True)
class NormalizedReading:
    """
    Parsed reading prepared for persistence.

    ``date`` and ``time`` are always well-formed; every measurement is
    independently nullable (sensor gap).
    """

    date: date
    time: str
    co: float | None = None
    pt08_s1_co: float | None = None
    nmhc: float | None = None
    c6h6: float | None = None
    pt08_s2_nmhc: float | None = None
    nox: float | None = None
    pt08_s3_nox: float | None = None
    no2: float | None = None
    pt08_s4_no2: float | None = None
    pt08_s5_o3: float | None = None
    temperature: float | None = None
    relative_humidity: float | None = None
    absolute_humidity: float | None = None

    def measurements(self) -> dict[str, float | None]:
        return {name: getattr(self, name) for name in MEASUREMENT_FIELD_NAMES}


@dataclass(frozen=True)
class RowValidationResult:
    """
    Validation outcome for one CSV data row.
    """

    row_index: int
    original_row: RawRow
    is_valid: bool
    errors: tuple[str, ...] = ()
    reading: NormalizedReading | None = None


@dataclass(frozen=True)
class IngestionSummary:
    """
    End-of-run ingestion summary.

    ``error_rows`` holds every rejected row unless a retention cap is
    configured; rows beyond the cap are counted in ``omitted_error_rows``.
    """

    total_rows: int
    valid_rows: int
    invalid_rows: int
    error_rows: list[RowValidationResult] = field(default_factory=list)
    ingestion_id: uuid.UUID | None = None
    omitted_error_rows: int = 0

    @property
    def has_errors(self) -> bool:
        return self.invalid_rows > 0

    @property
    def error_rows_truncated(self) -> bool:
        return self.omitted_error_rows > 0
