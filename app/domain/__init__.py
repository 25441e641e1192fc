"""
app/domain package marker.
"""

from app.domain.air_quality import (
    MEASUREMENT_FIELD_NAMES,
    MEASUREMENT_FIELDS,
    IngestionSummary,
    MeasurementField,
    NormalizedReading,
    RawRow,
    RowValidationResult,
)

__all__ = [
    "IngestionSummary",
    "MEASUREMENT_FIELD_NAMES",
    "MEASUREMENT_FIELDS",
    "MeasurementField",
    "NormalizedReading",
    "RawRow",
    "RowValidationResult",
]
