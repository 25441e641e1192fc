"""
app/mappers package marker.
"""

from app.mappers.reading_mapper import (
    KNOWN_HEADERS,
    UnknownMeasurementFieldError,
    build_reading,
    missing_headers,
    to_record_payload,
    unrecognized_headers,
)

__all__ = [
    "KNOWN_HEADERS",
    "UnknownMeasurementFieldError",
    "build_reading",
    "missing_headers",
    "to_record_payload",
    "unrecognized_headers",
]
