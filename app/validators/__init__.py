"""
app/validators package marker.
"""

from app.validators.field_parsers import (
    MISSING_VALUE_INDICATOR,
    parse_date,
    parse_numeric_value,
    parse_time,
)
from app.validators.reading_validator import (
    DATE_ERROR_MESSAGE,
    TIME_ERROR_MESSAGE,
    ReadingRowValidator,
)

__all__ = [
    "DATE_ERROR_MESSAGE",
    "MISSING_VALUE_INDICATOR",
    "ReadingRowValidator",
    "TIME_ERROR_MESSAGE",
    "parse_date",
    "parse_numeric_value",
    "parse_time",
]
