"""
app/validators/field_parsers.py

Token parsers for the sensor CSV locale: decimal-comma numbers,
DD/MM/YYYY dates and HH.MM.SS times.

Every parser returns ``None`` for a token it cannot accept; none of them
raise. Whether ``None`` is an error is the row validator's decision.
"""

from __future__ import annotations

import math
import re
from datetime import date
from typing import Final

MISSING_VALUE_INDICATOR: Final[str] = "-200"
"""Sentinel the sensor study uses for a missing measurement."""

_LEADING_FLOAT = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_TIME_PATTERN = re.compile(r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]:[0-5][0-9]$")


def parse_numeric_value(raw: str | None) -> float | None:
    """
    Parse a decimal-comma number, returning ``None`` when the value is absent.

    Absent means empty, whitespace-only, the ``-200`` sentinel, or no
    leading numeric content at all. Trailing garbage after a numeric prefix
    is ignored (``"12abc"`` parses as ``12.0``).
    """

    if raw is None:
        return None
    value = raw.strip()
    if not value or value == MISSING_VALUE_INDICATOR:
        return None

    match = _LEADING_FLOAT.match(value.replace(",", ".", 1))
    if match is None:
        return None

    parsed = float(match.group(0))
    if not math.isfinite(parsed):
        return None
    return parsed


def parse_date(raw: str | None) -> date | None:
    """
    Parse ``DD/MM/YYYY`` into a calendar date.

    Impossible dates such as 31/02/2004 are rejected.
    """

    if raw is None or not raw.strip():
        return None

    parts = raw.strip().split("/")
    if len(parts) != 3:
        return None
    day, month, year = (part.strip() for part in parts)
    if not (day.isdigit() and month.isdigit() and year.isdigit()):
        return None

    try:
        return date(int(year), int(month), int(day))
    except ValueError:
        return None


def parse_time(raw: str | None) -> str | None:
    """
    Convert ``HH.MM.SS`` to ``HH:MM:SS`` if it is a valid time of day.

    A single-digit hour is zero-padded so stored times sort as text.
    """

    if raw is None or not raw.strip():
        return None

    formatted = raw.strip().replace(".", ":")
    if not _TIME_PATTERN.fullmatch(formatted):
        return None
    return formatted.zfill(8)
