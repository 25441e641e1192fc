"""
app/services/error_report_service.py

Rejected-row CSV report.

The report mirrors the upload format so users can fix rows in place:

    Row_Index;Date;Time;CO(GT);...;AH;Error_Reasons

Each data line carries the row's original, unparsed values (empty string
where the value itself was missing) and the row's errors joined with
``"; "`` inside one double-quoted field. A raw value containing ``;``,
``"`` or a line break is double-quoted with inner quotes doubled, so the
report reads back with ``csv.reader(delimiter=";")``. Lines are joined with
``\\n`` and there is no trailing newline. Output depends only on the input.

When rows were left out of the report, a last line with an empty
``Row_Index`` states how many.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Final, Sequence

from app.config import get_error_report_settings
from app.domain.air_quality import (
    DATE_HEADER,
    MEASUREMENT_FIELDS,
    TIME_HEADER,
    RowValidationResult,
)
from db.repositories.storage import ErrorReportStorage, StoredReport

logger = logging.getLogger(__name__)

DOWNLOAD_PATH_PREFIX: Final[str] = "/api/readings/download-error/"

REPORT_SEPARATOR: Final[str] = ";"
ERROR_REASON_SEPARATOR: Final[str] = "; "

ROW_INDEX_COLUMN: Final[str] = "Row_Index"
ERROR_REASONS_COLUMN: Final[str] = "Error_Reasons"

ERROR_REPORT_COLUMNS: tuple[str, ...] = (
    ROW_INDEX_COLUMN,
    DATE_HEADER,
    TIME_HEADER,
    *(m.header for m in MEASUREMENT_FIELDS),
    ERROR_REASONS_COLUMN,
)

_RAW_VALUE_COLUMNS: tuple[str, ...] = ERROR_REPORT_COLUMNS[1:-1]


def generate_error_report(
    error_rows: Sequence[RowValidationResult],
    *,
    omitted_rows: int = 0,
) -> str:
    """
    Render rejected rows as semicolon-separated CSV text.

    Returns an empty string when there is nothing to report.
    """

    if not error_rows and omitted_rows <= 0:
        return ""

    lines = [REPORT_SEPARATOR.join(ERROR_REPORT_COLUMNS)]
    lines.extend(_render_row(row) for row in error_rows)
    if omitted_rows > 0:
        lines.append(_render_omitted_marker(omitted_rows))
    return "\n".join(lines)


def omitted_rows_message(omitted_rows: int) -> str:
    return f"{omitted_rows} more rejected rows were not included in this report"


def _quote(value: str) -> str:
    return '"' + value.replace('"', '""') + '"'


def _raw_value(value: str | None) -> str:
    if not value:
        return ""
    if REPORT_SEPARATOR in value or '"' in value or "\n" in value or "\r" in value:
        return _quote(value)
    return value


def _render_row(row: RowValidationResult) -> str:
    values = [str(row.row_index)]
    values.extend(_raw_value(row.original_row.get(column)) for column in _RAW_VALUE_COLUMNS)
    values.append(_quote(ERROR_REASON_SEPARATOR.join(row.errors)))
    return REPORT_SEPARATOR.join(values)


def _render_omitted_marker(omitted_rows: int) -> str:
    values = [""] * (len(ERROR_REPORT_COLUMNS) - 1)
    values.append(_quote(omitted_rows_message(omitted_rows)))
    return REPORT_SEPARATOR.join(values)


def save_error_report(
    error_rows: Sequence[RowValidationResult],
    storage: ErrorReportStorage,
    *,
    omitted_rows: int = 0,
) -> StoredReport | None:
    """
    Render and store the report; None when no rows were rejected.
    """

    content = generate_error_report(error_rows, omitted_rows=omitted_rows)
    if not content:
        return None
    stored = storage.save(content)
    logger.info(
        "Error report stored file=%s rows=%s omitted=%s",
        stored.file_name,
        len(error_rows),
        omitted_rows,
    )
    return stored


def download_url(file_name: str) -> str:
    return f"{DOWNLOAD_PATH_PREFIX}{file_name}"


@lru_cache(maxsize=1)
def get_error_report_storage() -> ErrorReportStorage:
    return ErrorReportStorage(get_error_report_settings().directory)
