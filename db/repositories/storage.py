"""
Local filesystem storage for downloadable validation error reports.

Reports are written under one flat directory so the download endpoint can
address them by file name alone. Names are generated here and validated
on every lookup; anything that is not a plain report file name is refused.
"""

from __future__ import annotations

import logging
import re
import time
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from db.repositories.errors import FileStorageError, InvalidReportNameError

logger = logging.getLogger(__name__)

_REPORT_PREFIX = "validation_errors_"
_REPORT_NAME_PATTERN = re.compile(r"^validation_errors_[0-9]+_[0-9a-f]{8}\.csv$")


@dataclass(frozen=True)
class StoredReport:
    file_name: str
    path: Path
    size_bytes: int
    stored_at: datetime


def is_report_name(file_name: str) -> bool:
    return bool(_REPORT_NAME_PATTERN.fullmatch(file_name))


class ErrorReportStorage:
    """
    Writes, resolves and expires error report CSV files.
    """

    def __init__(self, root_dir: str | Path = "data/error_reports") -> None:
        self._root_dir = Path(root_dir)

    @property
    def root_dir(self) -> Path:
        return self._root_dir

    def save(self, content: str) -> StoredReport:
        stored_at = datetime.now(timezone.utc)
        file_name = (
            f"{_REPORT_PREFIX}{int(stored_at.timestamp() * 1000)}_{uuid.uuid4().hex[:8]}.csv"
        )
        absolute_path = self._root_dir / file_name
        self._root_dir.mkdir(parents=True, exist_ok=True)

        data = content.encode("utf-8")
        tmp_path = absolute_path.with_suffix(".csv.tmp")
        try:
            with tmp_path.open("wb") as handle:
                handle.write(data)
            tmp_path.replace(absolute_path)
        except OSError as exc:
            raise FileStorageError("Failed to write error report.") from exc
        finally:
            if tmp_path.exists():
                try:
                    tmp_path.unlink()
                except OSError:
                    pass

        return StoredReport(
            file_name=file_name,
            path=absolute_path,
            size_bytes=len(data),
            stored_at=stored_at,
        )

    def resolve(self, file_name: str) -> Path | None:
        """
        Return the report path, or None when it does not exist (or expired).

        Raises InvalidReportNameError for names that could escape the
        report directory or were not generated by this storage.
        """

        if not is_report_name(file_name):
            raise InvalidReportNameError(f"Invalid error report name: {file_name!r}")
        target = self._root_dir / file_name
        return target if target.is_file() else None

    def delete(self, file_name: str) -> bool:
        target = self.resolve(file_name)
        if target is None:
            return False
        try:
            target.unlink()
        except FileNotFoundError:
            return False
        except OSError as exc:
            raise FileStorageError("Failed to delete error report.") from exc
        logger.info("Error report deleted file=%s", file_name)
        return True

    def purge_expired(self, max_age_seconds: float) -> int:
        """
        Delete reports older than *max_age_seconds*. Returns the count removed.
        """

        if not self._root_dir.is_dir():
            return 0

        cutoff = time.time() - max(0.0, max_age_seconds)
        removed = 0
        for path in self._root_dir.glob(f"{_REPORT_PREFIX}*.csv"):
            if not is_report_name(path.name):
                continue
            try:
                if path.stat().st_mtime < cutoff:
                    path.unlink()
                    removed += 1
            except FileNotFoundError:
                continue
            except OSError:
                logger.warning("Unable to purge error report file=%s", path.name, exc_info=True)
        return removed
