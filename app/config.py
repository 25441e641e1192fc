"""
app/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from db.config import load_env_files


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


def _get_bool_env(name: str, default: bool) -> bool:
    """
    Read a boolean from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_float_env(name: str, default: float) -> float:
    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return float(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    """
    Read a string from environment variables with fallback.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


@dataclass(frozen=True)
class CSVIngestionSettings:
    """
    Runtime settings for CSV ingestion.

    ``max_error_rows`` optionally caps how many rejected rows are kept for the
    error report (0 keeps all of them). Rows past the cap are still counted
    and reported as omitted.
    """

    batch_size: int = 1000
    max_error_rows: int = 0
    log_validation_errors: bool = True


@dataclass(frozen=True)
class ErrorReportSettings:
    directory: str = "data/error_reports"
    cleanup_delay_seconds: float = 300.0
    max_age_seconds: float = 3600.0


@dataclass(frozen=True)
class CacheSettings:
    ttl_seconds: float = 300.0
    max_entries: int = 1000


@dataclass(frozen=True)
class QuerySettings:
    default_limit: int = 1000
    max_limit: int = 10000


@dataclass(frozen=True)
class JobSettings:
    """
    Retention and sweep cadence for ingestion jobs and stale reports.
    """

    max_age_hours: int = 24
    cleanup_interval_minutes: int = 15
    scheduler_enabled: bool = True


@lru_cache(maxsize=1)
def get_csv_ingestion_settings() -> CSVIngestionSettings:
    """
    Return cached CSV ingestion settings from environment variables.
    """

    return CSVIngestionSettings(
        batch_size=max(1, _get_int_env("CSV_INGEST_BATCH_SIZE", 1000)),
        max_error_rows=max(0, _get_int_env("CSV_INGEST_MAX_ERROR_ROWS", 0)),
        log_validation_errors=_get_bool_env("CSV_INGEST_LOG_VALIDATION_ERRORS", True),
    )


@lru_cache(maxsize=1)
def get_error_report_settings() -> ErrorReportSettings:
    return ErrorReportSettings(
        directory=_get_str_env("ERROR_REPORT_DIR", "data/error_reports"),
        cleanup_delay_seconds=max(0.0, _get_float_env("ERROR_REPORT_CLEANUP_DELAY_SECONDS", 300.0)),
        max_age_seconds=max(1.0, _get_float_env("ERROR_REPORT_MAX_AGE_SECONDS", 3600.0)),
    )


@lru_cache(maxsize=1)
def get_cache_settings() -> CacheSettings:
    return CacheSettings(
        ttl_seconds=max(0.0, _get_float_env("CACHE_TTL_SECONDS", 300.0)),
        max_entries=max(1, _get_int_env("CACHE_MAX_ENTRIES", 1000)),
    )


@lru_cache(maxsize=1)
def get_query_settings() -> QuerySettings:
    """
    Return pagination bounds; the default limit never exceeds the maximum.
    """

    max_limit = max(1, _get_int_env("QUERY_MAX_LIMIT", 10000))
    default_limit = max(1, _get_int_env("QUERY_DEFAULT_LIMIT", 1000))
    return QuerySettings(default_limit=min(default_limit, max_limit), max_limit=max_limit)


@lru_cache(maxsize=1)
def get_job_settings() -> JobSettings:
    return JobSettings(
        max_age_hours=max(1, _get_int_env("INGESTION_JOB_MAX_AGE_HOURS", 24)),
        cleanup_interval_minutes=max(1, _get_int_env("CLEANUP_INTERVAL_MINUTES", 15)),
        scheduler_enabled=_get_bool_env("SCHEDULER_ENABLED", True),
    )


def get_log_level() -> str:
    return _get_str_env("LOG_LEVEL", "INFO").upper()
