"""
app/scheduler/jobs.py

APScheduler-based cleanup sweeps.

Schedule
--------
  cleanup_sweep: every ``CLEANUP_INTERVAL_MINUTES`` (default 15):
      * deletes error report files older than ``ERROR_REPORT_MAX_AGE_SECONDS``
      * deletes finished ingestion jobs older than ``INGESTION_JOB_MAX_AGE_HOURS``

  delete_error_report:<file>: one-shot, queued after a report is downloaded,
      fires ``ERROR_REPORT_CLEANUP_DELAY_SECONDS`` later.

Lifecycle
----------
Call ``build_scheduler()`` once to get a configured ``BackgroundScheduler``.
Start it on app boot; shut it down gracefully on app shutdown.
The scheduler is wired into FastAPI via the ``lifespan`` context in main.py.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from typing import Iterator

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.schedulers.base import BaseScheduler
from sqlalchemy.orm import Session

from app.config import get_error_report_settings, get_job_settings
from app.services.error_report_service import get_error_report_storage
from db.repositories.ingestion_job_repository import IngestionJobRepository
from db.repositories.storage import ErrorReportStorage

logger = logging.getLogger(__name__)


@contextmanager
def _session_scope(session_factory: Callable[[], Session] | None = None) -> Iterator[Session]:
    """Yield a fresh session and ensure it is closed on exit."""
    if session_factory is None:
        from db.session import SessionLocal

        session_factory = SessionLocal
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


def purge_expired_error_reports(
    storage: ErrorReportStorage | None = None,
    max_age_seconds: float | None = None,
) -> int:
    storage = storage or get_error_report_storage()
    if max_age_seconds is None:
        max_age_seconds = get_error_report_settings().max_age_seconds

    removed = storage.purge_expired(max_age_seconds)
    if removed:
        logger.info("Scheduler: purged expired error reports count=%s", removed)
    return removed


def purge_finished_jobs(
    session_factory: Callable[[], Session] | None = None,
    *,
    max_age_hours: int | None = None,
    now: datetime | None = None,
) -> int:
    """
    Delete completed/failed ingestion jobs that finished before the cutoff.
    """

    if max_age_hours is None:
        max_age_hours = get_job_settings().max_age_hours
    cutoff = (now or datetime.now(timezone.utc)) - timedelta(hours=max_age_hours)

    with _session_scope(session_factory) as db:
        try:
            removed = IngestionJobRepository(db).purge_finished_before(cutoff)
            db.commit()
        except Exception:
            db.rollback()
            raise

    if removed:
        logger.info("Scheduler: purged finished ingestion jobs count=%s cutoff=%s", removed, cutoff)
    return removed


def run_cleanup_sweep() -> None:
    """
    Periodic sweep. Each step runs on its own so one failure does not skip the other.
    """
    logger.debug("Scheduler: cleanup_sweep starting")

    try:
        purge_expired_error_reports()
    except Exception as exc:  # noqa: BLE001
        logger.warning("Scheduler: error report purge failed: %s", exc)

    try:
        purge_finished_jobs()
    except Exception as exc:  # noqa: BLE001
        logger.warning("Scheduler: ingestion job purge failed: %s", exc)

    logger.debug("Scheduler: cleanup_sweep complete")


def delete_error_report(file_name: str, storage: ErrorReportStorage | None = None) -> bool:
    storage = storage or get_error_report_storage()
    try:
        return storage.delete(file_name)
    except Exception as exc:  # noqa: BLE001
        logger.warning("Scheduler: error report delete failed file=%s: %s", file_name, exc)
        return False


def schedule_error_report_deletion(
    scheduler: BaseScheduler,
    file_name: str,
    *,
    delay_seconds: float,
) -> None:
    """
    Queue a one-shot deletion of a downloaded report.

    Re-downloading the same report pushes the deletion back.
    """

    run_date = datetime.now(timezone.utc) + timedelta(seconds=max(0.0, delay_seconds))
    scheduler.add_job(
        delete_error_report,
        trigger="date",
        run_date=run_date,
        args=[file_name],
        id=f"delete_error_report:{file_name}",
        name="Delete downloaded error report",
        replace_existing=True,
        misfire_grace_time=3600,
    )
    logger.debug("Scheduler: error report deletion queued file=%s at=%s", file_name, run_date)


def build_scheduler() -> BackgroundScheduler:
    """
    Build and register all periodic jobs.

    Returns a configured but *not yet started* ``BackgroundScheduler``.
    The caller must call ``.start()`` and ``.shutdown(wait=True)`` at the
    appropriate lifecycle points.
    """
    scheduler = BackgroundScheduler(timezone="UTC")

    scheduler.add_job(
        run_cleanup_sweep,
        trigger="interval",
        minutes=get_job_settings().cleanup_interval_minutes,
        id="cleanup_sweep",
        name="Expired error report and ingestion job cleanup",
        replace_existing=True,
        coalesce=True,
        misfire_grace_time=600,
    )

    return scheduler
