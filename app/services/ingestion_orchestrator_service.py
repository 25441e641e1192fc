"""
Orchestrator service for async CSV ingestion jobs and lifecycle tracking.
"""

from __future__ import annotations

import logging
import os
import tempfile
import uuid
from collections.abc import Callable
from functools import lru_cache
from typing import Any, Protocol

from fastapi import BackgroundTasks, UploadFile
from sqlalchemy.orm import Session

from app.domain.air_quality import IngestionSummary
from app.repositories.reading_repository import ReadingRepository
from app.services.csv_ingestion_service import (
    CSVIngestionService,
    CSVPersistenceError,
    CSVStreamError,
    get_csv_ingestion_service,
)
from app.services.error_report_service import (
    download_url,
    get_error_report_storage,
    save_error_report,
)
from db.models.ingestion_job import IngestionJob, IngestionJobType
from db.repositories.ingestion_job_repository import IngestionJobRepository
from db.repositories.storage import ErrorReportStorage

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], Session]


class IngestionTaskExecutor(Protocol):
    def submit(self, task: Callable[..., None], *args: Any, **kwargs: Any) -> None:
        ...


class FastAPIBackgroundTaskExecutor:
    def __init__(self, background_tasks: BackgroundTasks) -> None:
        self._background_tasks = background_tasks

    def submit(self, task: Callable[..., None], *args: Any, **kwargs: Any) -> None:
        self._background_tasks.add_task(task, *args, **kwargs)


class IngestionOrchestratorService:
    """
    Coordinates job creation, background execution, and status persistence.
    """

    def __init__(
        self,
        *,
        session_factory: SessionFactory | None = None,
        csv_service: CSVIngestionService | None = None,
        report_storage: ErrorReportStorage | None = None,
    ) -> None:
        if session_factory is None:
            from db.session import SessionLocal

            self._session_factory = SessionLocal
        else:
            self._session_factory = session_factory

        self._csv_service = csv_service or get_csv_ingestion_service()
        self._report_storage = report_storage or get_error_report_storage()

    def trigger_csv_ingestion(
        self,
        *,
        db: Session,
        executor: IngestionTaskExecutor,
        upload_file: UploadFile,
    ) -> IngestionJob:
        temp_file_path, file_size = self._persist_temp_upload(upload_file)
        request_payload = {
            "file_name": upload_file.filename or "upload.csv",
            "content_type": upload_file.content_type,
            "file_size_bytes": file_size,
        }

        repository = IngestionJobRepository(db)
        try:
            job = repository.create_job(
                job_type=IngestionJobType.CSV,
                request_payload=request_payload,
            )
            db.commit()
        except Exception:
            db.rollback()
            self._delete_file_quietly(temp_file_path)
            raise

        try:
            executor.submit(self._run_csv_ingestion_job, job.id, temp_file_path)
        except Exception:
            self._delete_file_quietly(temp_file_path)
            repository.mark_failed(
                job_id=job.id,
                error_message="Failed to schedule CSV ingestion job.",
            )
            db.commit()
            raise

        logger.info("CSV ingestion job queued id=%s size_bytes=%s", job.id, file_size)
        return job

    def get_job_status(self, *, db: Session, job_id: uuid.UUID) -> IngestionJob | None:
        return IngestionJobRepository(db).get_job(job_id)

    def list_job_statuses(
        self,
        *,
        db: Session,
        limit: int = 100,
        status: str | None = None,
    ) -> list[IngestionJob]:
        return IngestionJobRepository(db).list_jobs(limit=limit, status=status)

    def _run_csv_ingestion_job(self, job_id: uuid.UUID, temp_file_path: str) -> None:
        with self._session_factory() as db:
            jobs = IngestionJobRepository(db)
            try:
                running_job = jobs.mark_processing(job_id=job_id)
                if running_job is None:
                    raise RuntimeError(f"Ingestion job not found: {job_id}")
                db.commit()

                def report_progress(processed_rows: int, persisted_rows: int) -> None:
                    # Batches are committed by the ingestion service, so this
                    # update lands in its own short transaction.
                    jobs.update_progress(
                        job_id=job_id,
                        processed_rows=processed_rows,
                        persisted_rows=persisted_rows,
                    )
                    db.commit()

                summary = self._csv_service.ingest_path(
                    temp_file_path,
                    repository=ReadingRepository(db),
                    progress_callback=report_progress,
                )

                completed_job = jobs.mark_completed(
                    job_id=job_id,
                    result_payload=self._build_result_payload(summary),
                )
                if completed_job is None:
                    raise RuntimeError(f"Ingestion job not found: {job_id}")
                db.commit()
            except (CSVPersistenceError, CSVStreamError) as exc:
                self._mark_job_failed(
                    db=db,
                    job_id=job_id,
                    exc=exc,
                    result_payload={
                        "ingestion_id": str(exc.ingestion_id),
                        "persisted_rows": exc.persisted_rows,
                    },
                )
            except Exception as exc:
                self._mark_job_failed(db=db, job_id=job_id, exc=exc)
            finally:
                self._delete_file_quietly(temp_file_path)

    def _build_result_payload(self, summary: IngestionSummary) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "total_rows": summary.total_rows,
            "valid_rows": summary.valid_rows,
            "invalid_rows": summary.invalid_rows,
            "ingestion_id": str(summary.ingestion_id) if summary.ingestion_id else None,
            "omitted_error_rows": summary.omitted_error_rows,
            "error_file_download_url": None,
        }
        stored = save_error_report(
            summary.error_rows,
            self._report_storage,
            omitted_rows=summary.omitted_error_rows,
        )
        if stored is not None:
            payload["error_file_download_url"] = download_url(stored.file_name)
        return payload

    def _mark_job_failed(
        self,
        *,
        db: Session,
        job_id: uuid.UUID,
        exc: Exception,
        result_payload: dict[str, Any] | None = None,
    ) -> None:
        repository = IngestionJobRepository(db)
        error_message = f"{type(exc).__name__}: {exc}"
        logger.exception("Ingestion job failed id=%s error=%s", job_id, error_message)
        try:
            db.rollback()
            failed_job = repository.mark_failed(
                job_id=job_id,
                error_message=error_message[:2000],
                result_payload=result_payload,
            )
            if failed_job is None:
                logger.error("Unable to mark ingestion job as failed because it was not found id=%s", job_id)
            db.commit()
        except Exception:
            db.rollback()
            logger.exception("Failed to persist failed ingestion job state id=%s", job_id)

    def _persist_temp_upload(self, upload_file: UploadFile) -> tuple[str, int]:
        upload_file.file.seek(0)

        with tempfile.NamedTemporaryFile(delete=False, prefix="ingestion_job_", suffix=".csv") as temp_file:
            while True:
                chunk = upload_file.file.read(1024 * 1024)
                if not chunk:
                    break
                temp_file.write(chunk)
            temp_path = temp_file.name
            file_size = temp_file.tell()

        upload_file.file.seek(0)
        return temp_path, file_size

    def _delete_file_quietly(self, file_path: str) -> None:
        try:
            os.remove(file_path)
        except OSError:
            return


@lru_cache(maxsize=1)
def get_ingestion_orchestrator_service() -> IngestionOrchestratorService:
    return IngestionOrchestratorService()
