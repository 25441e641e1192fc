"""
Repository for ingestion job lifecycle persistence and status lookup.

Lifecycle: pending -> processing -> completed | failed. Finished jobs are
removed only by an explicit ``purge_finished_before`` sweep.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import Select, delete, select
from sqlalchemy.orm import Session

from db.models.ingestion_job import IngestionJob, IngestionJobStatus, IngestionJobType


class IngestionJobRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def create_job(
        self,
        *,
        job_type: str = IngestionJobType.CSV,
        request_payload: dict[str, Any] | None = None,
    ) -> IngestionJob:
        job = IngestionJob(
            job_type=job_type,
            status=IngestionJobStatus.PENDING,
            processed_rows=0,
            persisted_rows=0,
            request_payload=request_payload,
        )
        self._session.add(job)
        self._session.flush()
        self._session.refresh(job)
        return job

    def get_job(self, job_id: uuid.UUID) -> IngestionJob | None:
        return self._session.get(IngestionJob, job_id)

    def list_jobs(
        self,
        *,
        limit: int = 100,
        status: str | None = None,
    ) -> list[IngestionJob]:
        stmt: Select[tuple[IngestionJob]] = select(IngestionJob)

        if status:
            stmt = stmt.where(IngestionJob.status == status)

        stmt = stmt.order_by(IngestionJob.created_at.desc()).limit(max(1, limit))
        return list(self._session.scalars(stmt).all())

    def mark_processing(self, *, job_id: uuid.UUID) -> IngestionJob | None:
        job = self.get_job(job_id)
        if job is None:
            return None
        job.status = IngestionJobStatus.PROCESSING
        job.started_at = datetime.now(timezone.utc)
        job.completed_at = None
        job.error_message = None
        return job

    def update_progress(
        self,
        *,
        job_id: uuid.UUID,
        processed_rows: int,
        persisted_rows: int,
    ) -> IngestionJob | None:
        job = self.get_job(job_id)
        if job is None:
            return None
        job.processed_rows = processed_rows
        job.persisted_rows = persisted_rows
        return job

    def mark_completed(
        self,
        *,
        job_id: uuid.UUID,
        result_payload: dict[str, Any] | None = None,
    ) -> IngestionJob | None:
        job = self.get_job(job_id)
        if job is None:
            return None
        job.status = IngestionJobStatus.COMPLETED
        job.completed_at = datetime.now(timezone.utc)
        job.result_payload = result_payload
        job.error_message = None
        if result_payload is not None:
            job.processed_rows = int(result_payload.get("total_rows", job.processed_rows))
            job.persisted_rows = int(result_payload.get("valid_rows", job.persisted_rows))
        return job

    def mark_failed(
        self,
        *,
        job_id: uuid.UUID,
        error_message: str,
        result_payload: dict[str, Any] | None = None,
    ) -> IngestionJob | None:
        job = self.get_job(job_id)
        if job is None:
            return None
        job.status = IngestionJobStatus.FAILED
        job.completed_at = datetime.now(timezone.utc)
        job.error_message = error_message
        if result_payload is not None:
            job.result_payload = result_payload
        return job

    def purge_finished_before(self, cutoff: datetime) -> int:
        """
        Delete completed/failed jobs that finished before *cutoff*.

        Pending and processing jobs are never touched.
        """

        stmt = delete(IngestionJob).where(
            IngestionJob.status.in_(sorted(IngestionJobStatus.FINISHED)),
            IngestionJob.completed_at.is_not(None),
            IngestionJob.completed_at < cutoff,
        )
        result = self._session.execute(stmt)
        return int(result.rowcount or 0)
