"""
Background CSV ingestion endpoints.

POST /api/ingestion/csv        queue a file, returns 202 with the job id
GET  /api/ingestion-status     one job (``job_id``) or the most recent jobs
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, UploadFile, status
from sqlalchemy.orm import Session

from app.api.dependencies import get_csv_upload
from app.schemas.ingestion_orchestrator import (
    IngestionJobAcceptedResponse,
    IngestionJobStatusResponse,
    IngestionStatusListResponse,
)
from app.services.ingestion_orchestrator_service import (
    FastAPIBackgroundTaskExecutor,
    IngestionOrchestratorService,
    get_ingestion_orchestrator_service,
)
from db.models.ingestion_job import IngestionJobStatus
from db.session import get_db

router = APIRouter(tags=["ingestion-jobs"])

_KNOWN_STATUSES = {
    IngestionJobStatus.PENDING,
    IngestionJobStatus.PROCESSING,
    *IngestionJobStatus.FINISHED,
}


def status_url(job_id: UUID) -> str:
    return f"/api/ingestion-status?job_id={job_id}"


@router.post(
    "/ingestion/csv",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=IngestionJobAcceptedResponse,
)
def queue_csv_ingestion(
    background_tasks: BackgroundTasks,
    file: UploadFile = Depends(get_csv_upload),
    db: Session = Depends(get_db),
    orchestrator: IngestionOrchestratorService = Depends(get_ingestion_orchestrator_service),
) -> IngestionJobAcceptedResponse:
    # The upload is spooled to a temp file before the request returns.
    with file.file:
        job = orchestrator.trigger_csv_ingestion(
            db=db,
            executor=FastAPIBackgroundTaskExecutor(background_tasks),
            upload_file=file,
        )

    accepted = IngestionJobAcceptedResponse.model_validate(job)
    accepted.status_url = status_url(job.id)
    return accepted


@router.get("/ingestion-status", response_model=IngestionStatusListResponse)
def read_ingestion_status(
    job_id: UUID | None = Query(default=None, description="Return only this job"),
    status_filter: str | None = Query(default=None, alias="status", description="pending | processing | completed | failed"),
    limit: int = Query(default=100, ge=1, le=500, description="Max jobs returned when listing"),
    db: Session = Depends(get_db),
    orchestrator: IngestionOrchestratorService = Depends(get_ingestion_orchestrator_service),
) -> IngestionStatusListResponse:
    if job_id is not None:
        job = orchestrator.get_job_status(db=db, job_id=job_id)
        if job is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Ingestion job not found: {job_id}",
            )
        jobs = [job]
    else:
        if status_filter is not None and status_filter not in _KNOWN_STATUSES:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Unknown job status: {status_filter}",
            )
        jobs = orchestrator.list_job_statuses(db=db, limit=limit, status=status_filter)

    return IngestionStatusListResponse(
        jobs=[IngestionJobStatusResponse.model_validate(job) for job in jobs],
    )
