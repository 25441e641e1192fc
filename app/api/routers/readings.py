"""
app/api/routers/readings.py

Air-quality readings endpoints.

POST /api/readings/ingest                  synchronous CSV upload
GET  /api/readings/parameters              queryable parameter names
GET  /api/readings/summary                 record count and date range
GET  /api/readings/data                    one page of one parameter
GET  /api/readings/timeseries/{parameter}  unpaginated series (capped)
GET  /api/readings/statistics/{parameter}  hourly | daily | monthly buckets
GET  /api/readings/download-error/{file}   rejected-row report download

Date filters are ISO dates (YYYY-MM-DD), inclusive, each optional.
"""

from __future__ import annotations

import logging
from datetime import date

from apscheduler.schedulers.base import BaseScheduler
from fastapi import APIRouter, Depends, HTTPException, Query, UploadFile, status
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from app.api.dependencies import get_csv_upload, get_scheduler
from app.config import get_error_report_settings
from app.repositories.reading_repository import ReadingQueryError, ReadingRepository
from app.scheduler.jobs import schedule_error_report_deletion
from app.schemas.readings import (
    DataSummaryResponse,
    DateRangeResponse,
    IngestionSummaryResponse,
    IngestResponse,
    ParametersResponse,
    ReadingPageResponse,
    StatisticsBucketResponse,
    StatisticsResponse,
    TimeSeriesResponse,
)
from app.services.csv_ingestion_service import (
    CSVHeaderValidationError,
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
from app.services.readings_query_service import (
    DEFAULT_AGGREGATION,
    ReadingsQueryService,
    get_readings_query_service,
)
from db.repositories.errors import FileStorageError, InvalidReportNameError
from db.repositories.storage import ErrorReportStorage
from db.session import get_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/readings", tags=["readings"])

SUCCESS_MESSAGE = "Data processed successfully"
PARTIAL_MESSAGE = "Data processed with validation errors"


def _bad_request(exc: ReadingQueryError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


@router.post("/ingest", response_model=IngestResponse)
def ingest_readings(
    file: UploadFile = Depends(get_csv_upload),
    db: Session = Depends(get_db),
    ingestion_service: CSVIngestionService = Depends(get_csv_ingestion_service),
    report_storage: ErrorReportStorage = Depends(get_error_report_storage),
) -> IngestResponse:
    """
    Ingest one semicolon-separated air-quality CSV file.
    """

    try:
        summary = ingestion_service.ingest(file.file, repository=ReadingRepository(db))
    except CSVStreamError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "message": str(exc),
                "ingestion_id": str(exc.ingestion_id),
                "persisted_rows": exc.persisted_rows,
            },
        ) from exc
    except CSVHeaderValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except CSVPersistenceError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "message": "Unable to persist valid CSV rows.",
                "ingestion_id": str(exc.ingestion_id),
                "persisted_rows": exc.persisted_rows,
            },
        ) from exc
    finally:
        file.file.close()

    error_file_url: str | None = None
    if summary.error_rows or summary.error_rows_truncated:
        try:
            stored = save_error_report(
                summary.error_rows,
                report_storage,
                omitted_rows=summary.omitted_error_rows,
            )
        except FileStorageError as exc:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Unable to store the validation error report.",
            ) from exc
        if stored is not None:
            error_file_url = download_url(stored.file_name)

    return IngestResponse(
        message=PARTIAL_MESSAGE if summary.has_errors else SUCCESS_MESSAGE,
        summary=IngestionSummaryResponse(
            total_rows=summary.total_rows,
            valid_rows=summary.valid_rows,
            invalid_rows=summary.invalid_rows,
        ),
        error_file_download_url=error_file_url,
        omitted_error_rows=summary.omitted_error_rows,
    )


@router.get("/parameters", response_model=ParametersResponse)
def list_parameters(
    query_service: ReadingsQueryService = Depends(get_readings_query_service),
) -> ParametersResponse:
    return ParametersResponse(parameters=query_service.available_parameters())


@router.get("/summary", response_model=DataSummaryResponse)
def get_data_summary(
    db: Session = Depends(get_db),
    query_service: ReadingsQueryService = Depends(get_readings_query_service),
) -> DataSummaryResponse:
    summary = query_service.data_summary(db)
    return DataSummaryResponse(
        total_records=summary["total_records"],
        date_range=DateRangeResponse(**summary["date_range"]),
    )


@router.get("/data", response_model=ReadingPageResponse)
def get_data(
    parameter: str = Query(..., description="Parameter name, see /parameters"),
    start_date: date | None = Query(default=None, description="Inclusive lower bound (YYYY-MM-DD)"),
    end_date: date | None = Query(default=None, description="Inclusive upper bound (YYYY-MM-DD)"),
    page: int = Query(default=1),
    limit: int | None = Query(default=None),
    db: Session = Depends(get_db),
    query_service: ReadingsQueryService = Depends(get_readings_query_service),
) -> ReadingPageResponse:
    try:
        result = query_service.time_series(
            db,
            parameter,
            start_date=start_date,
            end_date=end_date,
            page=page,
            limit=limit,
        )
    except ReadingQueryError as exc:
        raise _bad_request(exc) from exc

    return ReadingPageResponse(
        parameter=parameter,
        items=result.items,
        total=result.total,
        page=result.page,
        limit=result.limit,
        total_pages=result.total_pages,
    )


@router.get("/timeseries/{parameter}", response_model=TimeSeriesResponse)
def get_time_series(
    parameter: str,
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
    db: Session = Depends(get_db),
    query_service: ReadingsQueryService = Depends(get_readings_query_service),
) -> TimeSeriesResponse:
    try:
        result = query_service.time_series(
            db,
            parameter,
            start_date=start_date,
            end_date=end_date,
            page=1,
            limit=query_service.max_limit,
        )
    except ReadingQueryError as exc:
        raise _bad_request(exc) from exc

    return TimeSeriesResponse(
        parameter=parameter,
        items=result.items,
        total=result.total,
        truncated=result.total > len(result.items),
    )


@router.get("/statistics/{parameter}", response_model=StatisticsResponse)
def get_statistics(
    parameter: str,
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
    aggregation: str = Query(default=DEFAULT_AGGREGATION, description="hourly | daily | monthly"),
    db: Session = Depends(get_db),
    query_service: ReadingsQueryService = Depends(get_readings_query_service),
) -> StatisticsResponse:
    try:
        buckets = query_service.statistics(
            db,
            parameter,
            aggregation,
            start_date=start_date,
            end_date=end_date,
        )
    except ReadingQueryError as exc:
        raise _bad_request(exc) from exc

    return StatisticsResponse(
        parameter=parameter,
        aggregation=aggregation,
        statistics=[
            StatisticsBucketResponse(
                period=bucket.period,
                avg_value=bucket.avg,
                min_value=bucket.min,
                max_value=bucket.max,
                count=bucket.count,
            )
            for bucket in buckets
        ],
    )


@router.get("/download-error/{filename}")
def download_error_report(
    filename: str,
    report_storage: ErrorReportStorage = Depends(get_error_report_storage),
    scheduler: BaseScheduler | None = Depends(get_scheduler),
) -> FileResponse:
    try:
        path = report_storage.resolve(filename)
    except InvalidReportNameError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    if path is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Error report not found or expired.",
        )

    if scheduler is not None:
        schedule_error_report_deletion(
            scheduler,
            filename,
            delay_seconds=get_error_report_settings().cleanup_delay_seconds,
        )
    else:
        logger.debug("No scheduler running; report left for the expiry sweep file=%s", filename)

    return FileResponse(path, media_type="text/csv", filename=filename)
