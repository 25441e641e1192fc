"""
Repository layer exports.
"""

from db.repositories.errors import FileStorageError, InvalidReportNameError, ReportStorageError
from db.repositories.ingestion_job_repository import IngestionJobRepository
from db.repositories.storage import ErrorReportStorage, StoredReport, is_report_name

__all__ = [
    "ErrorReportStorage",
    "FileStorageError",
    "IngestionJobRepository",
    "InvalidReportNameError",
    "ReportStorageError",
    "StoredReport",
    "is_report_name",
]
