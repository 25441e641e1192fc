"""
app/services package marker.
"""

from app.services.csv_ingestion_service import (
    CSVHeaderValidationError,
    CSVIngestionService,
    CSVPersistenceError,
    CSVStreamError,
    get_csv_ingestion_service,
)
from app.services.error_report_service import generate_error_report, save_error_report
from app.services.readings_query_service import (
    ReadingsQueryService,
    get_readings_query_service,
)

__all__ = [
    "CSVHeaderValidationError",
    "CSVIngestionService",
    "CSVPersistenceError",
    "CSVStreamError",
    "get_csv_ingestion_service",
    "generate_error_report",
    "save_error_report",
    "ReadingsQueryService",
    "get_readings_query_service",
]
