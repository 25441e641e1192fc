"""
Repository-layer exceptions for report storage flows.
"""

from __future__ import annotations


class ReportStorageError(Exception):
    """Base exception for error report storage failures."""


class FileStorageError(ReportStorageError):
    """Raised when writing or deleting a report file fails."""


class InvalidReportNameError(ReportStorageError, ValueError):
    """Raised when a requested report name is not one this storage issues."""
