"""Import error taxonomy.

Structural problems with an uploaded report are fatal and surface as
subclasses of :class:`ReportImportError`. Row-level data-quality problems are
absorbed inside the adapters (:class:`MalformedRow` never escapes them).
Storage errors are not wrapped: SQLAlchemy exceptions reach the caller as-is
so it can own retry policy.
"""

from __future__ import annotations


class ReportImportError(ValueError):
    """Base class for fatal, file-level import failures."""


class NoFileSelected(ReportImportError):
    def __init__(self, message: str = "No file selected") -> None:
        super().__init__(message)


class UnsupportedFileType(ReportImportError):
    def __init__(self, message: str = "Unsupported file type") -> None:
        super().__init__(message)


class RequiredSheetMissing(ReportImportError):
    """The workbook lacks the sheet holding the order-level P&L ledger."""

    def __init__(self, sheet_name: str) -> None:
        self.sheet_name = sheet_name
        super().__init__(f"Required sheet '{sheet_name}' not found")


class ReportParseError(ReportImportError):
    """The file could not be read or has no usable header."""


class MalformedRow(ValueError):
    """A single row could not be mapped; adapters skip it."""


__all__ = [
    "ReportImportError",
    "NoFileSelected",
    "UnsupportedFileType",
    "RequiredSheetMissing",
    "ReportParseError",
    "MalformedRow",
]
