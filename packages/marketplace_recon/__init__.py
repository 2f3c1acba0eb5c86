"""Public interface for the ``marketplace_recon`` package.

This module exposes the package's API functions and public models/types as the
stable import surface. There is no runtime logic here, only symbol re-exports.
"""

from .api import analyze, analyze_store, extract_report, import_report
from .errors import (
    NoFileSelected,
    ReportImportError,
    ReportParseError,
    RequiredSheetMissing,
    UnsupportedFileType,
)
from .models import (
    ExpenseBreakdown,
    ImportResult,
    Platform,
    ProductPrice,
    ProductRecord,
    ReportData,
    ReportFile,
    Transaction,
    TransactionSummary,
)

__all__ = [
    # API
    "extract_report",
    "import_report",
    "analyze",
    "analyze_store",
    # Errors
    "ReportImportError",
    "NoFileSelected",
    "UnsupportedFileType",
    "RequiredSheetMissing",
    "ReportParseError",
    # Models / types
    "Platform",
    "Transaction",
    "ExpenseBreakdown",
    "ProductPrice",
    "ProductRecord",
    "ReportFile",
    "ReportData",
    "ImportResult",
    "TransactionSummary",
]
