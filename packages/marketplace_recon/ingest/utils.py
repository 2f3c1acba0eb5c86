"""Ingest utilities shared by the marketplace adapters.

Cell-level helpers (text/SKU cleanup, ordered column aliases, date
normalization) plus :func:`build_transaction`, which stamps ingestion
metadata and the dedup hash onto a canonical row, and
:func:`load_report_from_path` for library callers holding a file path.
"""

from __future__ import annotations

import math
import re
from collections.abc import Mapping, Sequence
from datetime import UTC, date, datetime
from os import PathLike
from typing import Any

from ..duplicates import compute_transaction_hash
from ..models import (
    ExpenseBreakdown,
    Platform,
    ProductRef,
    RecordMetadata,
    ReportData,
    Transaction,
)

_DATETIME_FORMATS = (
    "%d %b %Y %I:%M:%S %p",
    "%b %d, %Y %I:%M:%S %p",
    "%d-%b-%Y %I:%M:%S %p",
    "%d/%m/%Y %H:%M:%S",
    "%d/%m/%Y %H:%M",
)
_DATE_FORMATS = ("%d/%m/%Y", "%d-%m-%Y", "%d %b %Y", "%b %d, %Y")

# Trailing timezone abbreviation such as "IST" or "UTC"; never the AM/PM marker.
_TZ_SUFFIX_RE = re.compile(r"\s+(?!(?:AM|PM)$)[A-Za-z]{2,5}$", re.IGNORECASE)


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return isinstance(value, str) and value.strip() == ""


def clean_text(value: Any) -> str | None:
    if is_blank(value):
        return None
    # Collapse internal whitespace (including newlines) and strip.
    cleaned = re.sub(r"\s+", " ", str(value)).strip()
    return cleaned or None


def clean_sku(value: Any) -> str:
    """Trim a SKU cell and drop quoting artifacts (``'"ABC-1"'`` -> ``ABC-1``)."""

    if is_blank(value):
        return ""
    s = str(value).replace('"', "").strip()
    return s.strip("'").strip()


def resolve_field(row: Mapping[str, Any], aliases: Sequence[str]) -> Any | None:
    """Return the first non-blank value among ``aliases`` in ``row``."""

    for key in aliases:
        value = row.get(key)
        if not is_blank(value):
            return value
    return None


def _datetime_iso(dt: datetime) -> str:
    # Spreadsheet date cells arrive as naive midnight datetimes.
    if dt.tzinfo is None and dt.hour == dt.minute == dt.second == dt.microsecond == 0:
        return dt.date().isoformat()
    return dt.isoformat()


def _parse_with_formats(s: str) -> str | None:
    for fmt in _DATETIME_FORMATS:
        try:
            return _datetime_iso(datetime.strptime(s, fmt))
        except ValueError:
            continue
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(s, fmt).date().isoformat()
        except ValueError:
            continue
    return None


def normalize_order_date(value: Any) -> str:
    """Return an ISO-8601 string for ``value`` when it can be parsed.

    Unparseable text is returned trimmed rather than rejected; the raw value
    still participates in the dedup hash.
    """

    if is_blank(value):
        return ""
    if isinstance(value, datetime):
        return _datetime_iso(value)
    if isinstance(value, date):
        return value.isoformat()

    s = str(value).strip()
    try:
        return date.fromisoformat(s).isoformat()
    except ValueError:
        pass
    try:
        return _datetime_iso(datetime.fromisoformat(s))
    except ValueError:
        pass

    parsed = _parse_with_formats(s)
    if parsed is None:
        bare = _TZ_SUFFIX_RE.sub("", s)
        if bare != s:
            parsed = _parse_with_formats(bare)
    return s if parsed is None else parsed


def build_transaction(
    *,
    platform: Platform,
    transaction_id: str,
    order_date: str,
    sku: str,
    quantity: int,
    selling_price: float,
    total: float,
    type: str,
    expenses: ExpenseBreakdown,
    description: str | None,
    now: datetime | None = None,
    order_status: str | None = None,
    acc_net_sales: float | None = None,
) -> Transaction:
    stamp = now or datetime.now(UTC)
    return Transaction(
        transaction_id=transaction_id,
        platform=platform,
        order_date=order_date,
        sku=sku,
        quantity=quantity,
        selling_price=selling_price,
        total=total,
        type=type,
        expenses=expenses,
        product=ProductRef(sku=sku, cost_price=0.0, description=description),
        metadata=RecordMetadata(created_at=stamp, updated_at=stamp),
        hash=compute_transaction_hash(
            platform=platform.value,
            transaction_id=transaction_id,
            sku=sku,
            status=order_status or type,
            order_date=order_date,
        ),
        order_status=order_status,
        acc_net_sales=acc_net_sales,
    )


def load_report_from_path(
    path: str | PathLike[str], *, amazon_preamble_lines: int | None = None
) -> ReportData:
    """Detect the marketplace of the file at ``path`` and parse it."""

    # Local imports keep adapter modules free to import these helpers.
    from ..models import ReportFile
    from .detect import extract_report

    return extract_report(
        ReportFile.from_path(path), amazon_preamble_lines=amazon_preamble_lines
    )


__all__ = [
    "is_blank",
    "clean_text",
    "clean_sku",
    "resolve_field",
    "normalize_order_date",
    "build_transaction",
    "load_report_from_path",
]
