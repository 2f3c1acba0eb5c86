"""Adapter for Amazon seller "Date Range Report" CSV exports.

The export starts with a human-readable preamble (report title, date range,
legal notes) of ``AMAZON_PREAMBLE_LINES`` physical lines, followed by the
column header and the transaction rows. Marketplace exports change over
time, so the preamble length is a parameter rather than a fixed offset.

Columns used (exact, case-sensitive):
``type, order id, date/time, Sku|sku, description, quantity, product sales,
selling fees, fba fees, other transaction fees, total``

Row rules
---------
- Dropped when it has no SKU (``Sku`` then ``sku``) or no ``type``.
- ``type`` is lower-cased and must be one of ``KEPT_TYPES``.
- Fees become non-negative magnitudes; ``total`` keeps its sign.
- A row that fails to map is skipped and logged, never raised.
"""

from __future__ import annotations

import csv
import io
from collections.abc import Iterator, Mapping
from datetime import datetime
from typing import Any

from ...currency import parse_currency
from ...errors import MalformedRow, ReportParseError
from ...logging_setup import get_logger
from ...models import ExpenseBreakdown, Platform, ReportData, Transaction
from ..utils import (
    build_transaction,
    clean_sku,
    clean_text,
    normalize_order_date,
    resolve_field,
)

logger = get_logger("marketplace_recon.ingest.amazon")

# Physical lines preceding the header row in the current export format.
AMAZON_PREAMBLE_LINES = 11

# Exports expose the SKU column under either spelling.
SKU_KEYS: tuple[str, ...] = ("Sku", "sku")

KEPT_TYPES: frozenset[str] = frozenset({"order", "shipped", "refund"})


def _slice_after_preamble(text: str, preamble_lines: int) -> io.StringIO:
    """Return a stream positioned at the header row.

    Original line endings are preserved so quoted fields spanning lines stay
    intact for the CSV reader.
    """

    if preamble_lines < 0:
        raise ValueError("preamble_lines must be >= 0")
    lines = text.splitlines(keepends=True)
    return io.StringIO("".join(lines[preamble_lines:]))


def _read_rows(text: str, preamble_lines: int) -> list[dict[str, str]]:
    reader = csv.DictReader(_slice_after_preamble(text, preamble_lines))
    try:
        headers = reader.fieldnames
        if not headers:
            raise ReportParseError(
                f"Amazon report: no header row after {preamble_lines} preamble lines; "
                "file may be empty or truncated."
            )
        rows: list[dict[str, str]] = []
        for row in reader:
            # DictReader collects surplus cells under a None key; drop it.
            rows.append({k: v for k, v in row.items() if k is not None})
    except csv.Error as exc:
        raise ReportParseError(f"Amazon report: failed to parse CSV: {exc}") from exc
    return rows


def _row_to_transaction(row: Mapping[str, Any], *, now: datetime | None) -> Transaction | None:
    sku = clean_sku(resolve_field(row, SKU_KEYS))
    raw_type = clean_text(row.get("type"))
    if not sku or not raw_type:
        return None
    tx_type = raw_type.lower()
    if tx_type not in KEPT_TYPES:
        return None

    try:
        quantity = abs(int(parse_currency(row.get("quantity"))))
        other_fees = abs(parse_currency(row.get("fba fees"))) + abs(
            parse_currency(row.get("other transaction fees"))
        )
        return build_transaction(
            platform=Platform.AMAZON,
            transaction_id=clean_text(row.get("order id")) or "",
            order_date=normalize_order_date(row.get("date/time")),
            sku=sku,
            quantity=quantity,
            selling_price=parse_currency(row.get("product sales")),
            total=parse_currency(row.get("total")),
            type=tx_type,
            expenses=ExpenseBreakdown(
                shipping_fee=0.0,
                marketplace_fee=abs(parse_currency(row.get("selling fees"))),
                other_fees=other_fees,
            ),
            description=clean_text(row.get("description")),
            now=now,
        )
    except (TypeError, ValueError, OverflowError) as exc:
        raise MalformedRow(f"cannot map Amazon row for sku {sku!r}: {exc}") from exc


def to_transactions(
    rows: list[dict[str, str]], *, now: datetime | None = None
) -> Iterator[Transaction]:
    """Map raw Amazon rows to canonical transactions, skipping unusable rows."""

    for line_no, row in enumerate(rows, start=1):
        try:
            tx = _row_to_transaction(row, now=now)
        except MalformedRow as exc:
            logger.debug("Skipping Amazon row %d: %s", line_no, exc)
            continue
        if tx is not None:
            yield tx


def parse_amazon_report(
    content: str | bytes,
    *,
    preamble_lines: int = AMAZON_PREAMBLE_LINES,
    now: datetime | None = None,
) -> ReportData:
    """Parse an Amazon CSV export into canonical transactions.

    Parameters
    ----------
    content:
        The file contents; bytes are decoded as UTF-8 (a leading BOM is
        tolerated).
    preamble_lines:
        Number of physical lines before the header row.
    now:
        Ingestion timestamp stamped into each record's metadata.
    """

    if isinstance(content, bytes):
        try:
            text = content.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise ReportParseError(f"Amazon report is not valid UTF-8 text: {exc}") from exc
    else:
        text = content

    rows = _read_rows(text, preamble_lines)
    transactions = tuple(to_transactions(rows, now=now))
    logger.info(
        "Parsed Amazon report: %d rows, %d transactions kept", len(rows), len(transactions)
    )
    return ReportData(platform=Platform.AMAZON, transactions=transactions, prices=())


__all__ = [
    "AMAZON_PREAMBLE_LINES",
    "SKU_KEYS",
    "KEPT_TYPES",
    "parse_amazon_report",
    "to_transactions",
]
