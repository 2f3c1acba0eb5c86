"""Adapter for Flipkart seller P&L workbooks (``.xlsx``).

Sheets
------
- ``ORDERS_SHEET`` ("Orders P&L", required): one row per order line. Its
  absence aborts the import with :class:`RequiredSheetMissing` before any row
  is read.
- ``SKU_SHEET`` ("SKU-level P&L", optional): SKU price list. Missing sheet
  means an empty price list.

Order columns used:
``Order ID, Order Date, SKU Name, Gross Units, Final Selling Price (incl.
seller opted in default offers), Order Status, Net Earnings (INR), Bank
Settlement [Projected] (INR), Total Expenses (INR)``; ``Commission (INR)`` and
``Shipping Fee (INR)`` are read when present.

Price columns used: ``SKU ID`` (or ``SKU``), ``Product Name``,
``Base Price``, ``Cost Price``.
"""

from __future__ import annotations

import io
from collections.abc import Iterator, Mapping
from datetime import datetime
from typing import Any

import pandas as pd

from ...currency import parse_currency
from ...errors import MalformedRow, ReportParseError, RequiredSheetMissing
from ...logging_setup import get_logger
from ...models import ExpenseBreakdown, Platform, ProductPrice, ReportData, Transaction
from ..utils import (
    build_transaction,
    clean_sku,
    clean_text,
    is_blank,
    normalize_order_date,
    resolve_field,
)

logger = get_logger("marketplace_recon.ingest.flipkart")

ORDERS_SHEET = "Orders P&L"
SKU_SHEET = "SKU-level P&L"

SELLING_PRICE_COLUMN = "Final Selling Price (incl. seller opted in default offers)"
PRICE_SKU_KEYS: tuple[str, ...] = ("SKU ID", "SKU")


def _sheet_records(workbook: pd.ExcelFile, sheet_name: str) -> list[dict[str, Any]]:
    df = workbook.parse(sheet_name=sheet_name, dtype=object)
    # Normalize NaN/NaT cells to None so downstream helpers see plain values.
    df = df.astype(object).where(pd.notna(df), None)
    df.columns = [str(c).strip() for c in df.columns]
    return df.to_dict(orient="records")


def _optional_fee(row: Mapping[str, Any], column: str) -> float:
    return abs(parse_currency(row.get(column)))


def _order_to_transaction(row: Mapping[str, Any], *, now: datetime | None) -> Transaction | None:
    order_id = clean_text(row.get("Order ID"))
    status = clean_text(row.get("Order Status"))
    if not order_id or not status:
        return None
    status = status.lower()

    bank_settlement = row.get("Bank Settlement [Projected] (INR)")
    try:
        return build_transaction(
            platform=Platform.FLIPKART,
            transaction_id=order_id,
            order_date=normalize_order_date(row.get("Order Date")),
            sku=clean_sku(row.get("SKU Name")),
            quantity=abs(int(parse_currency(row.get("Gross Units")))),
            selling_price=parse_currency(row.get(SELLING_PRICE_COLUMN)),
            total=parse_currency(row.get("Net Earnings (INR)")),
            type=status,
            order_status=status,
            acc_net_sales=None if is_blank(bank_settlement) else parse_currency(bank_settlement),
            expenses=ExpenseBreakdown(
                shipping_fee=_optional_fee(row, "Shipping Fee (INR)"),
                marketplace_fee=_optional_fee(row, "Commission (INR)"),
                other_fees=_optional_fee(row, "Total Expenses (INR)"),
            ),
            description=clean_text(row.get("SKU Name")),
            now=now,
        )
    except (TypeError, ValueError, OverflowError) as exc:
        raise MalformedRow(f"cannot map Flipkart order {order_id!r}: {exc}") from exc


def to_transactions(
    rows: list[dict[str, Any]], *, now: datetime | None = None
) -> Iterator[Transaction]:
    for line_no, row in enumerate(rows, start=2):
        try:
            tx = _order_to_transaction(row, now=now)
        except MalformedRow as exc:
            logger.debug("Skipping Flipkart order row %d: %s", line_no, exc)
            continue
        if tx is not None:
            yield tx


def to_prices(rows: list[dict[str, Any]]) -> Iterator[ProductPrice]:
    for row in rows:
        sku = clean_sku(resolve_field(row, PRICE_SKU_KEYS))
        if not sku:
            continue
        cost = row.get("Cost Price")
        yield ProductPrice(
            sku=sku,
            description=clean_text(row.get("Product Name")),
            base_price=parse_currency(row.get("Base Price")),
            cost_price=None if is_blank(cost) else parse_currency(cost),
        )


def parse_flipkart_report(content: bytes, *, now: datetime | None = None) -> ReportData:
    """Parse a Flipkart P&L workbook into transactions and an SKU price list."""

    try:
        workbook = pd.ExcelFile(io.BytesIO(content), engine="openpyxl")
    except Exception as exc:
        # openpyxl raises a mix of zipfile/KeyError/InvalidFileException here.
        raise ReportParseError(f"Flipkart report: unreadable workbook: {exc}") from exc

    with workbook:
        sheet_names = [str(s) for s in workbook.sheet_names]
        if ORDERS_SHEET not in sheet_names:
            raise RequiredSheetMissing(ORDERS_SHEET)

        order_rows = _sheet_records(workbook, ORDERS_SHEET)
        price_rows: list[dict[str, Any]] = []
        if SKU_SHEET in sheet_names:
            price_rows = _sheet_records(workbook, SKU_SHEET)
        else:
            logger.info("Sheet %r not present; continuing without a price list", SKU_SHEET)

    transactions = tuple(to_transactions(order_rows, now=now))
    prices = tuple(to_prices(price_rows))
    logger.info(
        "Parsed Flipkart report: %d order rows, %d transactions kept, %d prices",
        len(order_rows),
        len(transactions),
        len(prices),
    )
    return ReportData(platform=Platform.FLIPKART, transactions=transactions, prices=prices)


__all__ = [
    "ORDERS_SHEET",
    "SKU_SHEET",
    "parse_flipkart_report",
    "to_transactions",
    "to_prices",
]
