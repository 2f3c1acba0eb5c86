"""Fold classified transactions into a :class:`TransactionSummary`.

Per sale: revenue (Flipkart prefers the projected bank settlement when the
report carries one), per-SKU units and amount, and the platform's fee
magnitudes as expenses. Per expense: ``abs(total)`` into the total and into
its category bucket. Cost is applied after the fold, once per SKU, using the
resolver; profit figures follow from that.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass, field
from itertools import batched

from .classify import classify, expense_category
from .cost_price import CostPriceResolver
from .logging_setup import get_logger
from .models import Platform, SkuSales, Transaction, TransactionSummary

logger = get_logger("marketplace_recon.aggregate")

DEFAULT_CHUNK_SIZE = 500


@dataclass(slots=True)
class _SkuTotals:
    units: int = 0
    amount: float = 0.0
    description: str | None = None


@dataclass(slots=True)
class _Accumulator:
    total_sales: float = 0.0
    total_expenses: float = 0.0
    total_units: int = 0
    expenses_by_category: dict[str, float] = field(default_factory=lambda: defaultdict(float))
    by_sku: dict[str, _SkuTotals] = field(default_factory=dict)

    def add_sale(self, tx: Transaction) -> None:
        if tx.platform is Platform.FLIPKART:
            revenue = tx.acc_net_sales if tx.acc_net_sales is not None else tx.total
            fees = tx.expenses.other_fees
        else:
            revenue = tx.total
            fees = tx.expenses.marketplace_fee + tx.expenses.other_fees

        self.total_sales += revenue
        self.total_expenses += fees
        self.total_units += tx.quantity

        # Rows without a SKU count towards totals only.
        if not tx.sku:
            return
        totals = self.by_sku.get(tx.sku)
        if totals is None:
            totals = self.by_sku[tx.sku] = _SkuTotals(description=tx.product.description)
        totals.units += tx.quantity
        totals.amount += tx.total

    def add_expense(self, tx: Transaction) -> None:
        magnitude = abs(tx.total)
        self.total_expenses += magnitude
        self.expenses_by_category[expense_category(tx)] += magnitude


def aggregate(
    transactions: Iterable[Transaction],
    resolver: CostPriceResolver,
    *,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> TransactionSummary:
    """Summarize ``transactions``; ``resolver`` supplies per-SKU cost prices."""

    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")

    acc = _Accumulator()
    seen = 0
    for chunk in batched(transactions, chunk_size):
        for tx in chunk:
            kind = classify(tx)
            if kind == "sale":
                acc.add_sale(tx)
            elif kind == "expense":
                acc.add_expense(tx)
        seen += len(chunk)
        logger.debug("Aggregated %d transactions", seen)

    total_cost = 0.0
    sales_by_product: dict[str, SkuSales] = {}
    for sku, totals in acc.by_sku.items():
        resolution = resolver.resolve(sku)
        cost = resolution.cost_price * totals.units
        total_cost += cost
        profit = totals.amount - cost
        sales_by_product[sku] = SkuSales(
            units=totals.units,
            amount=totals.amount,
            profit=profit,
            profit_per_unit=profit / totals.units if totals.units else 0.0,
            cost_price=resolution.cost_price,
            cost_price_source=resolution.source,
            description=totals.description,
        )

    profit_before_cost = acc.total_sales - acc.total_expenses
    summary = TransactionSummary(
        total_sales=acc.total_sales,
        total_expenses=acc.total_expenses,
        total_units=acc.total_units,
        total_cost=total_cost,
        profit_before_cost=profit_before_cost,
        total_profit=profit_before_cost - total_cost,
        expenses_by_category=dict(acc.expenses_by_category),
        sales_by_product=sales_by_product,
        cost_price_sources=resolver.source_counts(),
    )
    logger.info(
        "Summary over %d transactions: sales=%.2f expenses=%.2f cost=%.2f profit=%.2f",
        seen,
        summary.total_sales,
        summary.total_expenses,
        summary.total_cost,
        summary.total_profit,
    )
    return summary


__all__ = ["aggregate", "DEFAULT_CHUNK_SIZE"]
