"""Data models for ``marketplace_recon``.

Two families live here:

- Frozen ``dataclass`` records that flow through the pipeline
  (:class:`Transaction` and its parts, price and category records). They are
  built once per ingested row and never mutated; enrichment returns copies.
- Pydantic models for the analysis output (:class:`TransactionSummary`),
  which must be serializable for presentation and export collaborators.
  ``model_dump(by_alias=True)`` emits the camelCase export shape.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from os import PathLike
from pathlib import Path
from typing import Literal, NamedTuple

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# ---------------------------------------------------------------------------
# Canonical transaction
# ---------------------------------------------------------------------------


class Platform(StrEnum):
    AMAZON = "amazon"
    FLIPKART = "flipkart"


type Classification = Literal["sale", "expense", "ignore"]
type CostPriceSource = Literal["product", "category", "default"]


@dataclass(frozen=True, slots=True)
class ExpenseBreakdown:
    """Fee magnitudes attached to a transaction.

    Values are stored as non-negative magnitudes; whether they reduce profit
    is decided by classification, not by sign.
    """

    shipping_fee: float = 0.0
    marketplace_fee: float = 0.0
    other_fees: float = 0.0

    def __post_init__(self) -> None:
        for name in ("shipping_fee", "marketplace_fee", "other_fees"):
            if getattr(self, name) < 0:
                raise ValueError(f"ExpenseBreakdown.{name} must be non-negative")

    @property
    def total(self) -> float:
        return self.shipping_fee + self.marketplace_fee + self.other_fees


@dataclass(frozen=True, slots=True)
class ProductRef:
    """Denormalized product reference carried on each transaction.

    ``cost_price`` is ``0.0`` at parse time and only filled in by the
    analysis-time join (:meth:`Transaction.with_cost_price`).
    """

    sku: str
    cost_price: float = 0.0
    description: str | None = None


@dataclass(frozen=True, slots=True)
class RecordMetadata:
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True, slots=True)
class Transaction:
    """One canonical ledger row from either marketplace.

    ``type`` is always lower-cased and non-empty. For Flipkart rows it mirrors
    ``order_status``. ``hash`` is the deterministic dedup key computed by
    :func:`marketplace_recon.duplicates.compute_transaction_hash`.
    """

    transaction_id: str
    platform: Platform
    order_date: str
    sku: str
    quantity: int
    selling_price: float
    total: float
    type: str
    expenses: ExpenseBreakdown
    product: ProductRef
    metadata: RecordMetadata
    hash: str
    order_status: str | None = None
    acc_net_sales: float | None = None

    def __post_init__(self) -> None:
        if self.quantity < 0:
            raise ValueError("Transaction.quantity must be non-negative")
        if not self.type:
            raise ValueError("Transaction.type must be non-empty")

    @property
    def status(self) -> str:
        """Lifecycle label used for classification (order status, else type)."""

        return self.order_status or self.type

    def with_cost_price(self, cost_price: float) -> Transaction:
        return dataclasses.replace(
            self, product=dataclasses.replace(self.product, cost_price=cost_price)
        )


# ---------------------------------------------------------------------------
# Prices and cost-price inputs
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ProductPrice:
    """A price-list entry, from an uploaded sheet or the bundled defaults.

    ``cost_price`` is ``None`` when the sheet leaves the cell blank; such an
    entry never replaces a known price.
    """

    sku: str
    description: str | None = None
    cost_price: float | None = 0.0
    base_price: float = 0.0


@dataclass(frozen=True, slots=True)
class ProductRecord:
    """A product as held by the product store."""

    sku: str
    description: str | None = None
    category_id: str | None = None
    custom_cost_price: float | None = None


@dataclass(frozen=True, slots=True)
class CategoryCostPrice:
    """Average cost price shared by every product of a category lacking its own."""

    category_id: str
    cost_price: float | None = None


@dataclass(frozen=True, slots=True)
class CostPriceResolution:
    sku: str
    cost_price: float
    source: CostPriceSource
    category_id: str | None = None


# ---------------------------------------------------------------------------
# Ingest envelopes
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ReportFile:
    """An uploaded report: original file name plus raw bytes."""

    name: str
    content: bytes

    @classmethod
    def from_path(cls, path: str | PathLike[str]) -> ReportFile:
        p = Path(path)
        return cls(name=p.name, content=p.read_bytes())


class ReportData(NamedTuple):
    """Output of one parser run."""

    platform: Platform
    transactions: tuple[Transaction, ...]
    prices: tuple[ProductPrice, ...] = ()


@dataclass(frozen=True, slots=True)
class ImportResult:
    """Outcome of :func:`marketplace_recon.api.import_report`.

    ``parsed == 0`` means the file was accepted but no row matched; rejected
    files and storage failures raise instead.
    """

    import_id: str
    platform: Platform
    parsed: int
    inserted: int
    duplicates_skipped: int
    prices: tuple[ProductPrice, ...] = field(default_factory=tuple)


# ---------------------------------------------------------------------------
# Analysis output
# ---------------------------------------------------------------------------


class _SummaryModel(BaseModel):
    model_config = ConfigDict(extra="forbid", alias_generator=to_camel, populate_by_name=True)


class SkuSales(_SummaryModel):
    units: int = 0
    amount: float = 0.0
    profit: float = 0.0
    profit_per_unit: float = 0.0
    cost_price: float = 0.0
    cost_price_source: CostPriceSource = "default"
    description: str | None = None


class CostPriceSources(_SummaryModel):
    product: int = 0
    category: int = 0
    default: int = 0


class TransactionSummary(_SummaryModel):
    """Financial summary derived from a transaction set and a price map."""

    total_sales: float = 0.0
    total_expenses: float = 0.0
    total_units: int = 0
    total_cost: float = 0.0
    profit_before_cost: float = 0.0
    total_profit: float = 0.0
    expenses_by_category: dict[str, float] = Field(default_factory=dict)
    sales_by_product: dict[str, SkuSales] = Field(default_factory=dict)
    cost_price_sources: CostPriceSources = Field(default_factory=CostPriceSources)


__all__ = [
    "Platform",
    "Classification",
    "CostPriceSource",
    "ExpenseBreakdown",
    "ProductRef",
    "RecordMetadata",
    "Transaction",
    "ProductPrice",
    "ProductRecord",
    "CategoryCostPrice",
    "CostPriceResolution",
    "ReportFile",
    "ReportData",
    "ImportResult",
    "SkuSales",
    "CostPriceSources",
    "TransactionSummary",
]
