"""Public API for the ``marketplace_recon`` package.

This module is the stable import surface used by the CLI and by embedding
applications:

- :func:`extract_report` detects the report format and parses it
  (re-exported from :mod:`marketplace_recon.ingest.detect`).
- :func:`import_report` runs extract -> dedup -> insert against a
  :class:`~marketplace_recon.store.TransactionStore`.
- :func:`analyze` folds an in-memory transaction set into a
  :class:`~marketplace_recon.models.TransactionSummary`.
- :func:`analyze_store` does the same over everything a store holds.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Mapping

from .aggregate import aggregate
from .cost_price import CostPriceResolver
from .duplicates import persist_new
from .ingest.detect import extract_report  # noqa: F401  (re-export)
from .logging_setup import get_logger
from .models import (
    CategoryCostPrice,
    ImportResult,
    Platform,
    ProductPrice,
    ProductRecord,
    ReportFile,
    Transaction,
    TransactionSummary,
)
from .store import TransactionStore

logger = get_logger("marketplace_recon.api")


def import_report(
    file: ReportFile | None,
    store: TransactionStore,
    *,
    import_id: str | None = None,
    amazon_preamble_lines: int | None = None,
) -> ImportResult:
    """Parse ``file`` and persist the transactions ``store`` does not hold yet.

    Rejected files raise a :class:`~marketplace_recon.errors.ReportImportError`
    before anything is written. Store failures propagate unchanged; nothing is
    reported as imported in that case.

    Re-importing the same export inserts nothing and reports every row as a
    skipped duplicate.
    """

    report = extract_report(file, amazon_preamble_lines=amazon_preamble_lines)
    import_id = import_id or uuid.uuid4().hex

    if not report.transactions:
        logger.info("Import %s: %s report matched no rows", import_id, report.platform.value)
        return ImportResult(
            import_id=import_id,
            platform=report.platform,
            parsed=0,
            inserted=0,
            duplicates_skipped=0,
            prices=report.prices,
        )

    outcome = persist_new(store, report.transactions, import_id=import_id)
    result = ImportResult(
        import_id=import_id,
        platform=report.platform,
        parsed=len(report.transactions),
        inserted=outcome.inserted,
        duplicates_skipped=outcome.skipped,
        prices=report.prices,
    )
    logger.info(
        "Import %s: platform=%s parsed=%d inserted=%d skipped=%d",
        import_id,
        result.platform.value,
        result.parsed,
        result.inserted,
        result.duplicates_skipped,
    )
    return result


def analyze(
    transactions: Iterable[Transaction],
    *,
    products: Iterable[ProductRecord] = (),
    categories: Iterable[CategoryCostPrice] = (),
    prices: Iterable[ProductPrice] = (),
    default_prices: Mapping[str, float] | None = None,
    platform: Platform | None = None,
) -> TransactionSummary:
    """Summarize ``transactions``.

    Parameters
    ----------
    products, categories:
        Product and category records supplying the ``product`` and
        ``category`` cost-price tiers.
    prices:
        An uploaded price sheet; adds the SKUs the bundled default table
        does not price (see :func:`~marketplace_recon.cost_price.merge_price_lists`).
    default_prices:
        Replaces the bundled default price table (SKU -> cost price).
    platform:
        When given, only that marketplace's transactions are summarized.
    """

    resolver = CostPriceResolver.with_price_list(
        products, categories, prices, default_prices=default_prices
    )
    if platform is not None:
        transactions = (tx for tx in transactions if tx.platform is platform)
    return aggregate(transactions, resolver)


def analyze_store(
    store: TransactionStore,
    *,
    prices: Iterable[ProductPrice] = (),
    platform: Platform | None = None,
) -> TransactionSummary:
    """Summarize the transactions held by ``store`` using its product catalog."""

    return analyze(
        store.get_transactions(platform),
        products=store.get_products(),
        categories=store.get_categories(),
        prices=prices,
    )


__all__ = [
    "extract_report",
    "import_report",
    "analyze",
    "analyze_store",
]
