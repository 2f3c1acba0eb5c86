# ruff: noqa: I001
"""Persistence integration for marketplace_recon.

Functions here read and write the shared database owned by ``libs/db``. They
rely on SQLAlchemy ORM models defined in ``db.models.marketplace`` and a
session provided by ``db.client``.

Scope:
- Insert-if-absent of parsed transactions into ``mr_transactions`` keyed by
  the deterministic ``hash`` (concurrent imports cannot double-insert).
- Reads of transactions, products and categories for analysis.
- Rollback of one import and the category cost-price migration.
- Upserts of the product catalog (used by the catalog seeder).

Writes use the dialect's native ``INSERT .. ON CONFLICT`` (PostgreSQL in
production, SQLite in tests).
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import delete, func, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from db.models.marketplace import MrCategory, MrProduct, MrTransaction
from .cost_price import average_custom_cost
from .logging_setup import get_logger
from .models import (
    CategoryCostPrice,
    ExpenseBreakdown,
    Platform,
    ProductRecord,
    ProductRef,
    RecordMetadata,
    Transaction,
)

logger = get_logger("marketplace_recon.persistence")

# Keeps bound parameters per statement well under SQLite's host-parameter cap.
INSERT_BATCH_SIZE = 200


def _insert(session: Session, model: type[Any]) -> Any:
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        return pg_insert(model)
    if dialect == "sqlite":
        return sqlite_insert(model)
    raise NotImplementedError(f"insert-if-absent is not supported on dialect {dialect!r}")


def _tx_to_row(tx: Transaction, import_id: str | None) -> dict[str, Any]:
    return {
        "hash": tx.hash,
        "import_id": import_id,
        "platform": tx.platform.value,
        "transaction_id": tx.transaction_id,
        "order_date": tx.order_date,
        "sku": tx.sku,
        "description": tx.product.description,
        "quantity": tx.quantity,
        "selling_price": tx.selling_price,
        "total": tx.total,
        "acc_net_sales": tx.acc_net_sales,
        "type": tx.type,
        "order_status": tx.order_status,
        "shipping_fee": tx.expenses.shipping_fee,
        "marketplace_fee": tx.expenses.marketplace_fee,
        "other_fees": tx.expenses.other_fees,
        "created_at": tx.metadata.created_at,
        "updated_at": tx.metadata.updated_at,
    }


def _row_to_tx(row: MrTransaction) -> Transaction:
    return Transaction(
        transaction_id=row.transaction_id,
        platform=Platform(row.platform),
        order_date=row.order_date,
        sku=row.sku,
        quantity=row.quantity,
        selling_price=float(row.selling_price),
        total=float(row.total),
        type=row.type,
        expenses=ExpenseBreakdown(
            shipping_fee=float(row.shipping_fee),
            marketplace_fee=float(row.marketplace_fee),
            other_fees=float(row.other_fees),
        ),
        product=ProductRef(sku=row.sku, description=row.description),
        metadata=RecordMetadata(created_at=row.created_at, updated_at=row.updated_at),
        hash=row.hash,
        order_status=row.order_status,
        acc_net_sales=None if row.acc_net_sales is None else float(row.acc_net_sales),
    )


def _product_record(row: MrProduct) -> ProductRecord:
    return ProductRecord(
        sku=row.sku,
        description=row.description,
        category_id=row.category_id,
        custom_cost_price=None if row.custom_cost_price is None else float(row.custom_cost_price),
    )


# ---------------------------------------------------------------------------
# Transactions
# ---------------------------------------------------------------------------


def existing_hashes(session: Session, hashes: Sequence[str]) -> set[str]:
    """Return the subset of ``hashes`` already present in ``mr_transactions``."""

    if not hashes:
        return set()
    stmt = select(MrTransaction.hash).where(MrTransaction.hash.in_(list(hashes)))
    return set(session.scalars(stmt))


def insert_transactions(
    session: Session,
    transactions: Iterable[Transaction],
    *,
    import_id: str | None = None,
) -> int:
    """Insert ``transactions`` whose hash is not stored yet; return rows written.

    Rows whose hash already exists (e.g. written by a concurrent import
    between the duplicate lookup and this call) are left untouched.
    """

    payloads = [_tx_to_row(tx, import_id) for tx in transactions]
    inserted = 0
    for start in range(0, len(payloads), INSERT_BATCH_SIZE):
        batch = payloads[start : start + INSERT_BATCH_SIZE]
        stmt = _insert(session, MrTransaction).values(batch)
        stmt = stmt.on_conflict_do_nothing(index_elements=[MrTransaction.hash])
        result = session.connection().execute(stmt)
        inserted += max(result.rowcount or 0, 0)
    session.flush()
    if inserted < len(payloads):
        logger.info(
            "Insert skipped %d rows already stored by another import", len(payloads) - inserted
        )
    return inserted


def get_transactions(session: Session, platform: Platform | None = None) -> list[Transaction]:
    stmt = select(MrTransaction).order_by(MrTransaction.id)
    if platform is not None:
        stmt = stmt.where(MrTransaction.platform == platform.value)
    return [_row_to_tx(row) for row in session.scalars(stmt)]


def rollback_import(session: Session, import_id: str) -> int:
    """Delete every transaction written by import ``import_id``; return the count."""

    result = session.execute(delete(MrTransaction).where(MrTransaction.import_id == import_id))
    deleted = result.rowcount or 0
    logger.info("Rolled back import %s (%d transactions)", import_id, deleted)
    return deleted


# ---------------------------------------------------------------------------
# Products and categories
# ---------------------------------------------------------------------------


def get_products(session: Session) -> list[ProductRecord]:
    return [_product_record(row) for row in session.scalars(select(MrProduct))]


def get_categories(session: Session) -> list[CategoryCostPrice]:
    rows = session.scalars(select(MrCategory))
    return [
        CategoryCostPrice(
            category_id=row.id,
            cost_price=None if row.cost_price is None else float(row.cost_price),
        )
        for row in rows
    ]


def products_inheriting_cost(session: Session, category_id: str) -> list[ProductRecord]:
    """Products of ``category_id`` without a custom price (they use the category's)."""

    stmt = (
        select(MrProduct)
        .where(MrProduct.category_id == category_id, MrProduct.custom_cost_price.is_(None))
        .order_by(MrProduct.sku)
    )
    return [_product_record(row) for row in session.scalars(stmt)]


def migrate_product_cost_prices(session: Session, category_id: str) -> float | None:
    """Move a category's products from custom prices to one shared price.

    The category's cost price becomes the average ``custom_cost_price`` of its
    products, and those custom prices are cleared so the products inherit the
    category price. Returns the new category price, or ``None`` (no change)
    when no product of the category has a custom price.

    Raises
    ------
    LookupError
        When ``category_id`` does not exist.
    """

    category = session.get(MrCategory, category_id)
    if category is None:
        raise LookupError(f"Unknown category: {category_id}")

    rows = session.scalars(select(MrProduct).where(MrProduct.category_id == category_id))
    average = average_custom_cost(_product_record(row) for row in rows)
    if average is None:
        logger.info("Category %s has no custom product prices; nothing to migrate", category_id)
        return None

    now = datetime.now(UTC)
    category.cost_price = round(average, 2)
    category.updated_at = now
    session.execute(
        update(MrProduct)
        .where(MrProduct.category_id == category_id, MrProduct.custom_cost_price.isnot(None))
        .values(custom_cost_price=None, updated_at=now)
    )
    session.flush()
    logger.info("Category %s cost price set to %.2f", category_id, category.cost_price)
    return category.cost_price


def upsert_categories(session: Session, categories: Iterable[Mapping[str, Any]]) -> None:
    """Insert or update ``mr_categories`` rows (``id``, ``name``, ``cost_price``)."""

    payloads = [
        {
            "id": str(c["id"]),
            "name": str(c.get("name") or c["id"]),
            "cost_price": c.get("cost_price"),
        }
        for c in categories
    ]
    if not payloads:
        return
    stmt = _insert(session, MrCategory).values(payloads)
    stmt = stmt.on_conflict_do_update(
        index_elements=[MrCategory.id],
        set_={
            "name": stmt.excluded.name,
            "cost_price": stmt.excluded.cost_price,
            "updated_at": func.now(),
        },
    )
    session.execute(stmt)


def upsert_products(session: Session, products: Iterable[ProductRecord]) -> None:
    """Insert or update ``mr_products`` rows keyed by SKU."""

    payloads = [
        {
            "sku": p.sku,
            "description": p.description,
            "category_id": p.category_id,
            "custom_cost_price": p.custom_cost_price,
        }
        for p in products
    ]
    if not payloads:
        return
    stmt = _insert(session, MrProduct).values(payloads)
    stmt = stmt.on_conflict_do_update(
        index_elements=[MrProduct.sku],
        set_={
            "description": stmt.excluded.description,
            "category_id": stmt.excluded.category_id,
            "custom_cost_price": stmt.excluded.custom_cost_price,
            "updated_at": func.now(),
        },
    )
    session.execute(stmt)


# ---------------------------------------------------------------------------
# Store adapter
# ---------------------------------------------------------------------------


class SqlTransactionStore:
    """:class:`~marketplace_recon.store.TransactionStore` over a SQLAlchemy session.

    The caller owns the session and its transaction boundary (typically
    ``db.client.session_scope``).
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def existing_hashes(self, hashes: list[str]) -> set[str]:
        return existing_hashes(self.session, hashes)

    def insert_many(
        self, transactions: Sequence[Transaction], *, import_id: str | None = None
    ) -> int:
        return insert_transactions(self.session, transactions, import_id=import_id)

    def get_products(self) -> list[ProductRecord]:
        return get_products(self.session)

    def get_categories(self) -> list[CategoryCostPrice]:
        return get_categories(self.session)

    def get_transactions(self, platform: Platform | None = None) -> list[Transaction]:
        return get_transactions(self.session, platform)


__all__ = [
    "SqlTransactionStore",
    "existing_hashes",
    "insert_transactions",
    "get_transactions",
    "rollback_import",
    "get_products",
    "get_categories",
    "products_inheriting_cost",
    "migrate_product_cost_prices",
    "upsert_categories",
    "upsert_products",
]
