from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    CHAR,
    BigInteger,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


# ---------------------------
# Reference: mr_categories
# ---------------------------


class MrCategory(Base):
    __tablename__ = "mr_categories"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    # Shared cost price for products of this category that carry no custom
    # price of their own. NULL until a cost migration has run.
    cost_price: Mapped[float | None] = mapped_column(
        Numeric(18, 2, asdecimal=False), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )


# ---------------------------
# Reference: mr_products
# ---------------------------


class MrProduct(Base):
    __tablename__ = "mr_products"

    sku: Mapped[str] = mapped_column(String, primary_key=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    category_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("mr_categories.id", ondelete="SET NULL"), nullable=True
    )
    custom_cost_price: Mapped[float | None] = mapped_column(
        Numeric(18, 2, asdecimal=False), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    __table_args__ = (Index("ix_mr_products_category_id", "category_id"),)


# ---------------------------
# Core: mr_transactions
# ---------------------------


class MrTransaction(Base):
    __tablename__ = "mr_transactions"

    # BigInteger renders as BIGINT, which SQLite does not alias to ROWID.
    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True
    )
    hash: Mapped[str] = mapped_column(CHAR(64), nullable=False, unique=True)
    # Groups the rows written by one import so the import can be rolled back.
    import_id: Mapped[str | None] = mapped_column(String, nullable=True)
    platform: Mapped[str] = mapped_column(String, nullable=False)
    transaction_id: Mapped[str] = mapped_column(String, nullable=False)
    order_date: Mapped[str] = mapped_column(String, nullable=False)
    sku: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    selling_price: Mapped[float] = mapped_column(Numeric(18, 2, asdecimal=False), nullable=False)
    total: Mapped[float] = mapped_column(Numeric(18, 2, asdecimal=False), nullable=False)
    acc_net_sales: Mapped[float | None] = mapped_column(
        Numeric(18, 2, asdecimal=False), nullable=True
    )
    type: Mapped[str] = mapped_column(String, nullable=False)
    order_status: Mapped[str | None] = mapped_column(String, nullable=True)
    shipping_fee: Mapped[float] = mapped_column(Numeric(18, 2, asdecimal=False), nullable=False)
    marketplace_fee: Mapped[float] = mapped_column(
        Numeric(18, 2, asdecimal=False), nullable=False
    )
    other_fees: Mapped[float] = mapped_column(Numeric(18, 2, asdecimal=False), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    __table_args__ = (
        CheckConstraint("platform IN ('amazon', 'flipkart')", name="ck_mr_transactions_platform"),
        CheckConstraint("quantity >= 0", name="ck_mr_transactions_quantity_nonneg"),
        Index("ix_mr_transactions_import_id", "import_id"),
        Index("ix_mr_transactions_platform", "platform"),
    )
