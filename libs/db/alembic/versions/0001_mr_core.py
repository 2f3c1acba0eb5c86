# ruff: noqa: I001
"""Marketplace reconciliation core tables.

Revision ID: 0001_mr_core
Revises: None
Create Date: 2026-10-19
"""

from __future__ import annotations  # ruff: noqa: I001

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "0001_mr_core"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    ]


def upgrade() -> None:
    # mr_categories
    op.create_table(
        "mr_categories",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("cost_price", sa.Numeric(18, 2), nullable=True),
        *_timestamps(),
    )

    # mr_products
    op.create_table(
        "mr_products",
        sa.Column("sku", sa.String(), primary_key=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("category_id", sa.String(), nullable=True),
        sa.Column("custom_cost_price", sa.Numeric(18, 2), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["category_id"],
            ["mr_categories.id"],
            name="fk_mr_products_category",
            ondelete="SET NULL",
        ),
    )
    op.create_index("ix_mr_products_category_id", "mr_products", ["category_id"], unique=False)

    # mr_transactions
    op.create_table(
        "mr_transactions",
        sa.Column(
            "id",
            sa.BigInteger().with_variant(sa.Integer(), "sqlite"),
            primary_key=True,
            autoincrement=True,
        ),
        sa.Column("hash", sa.CHAR(64), nullable=False),
        sa.Column("import_id", sa.String(), nullable=True),
        sa.Column("platform", sa.String(), nullable=False),
        sa.Column("transaction_id", sa.String(), nullable=False),
        sa.Column("order_date", sa.String(), nullable=False),
        sa.Column("sku", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("selling_price", sa.Numeric(18, 2), nullable=False),
        sa.Column("total", sa.Numeric(18, 2), nullable=False),
        sa.Column("acc_net_sales", sa.Numeric(18, 2), nullable=True),
        sa.Column("type", sa.String(), nullable=False),
        sa.Column("order_status", sa.String(), nullable=True),
        sa.Column("shipping_fee", sa.Numeric(18, 2), nullable=False),
        sa.Column("marketplace_fee", sa.Numeric(18, 2), nullable=False),
        sa.Column("other_fees", sa.Numeric(18, 2), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("hash", name="uq_mr_transactions_hash"),
        sa.CheckConstraint(
            "platform IN ('amazon', 'flipkart')", name="ck_mr_transactions_platform"
        ),
        sa.CheckConstraint("quantity >= 0", name="ck_mr_transactions_quantity_nonneg"),
    )
    op.create_index(
        "ix_mr_transactions_import_id", "mr_transactions", ["import_id"], unique=False
    )
    op.create_index("ix_mr_transactions_platform", "mr_transactions", ["platform"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_mr_transactions_platform", table_name="mr_transactions")
    op.drop_index("ix_mr_transactions_import_id", table_name="mr_transactions")
    op.drop_table("mr_transactions")
    op.drop_index("ix_mr_products_category_id", table_name="mr_products")
    op.drop_table("mr_products")
    op.drop_table("mr_categories")
