"""Sale / expense / ignore classification per marketplace."""

from __future__ import annotations

from .models import Classification, Platform, Transaction

AMAZON_SALE_TYPE = "order"
AMAZON_EXPENSE_TYPES: frozenset[str] = frozenset({"adjustment", "shipping services"})
AMAZON_EXPENSE_MARKERS: tuple[str, ...] = ("refund", "service", "fee")

FLIPKART_SALE_STATUSES: frozenset[str] = frozenset({"delivered", "shipped", "in transit"})


def classify(tx: Transaction) -> Classification:
    """Classify ``tx``.

    Amazon rows outside the sale and expense vocabularies are ignored.
    Flipkart has no ignore bucket: any status other than a sale status is an
    expense.
    """

    if tx.platform is Platform.FLIPKART:
        return "sale" if tx.status in FLIPKART_SALE_STATUSES else "expense"

    label = tx.type.lower()
    if label == AMAZON_SALE_TYPE:
        return "sale"
    if label in AMAZON_EXPENSE_TYPES or any(m in label for m in AMAZON_EXPENSE_MARKERS):
        return "expense"
    return "ignore"


def expense_category(tx: Transaction) -> str:
    """Bucket name used in ``expenses_by_category``."""

    if tx.platform is Platform.FLIPKART:
        return f"flipkart-{tx.status}"
    return tx.type.lower()


__all__ = [
    "classify",
    "expense_category",
    "FLIPKART_SALE_STATUSES",
]
