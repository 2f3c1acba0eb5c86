"""Persistence collaborator contract consumed by the import pipeline.

The pipeline never talks to a database directly; it receives an object
satisfying :class:`TransactionStore`. :class:`marketplace_recon.persistence.
SqlTransactionStore` is the SQLAlchemy-backed implementation.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Protocol

from .models import CategoryCostPrice, Platform, ProductRecord, Transaction


class TransactionStore(Protocol):
    def existing_hashes(self, hashes: list[str]) -> Iterable[str]:
        """Return the subset of ``hashes`` already stored (callers send <= 10)."""
        ...

    def insert_many(
        self, transactions: Sequence[Transaction], *, import_id: str | None = None
    ) -> int:
        """Insert ``transactions`` if absent; return how many rows were written."""
        ...

    def get_products(self) -> list[ProductRecord]: ...

    def get_categories(self) -> list[CategoryCostPrice]: ...

    def get_transactions(self, platform: Platform | None = None) -> list[Transaction]: ...


__all__ = ["TransactionStore"]
