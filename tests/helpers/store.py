"""In-memory :class:`~marketplace_recon.store.TransactionStore` for unit tests."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from marketplace_recon.models import (
    CategoryCostPrice,
    Platform,
    ProductRecord,
    Transaction,
)


class InMemoryStore:
    def __init__(
        self,
        *,
        products: Iterable[ProductRecord] = (),
        categories: Iterable[CategoryCostPrice] = (),
        fail_on_insert: Exception | None = None,
    ) -> None:
        self.rows: dict[str, tuple[Transaction, str | None]] = {}
        self.products = list(products)
        self.categories = list(categories)
        self.lookup_calls: list[list[str]] = []
        self.insert_calls = 0
        self.fail_on_insert = fail_on_insert

    def existing_hashes(self, hashes: list[str]) -> list[str]:
        self.lookup_calls.append(list(hashes))
        return [h for h in hashes if h in self.rows]

    def insert_many(
        self, transactions: Sequence[Transaction], *, import_id: str | None = None
    ) -> int:
        self.insert_calls += 1
        if self.fail_on_insert is not None:
            raise self.fail_on_insert
        inserted = 0
        for tx in transactions:
            if tx.hash not in self.rows:
                self.rows[tx.hash] = (tx, import_id)
                inserted += 1
        return inserted

    def get_products(self) -> list[ProductRecord]:
        return list(self.products)

    def get_categories(self) -> list[CategoryCostPrice]:
        return list(self.categories)

    def get_transactions(self, platform: Platform | None = None) -> list[Transaction]:
        return [
            tx for tx, _ in self.rows.values() if platform is None or tx.platform is platform
        ]
