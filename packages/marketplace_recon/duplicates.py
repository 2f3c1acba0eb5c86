"""Deduplication of parsed transactions against already-persisted data.

Public surface:
- ``compute_transaction_hash``: deterministic content key for a transaction.
- ``filter_new``: drop in-batch duplicates, then drop hashes the store
  already knows (looked up in chunks of at most ``LOOKUP_CHUNK_SIZE``).
- ``persist_new``: ``filter_new`` followed by a single write of the strictly
  new set (no write at all when it is empty).
"""

from __future__ import annotations

import hashlib
import json
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .logging_setup import get_logger

if TYPE_CHECKING:
    from .models import Transaction
    from .store import TransactionStore

logger = get_logger("marketplace_recon.duplicates")

# Backing stores cap the size of a membership query.
LOOKUP_CHUNK_SIZE = 10


def compute_transaction_hash(
    *,
    platform: str,
    transaction_id: str,
    sku: str,
    status: str,
    order_date: str,
) -> str:
    """Compute a stable SHA-256 key over the identifying fields of a row.

    Fields used: platform, order id, SKU, type/status (lower-cased) and order
    date, each trimmed. Re-importing the same export yields the same keys.
    """

    payload = {
        "platform": (platform or "").strip().lower(),
        "transaction_id": (transaction_id or "").strip(),
        "sku": (sku or "").strip(),
        "status": (status or "").strip().lower(),
        "order_date": (order_date or "").strip(),
    }
    data = json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return hashlib.sha256(data.encode("utf-8")).hexdigest()


def _unique_by_hash(transactions: Iterable[Transaction]) -> list[Transaction]:
    seen: set[str] = set()
    unique: list[Transaction] = []
    for tx in transactions:
        if tx.hash in seen:
            continue
        seen.add(tx.hash)
        unique.append(tx)
    return unique


def _chunks(items: Sequence[str], size: int) -> Iterable[Sequence[str]]:
    for start in range(0, len(items), size):
        yield items[start : start + size]


def filter_new(
    transactions: Iterable[Transaction],
    existing_lookup: Callable[[list[str]], Iterable[str]],
    *,
    chunk_size: int = LOOKUP_CHUNK_SIZE,
) -> list[Transaction]:
    """Return the transactions whose hash is neither repeated nor already stored.

    ``existing_lookup`` receives lists of at most ``chunk_size`` hashes and
    returns the subset it already holds. Input order is preserved.
    """

    if chunk_size <= 0 or chunk_size > LOOKUP_CHUNK_SIZE:
        raise ValueError(f"chunk_size must be within 1..{LOOKUP_CHUNK_SIZE}")

    unique = _unique_by_hash(transactions)
    if not unique:
        return []

    hashes = [tx.hash for tx in unique]
    known: set[str] = set()
    for chunk in _chunks(hashes, chunk_size):
        known.update(existing_lookup(list(chunk)))

    return [tx for tx in unique if tx.hash not in known]


@dataclass(frozen=True, slots=True)
class DedupOutcome:
    new: tuple[Transaction, ...]
    skipped: int
    inserted: int


def persist_new(
    store: TransactionStore,
    transactions: Iterable[Transaction],
    *,
    import_id: str | None = None,
) -> DedupOutcome:
    """Filter ``transactions`` against ``store`` and insert the new ones.

    ``inserted`` is what the store reports writing; with an insert-if-absent
    store it can be lower than ``len(new)`` when a concurrent import won the
    race for some rows. Store errors propagate unchanged.
    """

    batch = list(transactions)
    new = filter_new(batch, store.existing_hashes)
    skipped = len(batch) - len(new)
    if not new:
        logger.info("No new transactions (skipped=%d)", skipped)
        return DedupOutcome(new=(), skipped=skipped, inserted=0)

    inserted = store.insert_many(new, import_id=import_id)
    logger.info("Persisted %d new transactions (skipped=%d)", inserted, skipped)
    return DedupOutcome(new=tuple(new), skipped=skipped, inserted=inserted)


__all__ = [
    "LOOKUP_CHUNK_SIZE",
    "compute_transaction_hash",
    "filter_new",
    "persist_new",
    "DedupOutcome",
]
