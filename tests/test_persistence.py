from __future__ import annotations

from pathlib import Path

import pytest
from db.client import session_scope

from marketplace_recon.models import Platform
from marketplace_recon.persistence import (
    SqlTransactionStore,
    get_categories,
    get_products,
    insert_transactions,
    migrate_product_cost_prices,
    products_inheriting_cost,
    rollback_import,
)
from tests.helpers.db import bootstrap_sqlite_db, count_transactions, seed_catalog
from tests.helpers.transactions import make_tx


@pytest.fixture
def db_url(tmp_path: Path) -> str:
    return bootstrap_sqlite_db(tmp_path / "mr.db")


def test_round_trip_preserves_canonical_fields(db_url: str):
    tx = make_tx(
        platform=Platform.FLIPKART,
        transaction_id="OD1",
        sku="SSHF001001",
        quantity=2,
        selling_price=200.0,
        total=180.0,
        type="delivered",
        acc_net_sales=170.0,
        other_fees=20.0,
        marketplace_fee=12.5,
        description="Hanuman Ji Flag",
    )
    with session_scope(database_url=db_url) as s:
        assert SqlTransactionStore(s).insert_many([tx], import_id="imp-1") == 1

    with session_scope(database_url=db_url) as s:
        [loaded] = SqlTransactionStore(s).get_transactions()

    assert loaded.hash == tx.hash
    assert loaded.platform is Platform.FLIPKART
    assert loaded.order_status == "delivered"
    assert loaded.type == "delivered"
    assert loaded.quantity == 2
    assert loaded.total == pytest.approx(180.0)
    assert loaded.acc_net_sales == pytest.approx(170.0)
    assert loaded.expenses == tx.expenses
    assert loaded.product.description == "Hanuman Ji Flag"


def test_insert_if_absent_ignores_stored_hashes(db_url: str):
    a = make_tx(transaction_id="1")
    b = make_tx(transaction_id="2")
    with session_scope(database_url=db_url) as s:
        insert_transactions(s, [a])

    with session_scope(database_url=db_url) as s:
        # A concurrent import already wrote ``a``: only ``b`` is new.
        inserted = insert_transactions(s, [a, b])

    assert inserted == 1
    assert count_transactions(db_url) == 2


def test_existing_hashes_returns_known_subset(db_url: str):
    a = make_tx(transaction_id="1")
    b = make_tx(transaction_id="2")
    with session_scope(database_url=db_url) as s:
        store = SqlTransactionStore(s)
        store.insert_many([a])
        assert store.existing_hashes([a.hash, b.hash]) == {a.hash}
        assert store.existing_hashes([]) == set()


def test_get_transactions_filters_by_platform(db_url: str):
    with session_scope(database_url=db_url) as s:
        insert_transactions(
            s,
            [
                make_tx(transaction_id="1"),
                make_tx(platform=Platform.FLIPKART, transaction_id="2", type="delivered"),
            ],
        )

    with session_scope(database_url=db_url) as s:
        store = SqlTransactionStore(s)
        assert [t.transaction_id for t in store.get_transactions(Platform.AMAZON)] == ["1"]
        assert [t.transaction_id for t in store.get_transactions(Platform.FLIPKART)] == ["2"]
        assert len(store.get_transactions()) == 2


def test_rollback_removes_exactly_one_import(db_url: str):
    with session_scope(database_url=db_url) as s:
        insert_transactions(
            s, [make_tx(transaction_id="1"), make_tx(transaction_id="2")], import_id="a"
        )
        insert_transactions(s, [make_tx(transaction_id="3")], import_id="b")

    with session_scope(database_url=db_url) as s:
        assert rollback_import(s, "a") == 2
        assert rollback_import(s, "missing") == 0

    assert count_transactions(db_url) == 1
    assert count_transactions(db_url, import_id="b") == 1


def test_catalog_reads(db_url: str):
    seed_catalog(
        database_url=db_url,
        categories=[{"id": "tilak", "name": "Tilak", "cost_price": 40}],
        products=[
            {"sku": "6L-BCRX-3KUF", "category_id": "tilak"},
            {"sku": "KK-X2KQ-2DRV", "category_id": "tilak", "custom_cost_price": 72},
        ],
    )

    with session_scope(database_url=db_url) as s:
        categories = get_categories(s)
        products = {p.sku: p for p in get_products(s)}

    assert [(c.category_id, c.cost_price) for c in categories] == [("tilak", 40.0)]
    assert products["6L-BCRX-3KUF"].custom_cost_price is None
    assert products["KK-X2KQ-2DRV"].custom_cost_price == pytest.approx(72.0)


def test_migrate_category_cost_averages_and_clears_custom_prices(db_url: str):
    seed_catalog(
        database_url=db_url,
        categories=[{"id": "bhojpatra", "name": "Bhojpatra"}],
        products=[
            {"sku": "VO-DG2M-QSM8", "category_id": "bhojpatra", "custom_cost_price": 20},
            {"sku": "IT-03N3-4B25", "category_id": "bhojpatra", "custom_cost_price": 30},
            {"sku": "CM-CRGW-X5BM", "category_id": "bhojpatra"},
        ],
    )

    with session_scope(database_url=db_url) as s:
        price = migrate_product_cost_prices(s, "bhojpatra")

    assert price == pytest.approx(25.0)
    with session_scope(database_url=db_url) as s:
        [category] = get_categories(s)
        inheriting = products_inheriting_cost(s, "bhojpatra")
    assert category.cost_price == pytest.approx(25.0)
    assert [p.sku for p in inheriting] == ["CM-CRGW-X5BM", "IT-03N3-4B25", "VO-DG2M-QSM8"]


def test_migrate_category_cost_without_custom_prices_is_a_no_op(db_url: str):
    seed_catalog(
        database_url=db_url,
        categories=[{"id": "flags", "name": "Flags", "cost_price": 35}],
        products=[{"sku": "SSHF001001", "category_id": "flags"}],
    )

    with session_scope(database_url=db_url) as s:
        assert migrate_product_cost_prices(s, "flags") is None
        [category] = get_categories(s)

    assert category.cost_price == pytest.approx(35.0)


def test_migrate_unknown_category_raises(db_url: str):
    with session_scope(database_url=db_url) as s, pytest.raises(LookupError):
        migrate_product_cost_prices(s, "nope")


def test_reseeding_catalog_updates_rows(db_url: str):
    seed_catalog(database_url=db_url, products=[{"sku": "A", "custom_cost_price": 1}])
    seed_catalog(database_url=db_url, products=[{"sku": "A", "custom_cost_price": 2}])

    with session_scope(database_url=db_url) as s:
        [product] = get_products(s)

    assert product.custom_cost_price == pytest.approx(2.0)
