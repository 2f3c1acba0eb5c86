from __future__ import annotations

import logging

import pytest

from marketplace_recon.aggregate import aggregate
from marketplace_recon.api import analyze
from marketplace_recon.cost_price import CostPriceResolver
from marketplace_recon.models import CategoryCostPrice, Platform, ProductRecord
from tests.helpers.transactions import make_tx


def test_two_sales_with_costs():
    txs = [
        make_tx(transaction_id="1", sku="A", quantity=1, total=500.0),
        make_tx(transaction_id="2", sku="B", quantity=1, total=300.0),
    ]
    resolver = CostPriceResolver(default_prices={"A": 100.0, "B": 50.0})

    s = aggregate(txs, resolver)

    assert s.total_sales == pytest.approx(800.0)
    assert s.total_cost == pytest.approx(150.0)
    assert s.total_expenses == pytest.approx(0.0)
    assert s.profit_before_cost == pytest.approx(800.0)
    assert s.total_profit == pytest.approx(650.0)
    assert s.total_units == 2
    assert s.sales_by_product["A"].profit == pytest.approx(400.0)
    assert s.sales_by_product["B"].profit_per_unit == pytest.approx(250.0)


def test_amazon_sale_fees_and_expenses_by_category():
    txs = [
        make_tx(
            transaction_id="1",
            sku="A",
            quantity=2,
            total=475.0,
            marketplace_fee=25.0,
            other_fees=50.0,
        ),
        make_tx(transaction_id="1", sku="A", type="refund", total=-120.0),
        make_tx(transaction_id="9", sku="A", type="service fee", total=-30.0),
        make_tx(transaction_id="7", sku="Z", type="shipped", total=999.0),
    ]

    s = aggregate(txs, CostPriceResolver(default_prices={}))

    assert s.total_sales == pytest.approx(475.0)
    assert s.total_expenses == pytest.approx(75.0 + 120.0 + 30.0)
    assert s.expenses_by_category == {"refund": 120.0, "service fee": 30.0}
    assert set(s.sales_by_product) == {"A"}
    assert s.sales_by_product["A"].units == 2


def test_flipkart_prefers_projected_settlement_for_revenue():
    txs = [
        make_tx(
            platform=Platform.FLIPKART,
            transaction_id="OD1",
            type="delivered",
            quantity=2,
            total=180.0,
            acc_net_sales=170.0,
            marketplace_fee=12.0,
            other_fees=20.0,
        ),
        make_tx(
            platform=Platform.FLIPKART,
            transaction_id="OD2",
            type="shipped",
            quantity=1,
            total=90.0,
        ),
        make_tx(
            platform=Platform.FLIPKART,
            transaction_id="OD3",
            type="returned",
            total=-40.0,
        ),
    ]

    s = aggregate(txs, CostPriceResolver(default_prices={}))

    assert s.total_sales == pytest.approx(170.0 + 90.0)
    # Flipkart sales contribute other_fees only.
    assert s.total_expenses == pytest.approx(20.0 + 40.0)
    assert s.expenses_by_category == {"flipkart-returned": 40.0}
    assert s.sales_by_product["A"].amount == pytest.approx(270.0)


def test_zero_unit_sku_has_zero_profit_per_unit():
    txs = [make_tx(sku="A", quantity=0, total=10.0)]

    s = aggregate(txs, CostPriceResolver(default_prices={"A": 5.0}))

    assert s.sales_by_product["A"].profit_per_unit == 0.0
    assert s.sales_by_product["A"].profit == pytest.approx(10.0)


def test_cost_price_sources_reported():
    txs = [
        make_tx(transaction_id="1", sku="A", total=100.0),
        make_tx(transaction_id="2", sku="B", total=100.0),
        make_tx(transaction_id="3", sku="C", total=100.0),
    ]
    resolver = CostPriceResolver(
        [ProductRecord(sku="A", custom_cost_price=10.0), ProductRecord(sku="B", category_id="c")],
        [CategoryCostPrice(category_id="c", cost_price=20.0)],
        default_prices={},
    )

    s = aggregate(txs, resolver)

    assert s.cost_price_sources.model_dump() == {"product": 1, "category": 1, "default": 1}
    assert s.sales_by_product["B"].cost_price_source == "category"
    assert s.total_cost == pytest.approx(30.0)


class _Collect(logging.Handler):
    def __init__(self) -> None:
        super().__init__(logging.DEBUG)
        self.messages: list[str] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.messages.append(record.getMessage())


def test_chunked_fold_matches_and_logs_progress():
    txs = [make_tx(transaction_id=str(i), total=1.0) for i in range(7)]
    logger = logging.getLogger("marketplace_recon.aggregate")
    handler = _Collect()
    previous = logger.level
    logger.setLevel(logging.DEBUG)
    logger.addHandler(handler)
    try:
        s = aggregate(txs, CostPriceResolver(default_prices={}), chunk_size=3)
    finally:
        logger.removeHandler(handler)
        logger.setLevel(previous)

    assert s.total_sales == pytest.approx(7.0)
    progress = [m for m in handler.messages if m.startswith("Aggregated")]
    assert progress == [
        "Aggregated 3 transactions",
        "Aggregated 6 transactions",
        "Aggregated 7 transactions",
    ]


def test_empty_input_gives_zero_summary():
    s = aggregate([], CostPriceResolver(default_prices={}))

    assert s.total_sales == 0.0
    assert s.total_profit == 0.0
    assert s.sales_by_product == {}


def test_summary_serializes_with_camel_case_aliases():
    s = analyze([make_tx(total=10.0)], default_prices={"A": 4.0})

    dumped = s.model_dump(by_alias=True)

    assert dumped["totalSales"] == pytest.approx(10.0)
    assert dumped["salesByProduct"]["A"]["profitPerUnit"] == pytest.approx(6.0)
    assert dumped["costPriceSources"] == {"product": 0, "category": 0, "default": 1}


def test_analyze_filters_by_platform():
    txs = [
        make_tx(transaction_id="1", total=100.0),
        make_tx(platform=Platform.FLIPKART, transaction_id="2", type="delivered", total=50.0),
    ]

    assert analyze(txs, default_prices={}, platform=Platform.FLIPKART).total_sales == 50.0
    assert analyze(txs, default_prices={}).total_sales == 150.0


def test_sale_without_sku_counts_in_totals_but_not_per_product():
    txs = [
        make_tx(
            platform=Platform.FLIPKART,
            transaction_id="OD1",
            sku="",
            type="delivered",
            quantity=1,
            total=90.0,
            other_fees=10.0,
        ),
        make_tx(
            platform=Platform.FLIPKART, transaction_id="OD2", sku="A", type="delivered", total=50.0
        ),
    ]

    s = aggregate(txs, CostPriceResolver(default_prices={"A": 5.0}))

    assert s.total_sales == pytest.approx(140.0)
    assert s.total_expenses == pytest.approx(10.0)
    assert s.total_units == 2
    assert set(s.sales_by_product) == {"A"}
    assert s.cost_price_sources.model_dump() == {"product": 0, "category": 0, "default": 1}
