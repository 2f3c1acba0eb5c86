"""Cost-price resolution per SKU.

Precedence, first hit wins:

1. ``product``: the product record's own ``custom_cost_price``;
2. ``category``: the cost price of the product's category;
3. ``default``: the static price table (bundled defaults, completed by any
   uploaded price sheet for SKUs they do not price);
4. ``default``: ``0.0``.

A :class:`CostPriceResolver` is built per analysis run. It memoizes one
resolution per SKU so :meth:`CostPriceResolver.source_counts` reports how
many distinct SKUs each tier supplied.
"""

from __future__ import annotations

import json
from collections import Counter
from collections.abc import Iterable, Mapping
from functools import cache
from importlib import resources

from .logging_setup import get_logger
from .models import (
    CategoryCostPrice,
    CostPriceResolution,
    CostPriceSources,
    ProductPrice,
    ProductRecord,
)

logger = get_logger("marketplace_recon.cost_price")

_DEFAULT_PRICES_RESOURCE = "default_prices.v1.json"


@cache
def _bundled_default_prices() -> tuple[ProductPrice, ...]:
    text = (
        resources.files("marketplace_recon.ingest")
        .joinpath("seeds", _DEFAULT_PRICES_RESOURCE)
        .read_text(encoding="utf-8")
    )
    data = json.loads(text)
    if not isinstance(data, list):
        raise ValueError("Default price seed must be a JSON list")
    return tuple(
        ProductPrice(
            sku=str(item["sku"]),
            description=item.get("description"),
            cost_price=float(item.get("cost_price") or 0),
            base_price=float(item.get("base_price") or 0),
        )
        for item in data
    )


def load_default_prices() -> dict[str, float]:
    """Return the bundled SKU -> cost price table (later entries win)."""

    table: dict[str, float] = {}
    for price in _bundled_default_prices():
        if price.sku in table:
            logger.debug("Default price for %s overridden by a later seed entry", price.sku)
        table[price.sku] = price.cost_price
    return table


def merge_price_lists(
    existing: Mapping[str, ProductPrice], uploaded: Iterable[ProductPrice]
) -> dict[str, ProductPrice]:
    """Merge an uploaded price sheet into ``existing``.

    Prices already known for a SKU are kept; the sheet only contributes SKUs
    that were missing or had no cost price. Entries without a cost price
    never replace anything.
    """

    merged = dict(existing)
    for price in uploaded:
        current = merged.get(price.sku)
        if current is None or (current.cost_price is None and price.cost_price is not None):
            merged[price.sku] = price
    return merged


def average_custom_cost(products: Iterable[ProductRecord]) -> float | None:
    """Average ``custom_cost_price`` over products that carry one."""

    values = [p.custom_cost_price for p in products if p.custom_cost_price is not None]
    if not values:
        return None
    return sum(values) / len(values)


class CostPriceResolver:
    """Resolve a cost price per SKU from products, categories and a price table."""

    def __init__(
        self,
        products: Iterable[ProductRecord] = (),
        categories: Iterable[CategoryCostPrice] = (),
        default_prices: Mapping[str, float] | None = None,
    ) -> None:
        self._products = {p.sku: p for p in products}
        self._category_prices = {
            c.category_id: c.cost_price for c in categories if c.cost_price is not None
        }
        self._default_prices = dict(
            load_default_prices() if default_prices is None else default_prices
        )
        self._resolved: dict[str, CostPriceResolution] = {}

    @classmethod
    def with_price_list(
        cls,
        products: Iterable[ProductRecord] = (),
        categories: Iterable[CategoryCostPrice] = (),
        prices: Iterable[ProductPrice] = (),
        default_prices: Mapping[str, float] | None = None,
    ) -> CostPriceResolver:
        """Build a resolver whose static table is completed with ``prices``.

        See :func:`merge_price_lists`: the static table wins for SKUs it
        already prices.
        """

        table = load_default_prices() if default_prices is None else default_prices
        merged = merge_price_lists(
            {sku: ProductPrice(sku=sku, cost_price=cost) for sku, cost in table.items()},
            prices,
        )
        return cls(
            products,
            categories,
            {sku: p.cost_price for sku, p in merged.items() if p.cost_price is not None},
        )

    def resolve(self, sku: str) -> CostPriceResolution:
        cached = self._resolved.get(sku)
        if cached is not None:
            return cached
        resolution = self._resolve(sku)
        self._resolved[sku] = resolution
        return resolution

    def _resolve(self, sku: str) -> CostPriceResolution:
        product = self._products.get(sku)
        category_id = product.category_id if product else None

        if product is not None and product.custom_cost_price is not None:
            return CostPriceResolution(sku, product.custom_cost_price, "product", category_id)

        if category_id is not None and category_id in self._category_prices:
            return CostPriceResolution(
                sku, self._category_prices[category_id], "category", category_id
            )

        if sku in self._default_prices:
            return CostPriceResolution(sku, self._default_prices[sku], "default", category_id)

        return CostPriceResolution(sku, 0.0, "default", category_id)

    def source_counts(self) -> CostPriceSources:
        counts = Counter(r.source for r in self._resolved.values())
        return CostPriceSources(
            product=counts["product"],
            category=counts["category"],
            default=counts["default"],
        )


__all__ = [
    "CostPriceResolver",
    "load_default_prices",
    "merge_price_lists",
    "average_custom_cost",
]
