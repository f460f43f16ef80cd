"""
Static registry of the products this service tracks.

The registry decides which products appear in health, listing and legacy
verify results. It does not gate webhooks: pings for products missing from
the registry are still recorded.
"""

import logging
from typing import Iterator, Optional

from subscribers.config import Settings
from subscribers.models import Product

logger = logging.getLogger("product_registry")


DEFAULT_PRODUCTS: tuple[Product, ...] = (
    Product(key="store-screenshot-mcp", id="jgbll", name="Store Screenshot MCP"),
    Product(key="cemyz", id="cemyz", name="Store Automation MCP"),
)


class ProductRegistry:
    """
    Immutable, ordered mapping of product key to Product.

    Iteration order is registration order; the legacy verify endpoint
    relies on it to pick the first matching product.
    """

    def __init__(self, products: tuple[Product, ...] = DEFAULT_PRODUCTS):
        self._products: dict[str, Product] = {p.key: p for p in products}

    def __contains__(self, key: object) -> bool:
        return key in self._products

    def __iter__(self) -> Iterator[Product]:
        return iter(self._products.values())

    def __len__(self) -> int:
        return len(self._products)

    def get(self, key: str) -> Optional[Product]:
        return self._products.get(key)

    def keys(self) -> list[str]:
        return list(self._products)

    def as_dict(self) -> dict[str, Product]:
        return dict(self._products)


def build_registry(settings: Settings) -> ProductRegistry:
    """
    Registry for the configured mode.

    In single-product mode the registry holds just the configured product,
    reusing its display metadata when it is one of the default products.
    """
    if not settings.is_single_product:
        return ProductRegistry()

    key = settings.single_product
    product = ProductRegistry().get(key)
    if product is None:
        logger.warning(f"Single product '{key}' is not a known product")
        product = Product(key=key, name=key)
    return ProductRegistry((product,))
