"""Catalog and per-user state for Locust load test scenarios.

The catalog is written by ``scripts/seed_catalog.py``. Each Locust user
keeps its own ``ShopperState``; nothing is shared between users.
"""

import json
import os
import random
from dataclasses import dataclass, field
from functools import lru_cache

CATALOG_ENV = "LOADTEST_CATALOG"
DEFAULT_CATALOG = "loadtests/catalog.json"


@dataclass(frozen=True)
class Catalog:
    country_id: str
    b2c_segment_id: str
    b2b_segment_id: str
    courier_id: str
    locker_id: str
    card_id: str
    cash_on_delivery_id: str
    customer_id: str
    customer_address_id: str
    product_ids: list[str]
    currencies: list[str] = field(default_factory=lambda: ["RON"])

    def random_product(self) -> str:
        return random.choice(self.product_ids)

    def hot_product(self) -> str:
        """The product every backorder-rush user buys."""
        return self.product_ids[0]


@lru_cache
def load_catalog() -> Catalog:
    path = os.environ.get(CATALOG_ENV, DEFAULT_CATALOG)
    with open(path) as fh:
        return Catalog(**json.load(fh))


@dataclass
class ShopperState:
    """Tracks one simulated shopper's cart and last order."""

    cart_keys: list[str] = field(default_factory=list)
    guest_cart: list[dict] = field(default_factory=list)
    idempotency_key: str | None = None
    order_id: str | None = None
    order_number: str | None = None
