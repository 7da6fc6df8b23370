"""Storefront bounded context: pricing, cart aggregation and checkout.

Resolves VAT-aware prices per customer segment and jurisdiction, keeps guest
and customer carts consistent, and converts validated carts into immutable
orders with stock decrement and duplicate-submission protection.
"""

import structlog
from protean.domain import Domain

storefront = Domain(name="storefront")

logger = structlog.get_logger(__name__)
