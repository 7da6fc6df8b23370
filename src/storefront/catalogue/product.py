"""Product aggregate with segment-specific quantity price tiers.

Only the fields pricing, stock and order snapshots depend on live here.
Prices are RON excluding VAT; every other figure is derived.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String

from storefront.catalogue.events import StockDecremented
from storefront.domain import storefront


class ProductStatus(Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class ProductType(Enum):
    SIMPLE = "simple"
    CONFIGURABLE = "configurable"
    VARIANT = "variant"


@storefront.entity(part_of="Product")
class PriceTier:
    """Quantity-break price for one customer segment.

    ``max_quantity`` is inclusive; ``None`` means unbounded.
    """

    segment_id = Identifier(required=True)
    min_quantity = Integer(required=True, min_value=1)
    max_quantity = Integer(min_value=1)
    price_ron = Float(required=True, min_value=0.0)

    def covers(self, quantity: int) -> bool:
        if self.min_quantity > quantity:
            return False
        return self.max_quantity is None or self.max_quantity >= quantity

    @property
    def label(self) -> str:
        if self.max_quantity is None:
            return f"{self.min_quantity}+"
        return f"{self.min_quantity}-{self.max_quantity}"


@storefront.aggregate
class Product:
    sku = String(required=True, max_length=100)
    ean = String(max_length=20)
    name = String(required=True, max_length=255)
    price_ron = Float(required=True, min_value=0.0)
    purchase_price_ron = Float(default=0.0, min_value=0.0)
    stock_quantity = Integer(default=0)
    status = String(choices=ProductStatus, default=ProductStatus.ACTIVE.value)
    product_type = String(choices=ProductType, default=ProductType.SIMPLE.value)
    parent_id = Identifier()
    family_id = Identifier()
    deleted_at = DateTime()
    tiers = HasMany(PriceTier)

    @invariant.post
    def tiers_must_be_unique_per_segment_and_minimum(self):
        seen = set()
        for tier in self.tiers or []:
            key = (str(tier.segment_id), tier.min_quantity)
            if key in seen:
                raise ValidationError(
                    {"tiers": [f"Duplicate tier for segment {tier.segment_id} starting at {tier.min_quantity}"]}
                )
            seen.add(key)

    @invariant.post
    def tier_bounds_must_be_ordered(self):
        for tier in self.tiers or []:
            if tier.max_quantity is not None and tier.max_quantity < tier.min_quantity:
                raise ValidationError({"tiers": ["Tier max quantity cannot be lower than its min quantity"]})

    @property
    def is_active(self) -> bool:
        return self.status == ProductStatus.ACTIVE.value and self.deleted_at is None

    @property
    def is_configurable(self) -> bool:
        return self.product_type == ProductType.CONFIGURABLE.value

    def tiers_for(self, segment_id) -> list[PriceTier]:
        """Tiers of one segment, ordered by minimum quantity."""
        if segment_id is None:
            return []
        return sorted(
            (t for t in self.tiers or [] if str(t.segment_id) == str(segment_id)),
            key=lambda t: t.min_quantity,
        )

    def select_tier(self, quantity: int, segment_id) -> PriceTier | None:
        """Largest-minimum tier of the segment whose range contains ``quantity``."""
        matching = [t for t in self.tiers_for(segment_id) if t.covers(quantity)]
        if not matching:
            return None
        return max(matching, key=lambda t: t.min_quantity)

    def define_tier(self, segment_id, min_quantity, price_ron, max_quantity=None):
        self.add_tiers(
            PriceTier(
                segment_id=segment_id,
                min_quantity=min_quantity,
                max_quantity=max_quantity,
                price_ron=price_ron,
            )
        )

    def decrement_stock(self, quantity: int, order_id=None):
        """Remove ``quantity`` units. Stock may go negative (backorders)."""
        previous = self.stock_quantity or 0
        self.stock_quantity = previous - quantity
        self.raise_(
            StockDecremented(
                product_id=str(self.id),
                order_id=str(order_id) if order_id else None,
                quantity=quantity,
                previous_stock=previous,
                new_stock=self.stock_quantity,
                decremented_at=datetime.now(UTC),
            )
        )
