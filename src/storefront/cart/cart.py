"""Cart aggregate (CQRS) for authenticated customers.

Lines are keyed by (product, segment) rather than by product alone: the same
product can sit in the cart twice at two negotiated prices when the segment
context changes. Guest carts live in session state (see ``guest.py``) with
the same keying.
"""

from datetime import UTC, datetime
from enum import Enum
from typing import NamedTuple

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String

from storefront.cart.events import (
    CartConverted,
    CartLineAdded,
    CartLineQuantityChanged,
    CartLineRemoved,
)
from storefront.domain import storefront


class CartStatus(Enum):
    ACTIVE = "Active"
    CONVERTED = "Converted"


class LineKey(NamedTuple):
    product_id: str
    segment_id: str | None

    @classmethod
    def of(cls, product_id, segment_id) -> "LineKey":
        return cls(str(product_id), str(segment_id) if segment_id else None)

    @classmethod
    def parse(cls, text: str) -> "LineKey":
        product_id, _, segment_id = text.partition("_")
        return cls(product_id, segment_id or None)

    def __str__(self) -> str:
        return f"{self.product_id}_{self.segment_id or ''}"


@storefront.entity(part_of="Cart")
class CartLine:
    product_id = Identifier(required=True)
    segment_id = Identifier()
    quantity = Integer(required=True, min_value=1)
    added_at = DateTime()

    @property
    def key(self) -> LineKey:
        return LineKey.of(self.product_id, self.segment_id)


@storefront.aggregate
class Cart:
    customer_id = Identifier(required=True)
    status = String(choices=CartStatus, default=CartStatus.ACTIVE.value)
    lines = HasMany(CartLine)
    total_amount = Float(default=0.0)
    converted_order_id = Identifier()
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def lines_are_unique_per_product_and_segment(self):
        keys = [line.key for line in self.lines or []]
        if len(keys) != len(set(keys)):
            raise ValidationError({"lines": ["A product can appear only once per segment"]})

    @classmethod
    def create(cls, customer_id):
        now = datetime.now(UTC)
        return cls(
            customer_id=customer_id,
            status=CartStatus.ACTIVE.value,
            created_at=now,
            updated_at=now,
        )

    def _ensure_active(self):
        if self.status != CartStatus.ACTIVE.value:
            raise ValidationError({"status": ["Only an active cart can be changed"]})

    def line_for(self, key: LineKey) -> CartLine | None:
        return next((line for line in self.lines or [] if line.key == key), None)

    def add_line(self, product_id, segment_id, quantity: int) -> CartLine:
        """Add ``quantity`` units; an existing line with the same key is topped up."""
        self._ensure_active()
        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})

        key = LineKey.of(product_id, segment_id)
        now = datetime.now(UTC)
        line = self.line_for(key)
        if line is not None:
            previous = line.quantity
            line.quantity = previous + quantity
            self.raise_(
                CartLineQuantityChanged(
                    cart_id=str(self.id),
                    product_id=key.product_id,
                    segment_id=key.segment_id,
                    previous_quantity=previous,
                    new_quantity=line.quantity,
                )
            )
        else:
            line = CartLine(product_id=key.product_id, segment_id=key.segment_id, quantity=quantity, added_at=now)
            self.add_lines(line)
            self.raise_(
                CartLineAdded(
                    cart_id=str(self.id),
                    product_id=key.product_id,
                    segment_id=key.segment_id,
                    quantity=quantity,
                )
            )
        self.updated_at = now
        return line

    def set_quantity(self, key: LineKey, quantity: int) -> None:
        """Set the line quantity; zero or less removes the line."""
        self._ensure_active()
        if quantity <= 0:
            self.remove_line(key)
            return

        line = self.line_for(key)
        if line is None:
            raise ValidationError({"line": ["Line not found in cart"]})

        previous = line.quantity
        line.quantity = quantity
        self.updated_at = datetime.now(UTC)
        self.raise_(
            CartLineQuantityChanged(
                cart_id=str(self.id),
                product_id=key.product_id,
                segment_id=key.segment_id,
                previous_quantity=previous,
                new_quantity=quantity,
            )
        )

    def remove_line(self, key: LineKey) -> None:
        self._ensure_active()
        line = self.line_for(key)
        if line is None:
            raise ValidationError({"line": ["Line not found in cart"]})

        self.remove_lines(line)
        self.updated_at = datetime.now(UTC)
        self.raise_(CartLineRemoved(cart_id=str(self.id), product_id=key.product_id, segment_id=key.segment_id))

    def clear(self) -> None:
        for line in list(self.lines or []):
            self.remove_lines(line)
        self.total_amount = 0.0
        self.updated_at = datetime.now(UTC)

    def record_total(self, amount) -> None:
        self.total_amount = float(amount)

    def mark_converted(self, order_id) -> None:
        """Empty the cart and close it once its order exists."""
        self._ensure_active()
        total = self.total_amount
        self.clear()
        self.status = CartStatus.CONVERTED.value
        self.converted_order_id = order_id
        self.raise_(CartConverted(cart_id=str(self.id), order_id=str(order_id), total_amount=total))
