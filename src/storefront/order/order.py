"""Order aggregate (CQRS) with line, address, shipping and history snapshots.

An order is written once by ``OrderCreator``. Afterwards only its status and
payment flags change, and every change appends an ``OrderHistoryEntry``.
Snapshots never read live catalogue or address-book data again.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, HasMany, HasOne, Identifier, Integer, String, Text

from storefront.domain import storefront
from storefront.order.events import OrderMarkedPaid, OrderMarkedUnpaid, OrderStatusChanged


class OrderStatus(Enum):
    PENDING = "pending"
    AWAITING_PAYMENT = "awaiting_payment"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").title()


class OrderAddressType(Enum):
    BILLING = "billing"
    SHIPPING = "shipping"


_OPEN = {
    OrderStatus.PENDING,
    OrderStatus.AWAITING_PAYMENT,
    OrderStatus.CONFIRMED,
    OrderStatus.PROCESSING,
    OrderStatus.SHIPPED,
}

# Statuses reachable from each status
_ALLOWED_TRANSITIONS = {
    **{status: set(OrderStatus) - {status} for status in _OPEN},
    OrderStatus.DELIVERED: {OrderStatus.REFUNDED},
    OrderStatus.CANCELLED: set(),
    OrderStatus.REFUNDED: set(),
}


@storefront.entity(part_of="Order")
class OrderLine:
    product_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    sku = String(max_length=100)
    ean = String(max_length=20)
    quantity = Integer(required=True, min_value=1)
    vat_percent = Float(default=0.0)
    exchange_rate = Float(required=True)
    unit_price_currency_excl_vat = Float(required=True)
    unit_price_currency = Float(required=True)
    unit_price_ron_excl_vat = Float(required=True)
    unit_price_ron = Float(required=True)
    unit_purchase_price_ron = Float(default=0.0)
    total_currency_excl_vat = Float(required=True)
    total_currency_incl_vat = Float(required=True)
    total_ron_excl_vat = Float(required=True)
    total_ron_incl_vat = Float(required=True)
    profit_ron = Float(default=0.0)


@storefront.entity(part_of="Order")
class OrderAddress:
    address_type = String(choices=OrderAddressType, required=True)
    company_name = String(max_length=255)
    fiscal_code = String(max_length=50)
    reg_number = String(max_length=50)
    first_name = String(max_length=100)
    last_name = String(max_length=100)
    phone = String(max_length=30)
    email = String(max_length=255)
    address_line_1 = String(max_length=500)
    address_line_2 = String(max_length=500)
    city = String(max_length=255)
    county_name = String(max_length=255)
    county_code = String(max_length=10)
    country_id = Identifier()
    zip_code = String(max_length=20)


@storefront.entity(part_of="Order")
class OrderShipping:
    shipping_method_id = Identifier(required=True)
    title = String(required=True, max_length=255)
    vat_percent = Float(default=0.0)
    shipping_cost_excl_vat = Float(default=0.0)
    shipping_cost_incl_vat = Float(default=0.0)
    shipping_cost_ron_excl_vat = Float(default=0.0)
    shipping_cost_ron_incl_vat = Float(default=0.0)
    pickup_point_id = String(max_length=255)
    courier_data = Text()  # JSON


@storefront.entity(part_of="Order")
class OrderHistoryEntry:
    action = String(required=True, max_length=100)
    old_value = Text()  # JSON
    new_value = Text()  # JSON
    description = Text()
    user_id = Identifier()
    created_at = DateTime(required=True)


@storefront.aggregate
class Order:
    customer_id = Identifier()  # None for guest checkouts
    number = String(required=True, max_length=50)
    serial = Integer(unique=True)
    currency = String(required=True, max_length=3)
    exchange_rate = Float(required=True, default=1.0)
    vat_rate_applied = Float(default=0.0)
    is_vat_exempt = Boolean(default=False)
    total_excl_vat = Float(default=0.0)
    total_incl_vat = Float(default=0.0)
    total_ron_excl_vat = Float(default=0.0)
    total_ron_incl_vat = Float(default=0.0)
    payment_method_id = Identifier()
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    is_paid = Boolean(default=False)
    paid_at = DateTime()
    placed_at = DateTime()
    lines = HasMany(OrderLine)
    addresses = HasMany(OrderAddress)
    shipping = HasOne(OrderShipping)
    history = HasMany(OrderHistoryEntry)

    def address(self, address_type: OrderAddressType) -> OrderAddress | None:
        return next((a for a in self.addresses or [] if a.address_type == address_type.value), None)

    @property
    def billing_address(self) -> OrderAddress | None:
        return self.address(OrderAddressType.BILLING)

    @property
    def shipping_address(self) -> OrderAddress | None:
        return self.address(OrderAddressType.SHIPPING)

    def log_history(self, action, old_value=None, new_value=None, description=None, user_id=None):
        self.add_history(
            OrderHistoryEntry(
                action=action,
                old_value=json.dumps(old_value) if old_value is not None else None,
                new_value=json.dumps(new_value) if new_value is not None else None,
                description=description,
                user_id=user_id,
                created_at=datetime.now(UTC),
            )
        )

    def change_status(self, new_status: OrderStatus, user_id=None) -> bool:
        """Move to ``new_status``. Returns False when already there."""
        current = OrderStatus(self.status)
        if current == new_status:
            return False
        if new_status not in _ALLOWED_TRANSITIONS[current]:
            raise ValidationError(
                {"status": [f"Cannot change order status from {current.value} to {new_status.value}"]}
            )

        now = datetime.now(UTC)
        self.status = new_status.value
        self.log_history(
            "status_changed",
            current.value,
            new_status.value,
            f"Status changed from {current.label} to {new_status.label}",
            user_id,
        )
        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                previous_status=current.value,
                new_status=new_status.value,
                changed_at=now,
            )
        )
        return True

    def mark_as_paid(self, user_id=None) -> bool:
        if self.is_paid:
            return False
        now = datetime.now(UTC)
        self.is_paid = True
        self.paid_at = now
        self.log_history("payment_received", False, True, "Order marked as paid", user_id)
        self.raise_(OrderMarkedPaid(order_id=str(self.id), paid_at=now))
        return True

    def mark_as_unpaid(self, user_id=None) -> bool:
        if not self.is_paid:
            return False
        self.is_paid = False
        self.paid_at = None
        self.log_history("payment_reversed", True, False, "Order marked as unpaid", user_id)
        self.raise_(OrderMarkedUnpaid(order_id=str(self.id)))
        return True
