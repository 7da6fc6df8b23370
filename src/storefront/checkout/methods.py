"""Shipping and payment methods offered at checkout."""

from enum import Enum

from protean.fields import Boolean, Float, Integer, String

from storefront.domain import storefront


class ShippingMethodType(Enum):
    COURIER = "courier"
    PICKUP = "pickup"


@storefront.aggregate
class ShippingMethod:
    name = String(required=True, max_length=255)
    code = String(max_length=50)
    method_type = String(choices=ShippingMethodType, default=ShippingMethodType.COURIER.value)
    # Cost in RON, VAT included
    cost = Float(default=0.0, min_value=0.0)
    estimated_days = Integer()

    @property
    def is_pickup(self) -> bool:
        return self.method_type == ShippingMethodType.PICKUP.value


@storefront.aggregate
class PaymentMethod:
    name = String(required=True, max_length=255)
    code = String(required=True, max_length=50)
    is_active = Boolean(default=True)
