"""Currency aggregate. ``value`` is how many RON one unit of the currency costs."""

from decimal import Decimal
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Float, String

from storefront.domain import storefront
from storefront.shared.money import to_decimal

BASE_CURRENCY = "RON"


class CurrencyStatus(Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


@storefront.aggregate
class Currency:
    code = String(required=True, max_length=3)
    name = String(max_length=100)
    value = Float(required=True, default=1.0)
    symbol_left = String(max_length=10)
    symbol_right = String(max_length=10)
    status = String(choices=CurrencyStatus, default=CurrencyStatus.ACTIVE.value)

    @invariant.post
    def base_currency_rate_is_one(self):
        if self.code == BASE_CURRENCY and self.value != 1.0:
            raise ValidationError({"value": ["RON exchange rate must be 1"]})

    @property
    def is_base(self) -> bool:
        return self.code == BASE_CURRENCY

    @property
    def rate(self) -> Decimal:
        return to_decimal(self.value)
