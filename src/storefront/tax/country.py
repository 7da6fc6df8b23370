"""Country aggregate with its VAT rate rows."""

from decimal import Decimal
from enum import Enum

from protean.fields import Float, HasMany, String

from storefront.domain import storefront
from storefront.shared.money import to_decimal


class CountryStatus(Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


@storefront.entity(part_of="Country")
class VatRate:
    name = String(max_length=100)
    rate = Float(required=True, min_value=0.0)


@storefront.aggregate
class Country:
    iso_code_2 = String(required=True, max_length=2)
    name = String(required=True, max_length=255)
    status = String(choices=CountryStatus, default=CountryStatus.ACTIVE.value)
    vat_rates = HasMany(VatRate)

    @property
    def is_active(self) -> bool:
        return self.status == CountryStatus.ACTIVE.value

    def highest_vat_rate(self) -> Decimal | None:
        # Reduced-rate categories are ignored; the standard (highest) rate wins.
        if not self.vat_rates:
            return None
        return max(to_decimal(r.rate) for r in self.vat_rates)
