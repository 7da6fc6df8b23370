"""Customer segments and the Customer aggregate with its address book."""

from datetime import datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, HasMany, Identifier, String

from storefront.domain import storefront

B2C_SEGMENT_CODE = "B2C"


class CustomerType(Enum):
    INDIVIDUAL = "individual"
    COMPANY = "company"


class AddressType(Enum):
    BILLING = "billing"
    SHIPPING = "shipping"
    HEADQUARTERS = "headquarters"


@storefront.aggregate
class CustomerSegment:
    """Pricing group. Only the ``B2C`` segment sees VAT; all others are reverse-charge."""

    code: String(required=True, max_length=50, unique=True)
    name: String(required=True, max_length=255)

    @property
    def is_b2c(self) -> bool:
        return self.code == B2C_SEGMENT_CODE

    @property
    def is_reverse_charge(self) -> bool:
        return not self.is_b2c


@storefront.entity(part_of="Customer")
class Address:
    address_type: String(choices=AddressType, default=AddressType.SHIPPING.value)
    is_preferred: Boolean(default=False)
    company_name: String(max_length=255)
    fiscal_code: String(max_length=50)
    reg_number: String(max_length=50)
    first_name: String(max_length=100)
    last_name: String(max_length=100)
    phone: String(max_length=30)
    email: String(max_length=255)
    address_line_1: String(required=True, max_length=500)
    address_line_2: String(max_length=500)
    city: String(required=True, max_length=255)
    county_name: String(max_length=255)
    county_code: String(max_length=10)
    country_id: Identifier(required=True)
    zip_code: String(max_length=20)
    created_at: DateTime(default=datetime.now)


@storefront.aggregate
class Customer:
    email: String(required=True, max_length=255)
    first_name: String(max_length=100)
    last_name: String(max_length=100)
    phone: String(max_length=30)
    customer_type: String(choices=CustomerType, default=CustomerType.INDIVIDUAL.value)
    segment_id: Identifier(required=True)
    company_name: String(max_length=255)
    fiscal_code: String(max_length=50)
    reg_number: String(max_length=50)
    addresses: HasMany(Address)

    @invariant.post
    def at_most_one_preferred_address(self):
        if len([a for a in self.addresses or [] if a.is_preferred]) > 1:
            raise ValidationError({"addresses": ["Only one address can be marked as preferred"]})

    @property
    def is_company(self) -> bool:
        return self.customer_type == CustomerType.COMPANY.value

    def add_address(self, **fields) -> Address:
        """Add an address. Marking it preferred clears the flag on the others."""
        if fields.get("is_preferred"):
            for existing in self.addresses or []:
                if existing.is_preferred:
                    existing.is_preferred = False
        address = Address(**fields)
        self.add_addresses(address)
        return address

    def find_address(self, address_id) -> Address | None:
        return next((a for a in self.addresses or [] if str(a.id) == str(address_id)), None)

    def addresses_of_type(self, *types: AddressType) -> list[Address]:
        wanted = {t.value for t in types}
        return [a for a in self.addresses or [] if a.address_type in wanted]

    def preferred_or_latest_address(self) -> Address | None:
        """The preferred address, else the most recently created one."""
        addresses = list(self.addresses or [])
        if not addresses:
            return None
        preferred = next((a for a in addresses if a.is_preferred), None)
        if preferred is not None:
            return preferred
        return max(addresses, key=lambda a: a.created_at)
