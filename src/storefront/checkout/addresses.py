"""Checkout address inputs and the pickup-point payload.

Authenticated customers point at an address-book entry
(``StoredAddressRef``); guests submit the address itself
(``InlineAddress``). Pickup payloads are parsed with strict pydantic models
that reject unknown keys and out-of-range values.
"""

from dataclasses import dataclass, fields, replace

from pydantic import BaseModel, ConfigDict, Field


@dataclass(frozen=True)
class StoredAddressRef:
    address_id: str


@dataclass(frozen=True)
class InlineAddress:
    address_line_1: str
    city: str
    country_id: str
    first_name: str | None = None
    last_name: str | None = None
    company_name: str | None = None
    fiscal_code: str | None = None
    reg_number: str | None = None
    phone: str | None = None
    email: str | None = None
    address_line_2: str | None = None
    county_name: str | None = None
    county_code: str | None = None
    zip_code: str | None = None

    @classmethod
    def from_mapping(cls, data: dict) -> "InlineAddress":
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})

    def with_email(self, email: str | None) -> "InlineAddress":
        """Fill in the contact email when the address does not carry one."""
        if self.email or not email:
            return self
        return replace(self, email=email)


AddressInput = StoredAddressRef | InlineAddress


class LockerDetails(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True)

    address: str | None = Field(default=None, max_length=500)
    city: str | None = Field(default=None, max_length=255)
    county_name: str | None = Field(default=None, max_length=255)
    county_code: str | None = Field(default=None, max_length=10)
    zip_code: str | None = Field(default=None, max_length=20)
    country_id: str | None = Field(default=None, max_length=64)
    lat: float | None = Field(default=None, ge=-90, le=90)
    long: float | None = Field(default=None, ge=-180, le=180)


class CourierData(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True)

    point_id: str | None = Field(default=None, max_length=255)
    point_name: str | None = Field(default=None, max_length=255)
    provider: str | None = Field(default=None, max_length=255)
    locker_details: LockerDetails | None = None


class PickupContact(BaseModel):
    """Who collects the parcel, and in which country the locker sits."""

    model_config = ConfigDict(extra="forbid", strict=True)

    first_name: str | None = Field(default=None, max_length=100)
    last_name: str | None = Field(default=None, max_length=100)
    phone: str | None = Field(default=None, max_length=30)
    email: str | None = Field(default=None, max_length=255)
    country_id: str | None = Field(default=None, max_length=64)


class PickupPayload(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True)

    courier_data: CourierData
    shipping_address: PickupContact | None = None

    @property
    def country_id(self) -> str | None:
        """Shipping country: the contact's country, else the locker's."""
        if self.shipping_address is not None and self.shipping_address.country_id:
            return self.shipping_address.country_id
        locker = self.courier_data.locker_details
        return locker.country_id if locker is not None else None


def describe_pickup_errors(exc) -> str:
    """Flatten a pydantic ValidationError into ``path: message`` items."""
    parts = []
    for error in exc.errors():
        path = ".".join(str(p) for p in error["loc"])
        parts.append(f"{path}: {error['msg']}" if path else error["msg"])
    return ", ".join(parts)
