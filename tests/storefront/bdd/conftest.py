"""Shared BDD fixtures for the storefront."""

import pytest

from storefront.checkout.addresses import InlineAddress, StoredAddressRef
from storefront.checkout.validator import CheckoutRequest
from storefront.customer.customer import AddressType


@pytest.fixture()
def error():
    """Container for captured validation errors."""
    return {"exc": None}


@pytest.fixture()
def checkout_request(shop):
    """Build a checkout request for a shopper prepared by a Given step."""

    def _build(shopper, shipping_method, payment_method):
        customer = shopper["customer"]
        values = {
            "shipping_method_id": shipping_method.id,
            "payment_method_id": payment_method.id if payment_method is not None else None,
        }
        if customer is not None:
            billing = customer.addresses_of_type(AddressType.HEADQUARTERS, AddressType.BILLING)[0]
            shipping = customer.addresses_of_type(AddressType.SHIPPING)[0]
            values.update(
                customer_id=customer.id,
                billing_address=StoredAddressRef(billing.id),
                shipping_address=StoredAddressRef(shipping.id),
            )
        else:
            values.update(
                session=shopper["session"],
                guest_email="guest@example.ro",
                shipping_address=InlineAddress(
                    address_line_1="Str. Florilor 2",
                    city="Sibiu",
                    country_id=str(shop["country"].id),
                    first_name="Maria",
                    last_name="Guest",
                ),
                use_shipping_as_billing=True,
            )
        return CheckoutRequest(**values)

    return _build
