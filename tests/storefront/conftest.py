"""Shared fixtures for the storefront test suite.

Seed data mirrors a small Romanian shop: RO (19% / 9%) and BG (20%), a B2C
and a B2B segment, RON and EUR, a courier and a locker shipping method, and
a card, cash-on-delivery and retired payment method.
"""

import itertools

import pytest
from protean.integrations.pytest import DomainFixture
from protean.utils.globals import current_domain

from storefront.catalogue.product import Product, ProductType
from storefront.checkout.methods import PaymentMethod, ShippingMethod, ShippingMethodType
from storefront.config import get_settings
from storefront.currency.currency import Currency
from storefront.customer.customer import AddressType, Customer, CustomerSegment, CustomerType
from storefront.infra.cache import reset_cache
from storefront.infra.locks import reset_locks
from storefront.tax.country import Country, VatRate
from storefront.tax.geoip import reset_lookup, set_lookup
from storefront.tax.geoip.fake_adapter import FakeGeoIpLookup


@pytest.fixture(scope="session")
def storefront_bed():
    from storefront.domain import storefront

    bed = DomainFixture(storefront)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(storefront_bed):
    with storefront_bed.domain_context():
        yield

        for _, provider in current_domain.providers.items():
            provider._data_reset()
        current_domain.event_store.store._data_reset()


@pytest.fixture(autouse=True)
def _infrastructure():
    """Fresh cache and locks, and an offline geolocation table per test."""
    get_settings.cache_clear()
    reset_cache()
    reset_locks()
    set_lookup(FakeGeoIpLookup())
    yield
    reset_lookup()
    reset_cache()
    reset_locks()


@pytest.fixture
def geo_lookup():
    lookup = FakeGeoIpLookup()
    set_lookup(lookup)
    return lookup


# ---------------------------------------------------------------------------
# Reference data
# ---------------------------------------------------------------------------
def _add(obj):
    current_domain.repository_for(type(obj)).add(obj)
    return obj


@pytest.fixture
def romania():
    return _add(
        Country(
            iso_code_2="RO",
            name="Romania",
            vat_rates=[VatRate(name="Standard", rate=19.0), VatRate(name="Reduced", rate=9.0)],
        )
    )


@pytest.fixture
def bulgaria():
    return _add(Country(iso_code_2="BG", name="Bulgaria", vat_rates=[VatRate(name="Standard", rate=20.0)]))


@pytest.fixture
def b2c():
    return _add(CustomerSegment(code="B2C", name="Retail"))


@pytest.fixture
def b2b():
    return _add(CustomerSegment(code="B2B", name="Business"))


@pytest.fixture
def ron():
    return _add(Currency(code="RON", name="Romanian Leu", value=1.0, symbol_right=" lei"))


@pytest.fixture
def eur():
    return _add(Currency(code="EUR", name="Euro", value=5.0, symbol_left="€"))


@pytest.fixture
def shop(romania, b2c, b2b, ron, eur):
    """The minimum configuration every pricing and checkout test needs."""
    return {"country": romania, "b2c": b2c, "b2b": b2b, "ron": ron, "eur": eur}


@pytest.fixture
def make_product():
    serials = itertools.count(1)

    def _make(**overrides):
        values = {
            "sku": f"SKU-{next(serials):04d}",
            "name": "Cordless Drill",
            "price_ron": 100.0,
            "purchase_price_ron": 60.0,
            "stock_quantity": 10,
            "product_type": ProductType.SIMPLE.value,
        }
        values.update(overrides)
        return _add(Product(**values))

    return _make


@pytest.fixture
def drill(make_product):
    return make_product(sku="DRILL-1", name="Cordless Drill", ean="5941234567890")


# ---------------------------------------------------------------------------
# Checkout configuration
# ---------------------------------------------------------------------------
@pytest.fixture
def courier():
    return _add(ShippingMethod(name="Courier", code="courier", method_type=ShippingMethodType.COURIER.value, cost=23.8))


@pytest.fixture
def locker():
    return _add(ShippingMethod(name="Easybox", code="easybox", method_type=ShippingMethodType.PICKUP.value, cost=11.9))


@pytest.fixture
def card():
    return _add(PaymentMethod(name="Card", code="card"))


@pytest.fixture
def cash_on_delivery():
    return _add(PaymentMethod(name="Ramburs", code="ramburs"))


@pytest.fixture
def retired_payment():
    return _add(PaymentMethod(name="Cheque", code="cheque", is_active=False))


# ---------------------------------------------------------------------------
# Customers
# ---------------------------------------------------------------------------
@pytest.fixture
def individual(shop):
    customer = Customer(
        email="ana@example.ro",
        first_name="Ana",
        last_name="Popescu",
        phone="0722000111",
        customer_type=CustomerType.INDIVIDUAL.value,
        segment_id=shop["b2c"].id,
    )
    customer.add_address(
        address_type=AddressType.SHIPPING.value,
        is_preferred=True,
        first_name="Ana",
        last_name="Popescu",
        address_line_1="Str. Lipscani 10",
        city="Bucuresti",
        country_id=shop["country"].id,
    )
    customer.add_address(
        address_type=AddressType.BILLING.value,
        first_name="Ana",
        last_name="Popescu",
        address_line_1="Str. Lipscani 10",
        city="Bucuresti",
        country_id=shop["country"].id,
    )
    return _add(customer)


@pytest.fixture
def company(shop):
    customer = Customer(
        email="office@acme.ro",
        first_name="Ion",
        last_name="Ionescu",
        customer_type=CustomerType.COMPANY.value,
        segment_id=shop["b2b"].id,
        company_name="Acme SRL",
        fiscal_code="RO123456",
    )
    customer.add_address(
        address_type=AddressType.HEADQUARTERS.value,
        company_name="Acme SRL",
        address_line_1="Bd. Unirii 1",
        city="Cluj-Napoca",
        country_id=shop["country"].id,
    )
    customer.add_address(
        address_type=AddressType.SHIPPING.value,
        is_preferred=True,
        company_name="Acme SRL",
        address_line_1="Depozit 3",
        city="Cluj-Napoca",
        country_id=shop["country"].id,
    )
    return _add(customer)
