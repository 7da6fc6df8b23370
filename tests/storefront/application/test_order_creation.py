import json
import threading
from contextlib import contextmanager
from decimal import Decimal

import pytest
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from storefront.cart.aggregator import CartAggregator, CustomerCartOwner, GuestCartOwner
from storefront.cart.cart import Cart, CartStatus
from storefront.catalogue.product import Product, ProductStatus
from storefront.checkout.addresses import InlineAddress, StoredAddressRef
from storefront.checkout.methods import PaymentMethod
from storefront.checkout.validator import CheckoutRequest, ValidationErrors
from storefront.config import get_settings
from storefront.currency.converter import CurrencyConverter, ExchangeRateProvider
from storefront.currency.currency import Currency
from storefront.customer.customer import AddressType
from storefront.domain import storefront
from storefront.errors import ConfigurationError, MissingShippingCountry, NonPositiveExchangeRate
from storefront.infra.locks import reset_locks
from storefront.infra.locks.memory_adapter import MemoryLocks
from storefront.order.code import OrderCodeCodec
from storefront.order.creation import OrderCreator, initial_status, is_paid_on_placement
from storefront.order.order import Order, OrderStatus
from storefront.order.serial import ORDER_SERIAL_COUNTER, ORDER_SERIAL_LOCK, OrderSerialCounter
from storefront.pricing.resolver import PriceResolver


class OneRate(ExchangeRateProvider):
    def __init__(self, code, rate):
        self.code = code
        self.value = rate

    def rate(self, currency_code):
        if currency_code == "RON":
            return Decimal("1")
        return self.value if currency_code == self.code else None


@pytest.fixture
def creator():
    return OrderCreator()


def _orders():
    return current_domain.repository_for(Order)._dao.query.all().items


def _stock(product):
    return current_domain.repository_for(Product).get(product.id).stock_quantity


def _customer_request(customer, shipping_method, payment_method, **overrides):
    values = {
        "customer_id": customer.id,
        "billing_address": StoredAddressRef(
            customer.addresses_of_type(AddressType.HEADQUARTERS, AddressType.BILLING)[0].id
        ),
        "shipping_address": StoredAddressRef(customer.addresses_of_type(AddressType.SHIPPING)[0].id),
        "shipping_method_id": shipping_method.id,
        "payment_method_id": payment_method.id,
    }
    values.update(overrides)
    return CheckoutRequest(**values)


def _guest_request(country, product, shipping_method, payment_method, quantity=1, **overrides):
    session = {}
    CartAggregator().add_line(GuestCartOwner(session), product.id, quantity)
    address = InlineAddress(
        address_line_1="Str. Florilor 2",
        city="Sibiu",
        country_id=str(country.id),
        first_name="Maria",
        last_name="Guest",
        phone="0733111222",
    )
    values = {
        "session": session,
        "guest_email": "maria@example.ro",
        "billing_address": address,
        "shipping_address": address,
        "shipping_method_id": shipping_method.id,
        "payment_method_id": payment_method.id,
    }
    values.update(overrides)
    return CheckoutRequest(**values)


class TestCustomerOrder:
    @pytest.fixture
    def order(self, creator, individual, drill, courier, card):
        CartAggregator().add_line(CustomerCartOwner(individual.id), drill.id, 2)
        return creator.create_from_cart(_customer_request(individual, courier, card))

    def test_order_is_persisted_with_a_permanent_code(self, order):
        stored = current_domain.repository_for(Order).get(order.id)

        assert stored.serial == 1
        assert not stored.number.startswith("TEMP-")
        assert OrderCodeCodec(get_settings().order_code_salt).decode(stored.number) == stored.serial

    def test_totals_are_recomputed_server_side(self, order):
        assert order.currency == "RON"
        assert order.exchange_rate == 1.0
        assert order.total_excl_vat == 200.0
        assert order.total_incl_vat == 238.0
        assert order.total_ron_excl_vat == 200.0
        assert order.total_ron_incl_vat == 238.0
        assert order.vat_rate_applied == 19.0
        assert order.is_vat_exempt is False

    def test_line_snapshot(self, order, drill):
        line = current_domain.repository_for(Order).get(order.id).lines[0]

        assert line.product_id == str(drill.id)
        assert line.name == "Cordless Drill"
        assert line.sku == "DRILL-1"
        assert line.ean == "5941234567890"
        assert line.quantity == 2
        assert line.vat_percent == 19.0
        assert line.unit_price_ron == 119.0
        assert line.unit_price_ron_excl_vat == 100.0
        assert line.total_ron_incl_vat == 238.0
        assert line.unit_purchase_price_ron == 60.0
        assert line.profit_ron == 80.0

    def test_address_snapshots(self, order, individual):
        stored = current_domain.repository_for(Order).get(order.id)

        assert stored.billing_address.first_name == "Ana"
        assert stored.shipping_address.address_line_1 == "Str. Lipscani 10"
        assert stored.shipping_address.country_id == str(
            individual.addresses_of_type(AddressType.SHIPPING)[0].country_id
        )

    def test_shipping_snapshot(self, order):
        shipping = current_domain.repository_for(Order).get(order.id).shipping

        assert shipping.title == "Courier"
        assert shipping.vat_percent == 19.0
        assert shipping.shipping_cost_incl_vat == 23.8
        assert shipping.shipping_cost_excl_vat == 20.0
        assert shipping.shipping_cost_ron_excl_vat == 20.0
        assert shipping.pickup_point_id is None

    def test_card_payment_waits_for_gateway_and_is_flagged_paid(self, order):
        assert order.status == OrderStatus.AWAITING_PAYMENT.value
        assert order.is_paid is True
        assert order.paid_at is not None

    def test_creation_history(self, order, individual):
        entry = current_domain.repository_for(Order).get(order.id).history[0]

        assert entry.action == "order_created"
        assert entry.description == "Order created with status: Awaiting Payment"
        assert entry.user_id == str(individual.id)
        assert json.loads(entry.new_value) == {
            "order_number": order.number,
            "status": "Awaiting Payment",
            "total_ron_incl_vat": 238.0,
            "is_guest": False,
        }

    def test_stock_is_decremented(self, order, drill):
        assert _stock(drill) == 8

    def test_cart_is_converted(self, order, individual):
        carts = current_domain.repository_for(Cart)
        assert carts.find_active_for_customer(individual.id) is None

        converted = [c for c in carts._dao.query.all().items if str(c.customer_id) == str(individual.id)]
        assert converted[0].status == CartStatus.CONVERTED.value
        assert converted[0].converted_order_id == str(order.id)
        assert not converted[0].lines


class TestPaymentDrivenStatus:
    @pytest.mark.parametrize(
        ("code", "status", "paid"),
        [
            ("card", OrderStatus.AWAITING_PAYMENT, True),
            ("online", OrderStatus.AWAITING_PAYMENT, True),
            ("ramburs", OrderStatus.CONFIRMED, False),
            ("cash_on_delivery", OrderStatus.CONFIRMED, False),
            ("paypal", OrderStatus.PENDING, True),
            ("bank_transfer", OrderStatus.PENDING, False),
        ],
    )
    def test_rules(self, code, status, paid):
        method = PaymentMethod(name=code, code=code)
        assert initial_status(method) == status
        assert is_paid_on_placement(method) is paid

    def test_cash_on_delivery_order(self, creator, individual, drill, courier, cash_on_delivery):
        CartAggregator().add_line(CustomerCartOwner(individual.id), drill.id, 1)
        order = creator.create_from_cart(_customer_request(individual, courier, cash_on_delivery))

        assert order.status == OrderStatus.CONFIRMED.value
        assert order.is_paid is False
        assert order.paid_at is None


class TestGuestOrder:
    def test_guest_checkout(self, creator, shop, drill, courier, card):
        request = _guest_request(shop["country"], drill, courier, card, quantity=3)
        request.session["pickup_data"] = {"stale": True}

        order = creator.create_from_cart(request)

        assert order.customer_id is None
        assert order.total_incl_vat == 357.0
        assert "cart" not in request.session
        assert "pickup_data" not in request.session

        stored = current_domain.repository_for(Order).get(order.id)
        assert stored.billing_address.email == "maria@example.ro"
        entry = stored.history[0]
        assert entry.description == "Order created with status: Awaiting Payment (Guest)"
        assert entry.user_id is None
        assert json.loads(entry.new_value)["is_guest"] is True


class TestReverseCharge:
    def test_b2b_order(self, creator, company, drill, courier, card):
        CartAggregator().add_line(CustomerCartOwner(company.id), drill.id, 2)
        order = creator.create_from_cart(_customer_request(company, courier, card))

        assert order.is_vat_exempt is True
        assert order.total_incl_vat == order.total_excl_vat == 200.0
        assert order.vat_rate_applied == 0.0

        shipping = current_domain.repository_for(Order).get(order.id).shipping
        assert shipping.vat_percent == 0.0
        assert shipping.shipping_cost_excl_vat == shipping.shipping_cost_incl_vat == 23.8


class TestForeignCurrency:
    def test_eur_order(self, creator, individual, drill, courier, card):
        CartAggregator().add_line(CustomerCartOwner(individual.id), drill.id, 1)
        order = creator.create_from_cart(_customer_request(individual, courier, card, currency_code="EUR"))

        assert order.currency == "EUR"
        assert order.exchange_rate == 5.0
        assert order.total_incl_vat == 23.8
        assert order.total_ron_incl_vat == 119.0

        stored = current_domain.repository_for(Order).get(order.id)
        assert stored.lines[0].unit_price_currency == 23.8
        assert stored.shipping.shipping_cost_incl_vat == 4.76

    def test_exchange_rate_comes_from_the_rate_provider(self, individual, drill, courier, card):
        prices = PriceResolver(converter=CurrencyConverter(OneRate("EUR", Decimal("4"))))
        CartAggregator().add_line(CustomerCartOwner(individual.id), drill.id, 1)
        order = OrderCreator(price_resolver=prices).create_from_cart(
            _customer_request(individual, courier, card, currency_code="EUR")
        )

        assert order.exchange_rate == 4.0
        assert order.total_incl_vat == 29.75
        assert order.total_ron_incl_vat == 119.0

    def test_unknown_currency(self, creator, individual, drill, courier, card):
        CartAggregator().add_line(CustomerCartOwner(individual.id), drill.id, 1)
        with pytest.raises(ConfigurationError):
            creator.create_from_cart(_customer_request(individual, courier, card, currency_code="GBP"))
        assert _orders() == []

    def test_non_positive_exchange_rate(self, creator, individual, drill, courier, card):
        current_domain.repository_for(Currency).add(Currency(code="XTS", value=0.0))
        CartAggregator().add_line(CustomerCartOwner(individual.id), drill.id, 1)
        with pytest.raises(NonPositiveExchangeRate):
            creator.create_from_cart(_customer_request(individual, courier, card, currency_code="XTS"))
        assert _stock(drill) == 10


class TestPickupOrder:
    def _pickup(self, country_id=None):
        locker_details = {"address": "Str. Lipscani 1", "city": "Bucuresti", "zip_code": "030031"}
        if country_id is not None:
            locker_details["country_id"] = str(country_id)
        return {
            "courier_data": {
                "point_id": "EBX-101",
                "point_name": "easybox Lipscani",
                "provider": "sameday",
                "locker_details": locker_details,
            }
        }

    def test_locker_becomes_the_shipping_address(self, creator, individual, drill, locker, card, shop):
        CartAggregator().add_line(CustomerCartOwner(individual.id), drill.id, 1)
        request = _customer_request(
            individual, locker, card, shipping_address=None, pickup=self._pickup(shop["country"].id)
        )

        order = creator.create_from_cart(request)

        stored = current_domain.repository_for(Order).get(order.id)
        assert stored.shipping_address.address_line_1 == "easybox Lipscani - Str. Lipscani 1"
        assert stored.shipping_address.city == "Bucuresti"
        assert stored.shipping_address.country_id == str(shop["country"].id)
        assert stored.shipping_address.first_name == "Ana"
        assert stored.shipping.pickup_point_id == "EBX-101"
        assert json.loads(stored.shipping.courier_data)["provider"] == "sameday"
        assert stored.shipping.shipping_cost_excl_vat == 10.0

    def test_locker_without_country(self, creator, individual, drill, locker, card):
        CartAggregator().add_line(CustomerCartOwner(individual.id), drill.id, 1)
        request = _customer_request(individual, locker, card, shipping_address=None, pickup=self._pickup())

        with pytest.raises(MissingShippingCountry):
            creator.create_from_cart(request)
        assert _orders() == []


class TestIdempotency:
    def test_same_key_returns_the_same_order(self, creator, shop, drill, courier, card):
        first = creator.create_from_cart(_guest_request(shop["country"], drill, courier, card), "key-123")
        second = creator.create_from_cart(_guest_request(shop["country"], drill, courier, card), "key-123")

        assert second.id == first.id
        assert len(_orders()) == 1
        assert _stock(drill) == 9

    def test_different_keys_create_two_orders(self, creator, shop, drill, courier, card):
        creator.create_from_cart(_guest_request(shop["country"], drill, courier, card), "key-1")
        creator.create_from_cart(_guest_request(shop["country"], drill, courier, card), "key-2")
        assert len(_orders()) == 2

    def test_key_is_remembered_for_five_minutes(self, creator, shop, drill, courier, card):
        order = creator.create_from_cart(_guest_request(shop["country"], drill, courier, card), "key-ttl")
        assert creator.cache.get("order_idempotency:key-ttl") == str(order.id)
        assert get_settings().idempotency_ttl == 300


class TestRejections:
    def test_validation_errors_are_returned(self, creator, individual, courier, card):
        result = creator.create_from_cart(_customer_request(individual, courier, card))
        assert isinstance(result, ValidationErrors)
        assert result.errors == ["Cart is empty."]
        assert _orders() == []

    def test_only_inactive_products_left(self, creator, individual, drill, courier, card):
        CartAggregator().add_line(CustomerCartOwner(individual.id), drill.id, 1)
        drill.status = ProductStatus.INACTIVE.value
        current_domain.repository_for(Product).add(drill)

        result = creator.create_from_cart(_customer_request(individual, courier, card))
        assert result.errors == ["Cart is empty."]

    def test_inactive_lines_are_left_out(self, creator, individual, drill, make_product, courier, card):
        retired = make_product(name="Retired", price_ron=10.0)
        owner = CustomerCartOwner(individual.id)
        CartAggregator().add_line(owner, drill.id, 1)
        CartAggregator().add_line(owner, retired.id, 1)
        retired.status = ProductStatus.INACTIVE.value
        current_domain.repository_for(Product).add(retired)

        order = creator.create_from_cart(_customer_request(individual, courier, card))

        assert len(current_domain.repository_for(Order).get(order.id).lines) == 1
        assert _stock(retired) == 10


class TestBackorders:
    def test_orders_are_accepted_beyond_stock(self, creator, shop, make_product, courier, card):
        product = make_product(name="Last Lamp", stock_quantity=0)

        orders = [
            creator.create_from_cart(_guest_request(shop["country"], product, courier, card, quantity=2))
            for _ in range(3)
        ]

        assert all(isinstance(order, Order) for order in orders)
        assert [order.serial for order in orders] == [1, 2, 3]
        assert len({order.number for order in orders}) == 3
        assert _stock(product) == -6

    def test_parallel_checkouts_all_succeed_beyond_stock(self, shop, make_product, courier, card):
        product = make_product(name="Last Lamp", stock_quantity=0)
        requests = [_guest_request(shop["country"], product, courier, card) for _ in range(10)]
        orders, errors = [], []

        def checkout(request):
            try:
                with storefront.domain_context():
                    orders.append(OrderCreator().create_from_cart(request))
            except Exception as exc:
                errors.append(exc)

        threads = [threading.Thread(target=checkout, args=(request,)) for request in requests]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        assert len(orders) == 10
        assert sorted(order.serial for order in orders) == list(range(1, 11))
        assert _stock(product) == -10


class TestOrderSerials:
    def test_serials_continue_after_a_restart(self, shop, drill, courier, card):
        first = OrderCreator().create_from_cart(_guest_request(shop["country"], drill, courier, card))

        # A new worker starts with fresh in-process state
        get_settings.cache_clear()
        reset_locks()
        second = OrderCreator().create_from_cart(_guest_request(shop["country"], drill, courier, card))

        assert (first.serial, second.serial) == (1, 2)
        assert first.number != second.number
        counter = current_domain.repository_for(OrderSerialCounter).get(ORDER_SERIAL_COUNTER)
        assert counter.last_serial == 2

    def test_serial_is_unique(self, creator, shop, drill, courier, card):
        order = creator.create_from_cart(_guest_request(shop["country"], drill, courier, card))

        with pytest.raises(ValidationError):
            current_domain.repository_for(Order).add(Order(number="TEMP-1", serial=order.serial, currency="RON"))

    def test_code_leads_back_to_the_order(self, creator, shop, drill, courier, card):
        creator.create_from_cart(_guest_request(shop["country"], drill, courier, card))
        order = creator.create_from_cart(_guest_request(shop["country"], drill, courier, card))

        serial = creator.codec.decode(order.number)
        assert current_domain.repository_for(Order).find_by_serial(serial).id == order.id


class RecordingLocks(MemoryLocks):
    def __init__(self):
        super().__init__()
        self.holding = False
        self.keys = set()

    @contextmanager
    def hold(self, keys, timeout):
        with super().hold(keys, timeout):
            self.holding = True
            self.keys = set(keys)
            try:
                yield
            finally:
                self.holding = False


class TestLockedSection:
    def test_lines_are_priced_while_locks_are_held(self, individual, drill, courier, card):
        locks = RecordingLocks()
        priced_under_lock = []

        class WatchingResolver(PriceResolver):
            def get_price_info(self, *args, **kwargs):
                priced_under_lock.append(locks.holding)
                return super().get_price_info(*args, **kwargs)

        CartAggregator().add_line(CustomerCartOwner(individual.id), drill.id, 1)
        creator = OrderCreator(price_resolver=WatchingResolver(), locks=locks)
        order = creator.create_from_cart(_customer_request(individual, courier, card))

        assert isinstance(order, Order)
        assert priced_under_lock == [True]
        assert locks.keys == {str(drill.id), ORDER_SERIAL_LOCK}
        assert not locks.holding
