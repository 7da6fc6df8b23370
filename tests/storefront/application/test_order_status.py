"""Application tests for order status and payment commands."""

import json

import pytest
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from storefront.cart.aggregator import CartAggregator, CustomerCartOwner
from storefront.checkout.addresses import StoredAddressRef
from storefront.checkout.validator import CheckoutRequest
from storefront.customer.customer import AddressType
from storefront.order.creation import OrderCreator
from storefront.order.order import Order, OrderStatus
from storefront.order.status import ChangeOrderStatus, MarkOrderPaid, MarkOrderUnpaid


@pytest.fixture
def order(individual, drill, courier, cash_on_delivery):
    CartAggregator().add_line(CustomerCartOwner(individual.id), drill.id, 1)
    request = CheckoutRequest(
        customer_id=individual.id,
        billing_address=StoredAddressRef(individual.addresses_of_type(AddressType.BILLING)[0].id),
        shipping_address=StoredAddressRef(individual.addresses_of_type(AddressType.SHIPPING)[0].id),
        shipping_method_id=courier.id,
        payment_method_id=cash_on_delivery.id,
    )
    return OrderCreator().create_from_cart(request)


def _reload(order):
    return current_domain.repository_for(Order).get(order.id)


class TestChangeOrderStatus:
    def test_status_change_is_recorded(self, order):
        changed = current_domain.process(
            ChangeOrderStatus(order_id=order.id, status=OrderStatus.SHIPPED.value, user_id="admin-1"),
            asynchronous=False,
        )

        stored = _reload(order)
        assert changed is True
        assert stored.status == OrderStatus.SHIPPED.value
        entry = next(e for e in stored.history if e.action == "status_changed")
        assert json.loads(entry.old_value) == "confirmed"
        assert json.loads(entry.new_value) == "shipped"
        assert entry.description == "Status changed from Confirmed to Shipped"
        assert entry.user_id == "admin-1"

    def test_same_status_is_a_no_op(self, order):
        changed = current_domain.process(
            ChangeOrderStatus(order_id=order.id, status=OrderStatus.CONFIRMED.value),
            asynchronous=False,
        )
        assert changed is False
        assert len(_reload(order).history) == 1

    def test_closed_order_cannot_reopen(self, order):
        current_domain.process(
            ChangeOrderStatus(order_id=order.id, status=OrderStatus.CANCELLED.value),
            asynchronous=False,
        )
        with pytest.raises(ValidationError):
            current_domain.process(
                ChangeOrderStatus(order_id=order.id, status=OrderStatus.PROCESSING.value),
                asynchronous=False,
            )
        assert _reload(order).status == OrderStatus.CANCELLED.value


class TestPaymentFlags:
    def test_mark_paid_then_unpaid(self, order):
        assert current_domain.process(MarkOrderPaid(order_id=order.id), asynchronous=False) is True
        paid = _reload(order)
        assert paid.is_paid is True
        assert paid.paid_at is not None

        assert current_domain.process(MarkOrderUnpaid(order_id=order.id), asynchronous=False) is True
        unpaid = _reload(order)
        assert unpaid.is_paid is False
        assert unpaid.paid_at is None
        assert {entry.action for entry in unpaid.history} == {"order_created", "payment_received", "payment_reversed"}

    def test_marking_twice_changes_nothing(self, order):
        current_domain.process(MarkOrderPaid(order_id=order.id), asynchronous=False)
        assert current_domain.process(MarkOrderPaid(order_id=order.id), asynchronous=False) is False
        assert len(_reload(order).history) == 2
