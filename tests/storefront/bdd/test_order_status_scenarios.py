"""BDD tests for order status changes."""

from protean.exceptions import ValidationError
from protean.utils.globals import current_domain
from pytest_bdd import given, parsers, scenarios, then, when

from storefront.cart.aggregator import CartAggregator, CustomerCartOwner
from storefront.order.creation import OrderCreator
from storefront.order.order import Order, OrderStatus
from storefront.order.status import ChangeOrderStatus, MarkOrderPaid

scenarios("features/order_status.feature")


def _reload(order):
    return current_domain.repository_for(Order).get(order.id)


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given("a confirmed cash on delivery order", target_fixture="order")
def confirmed_order(individual, drill, courier, cash_on_delivery, checkout_request):
    CartAggregator().add_line(CustomerCartOwner(individual.id), drill.id, 1)
    shopper = {"customer": individual, "session": {}}
    order = OrderCreator().create_from_cart(checkout_request(shopper, courier, cash_on_delivery))
    assert order.status == OrderStatus.CONFIRMED.value
    return order


@given("the order was cancelled")
def order_cancelled(order):
    current_domain.process(
        ChangeOrderStatus(order_id=order.id, status=OrderStatus.CANCELLED.value),
        asynchronous=False,
    )


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse('staff changes the status to "{status}"'))
def change_status(order, status, error):
    try:
        current_domain.process(
            ChangeOrderStatus(order_id=order.id, status=status, user_id="staff-1"),
            asynchronous=False,
        )
    except ValidationError as exc:
        error["exc"] = exc


@when("staff marks the order as paid")
def mark_paid(order):
    current_domain.process(MarkOrderPaid(order_id=order.id, user_id="staff-1"), asynchronous=False)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the order status is "{status}"'))
def order_status_is(order, status):
    assert _reload(order).status == status


@then(parsers.cfparse('the history records "{description}"'))
def history_records(order, description):
    assert description in [entry.description for entry in _reload(order).history]


@then("the status change is refused")
def status_change_refused(error):
    assert isinstance(error["exc"], ValidationError)


@then("the order is marked paid")
def order_marked_paid(order):
    stored = _reload(order)
    assert stored.is_paid is True
    assert stored.paid_at is not None
