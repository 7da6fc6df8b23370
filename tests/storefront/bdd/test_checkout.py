"""BDD tests for checkout."""

import pytest
from protean.utils.globals import current_domain
from pytest_bdd import given, parsers, scenarios, then, when

from storefront.cart.aggregator import CartAggregator, CustomerCartOwner, GuestCartOwner
from storefront.cart.cart import Cart
from storefront.catalogue.product import Product
from storefront.checkout.validator import ValidationErrors
from storefront.order.creation import OrderCreator
from storefront.order.order import Order

scenarios("features/checkout.feature")


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(
    parsers.cfparse("the shop sells a drill at {price:f} RON with {stock:d} in stock"),
    target_fixture="product",
)
def drill_for_sale(shop, make_product, price, stock):
    return make_product(sku="DRILL-BDD", name="Cordless Drill", price_ron=price, stock_quantity=stock)


@given(
    parsers.re(r"a (?P<kind>retail|business) customer with (?P<quantity>\d+) drills? in the cart"),
    target_fixture="shopper",
)
def customer_with_cart(individual, company, product, kind, quantity):
    customer = individual if kind == "retail" else company
    CartAggregator().add_line(CustomerCartOwner(customer.id), product.id, int(quantity))
    return {"customer": customer, "session": {}}


@given(parsers.re(r"a guest with (?P<quantity>\d+) drills? in the cart"), target_fixture="shopper")
def guest_with_cart(shop, product, quantity):
    session = {}
    CartAggregator().add_line(GuestCartOwner(session), product.id, int(quantity))
    return {"customer": None, "session": session}


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(
    parsers.re(
        r"the shopper checks out with courier delivery "
        r"(?P<payment>paying by card|paying cash on delivery|without a payment method)"
    ),
    target_fixture="outcome",
)
def check_out(shopper, courier, card, cash_on_delivery, checkout_request, payment):
    payment_method = {
        "paying by card": card,
        "paying cash on delivery": cash_on_delivery,
        "without a payment method": None,
    }[payment]
    return OrderCreator().create_from_cart(checkout_request(shopper, courier, payment_method))


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('an order is placed with status "{status}"'))
def order_placed(outcome, status):
    assert isinstance(outcome, Order)
    assert outcome.status == status


@then(parsers.cfparse("the order total including VAT is {amount:f}"))
def order_total(outcome, amount):
    assert outcome.total_incl_vat == pytest.approx(amount)


@then("the order is paid")
def order_is_paid(outcome):
    assert outcome.is_paid is True


@then("the order is not paid")
def order_is_not_paid(outcome):
    assert outcome.is_paid is False


@then(parsers.re(r"the drill stock is (?P<stock>-?\d+)"))
def drill_stock(product, stock):
    assert current_domain.repository_for(Product).get(product.id).stock_quantity == int(stock)


@then("the customer cart is empty")
def customer_cart_empty(shopper):
    assert current_domain.repository_for(Cart).find_active_for_customer(shopper["customer"].id) is None


@then("the guest session cart is gone")
def guest_cart_gone(shopper):
    assert "cart" not in shopper["session"]


@then("shipping carries no VAT")
def shipping_without_vat(outcome):
    shipping = current_domain.repository_for(Order).get(outcome.id).shipping
    assert shipping.vat_percent == 0.0
    assert shipping.shipping_cost_excl_vat == shipping.shipping_cost_incl_vat


@then(parsers.cfparse('checkout is rejected with "{message}"'))
def checkout_rejected(outcome, message):
    assert isinstance(outcome, ValidationErrors)
    assert outcome.errors == [message]
