"""Builders that freeze live records into order-owned snapshots."""

import json

from storefront.checkout.addresses import InlineAddress, PickupPayload
from storefront.customer.customer import Address
from storefront.order.order import OrderAddress, OrderAddressType, OrderLine, OrderShipping
from storefront.pricing.breakdown import PriceBreakdown
from storefront.shared.money import round_money, to_decimal

_ADDRESS_FIELDS = (
    "company_name",
    "fiscal_code",
    "reg_number",
    "first_name",
    "last_name",
    "phone",
    "email",
    "address_line_1",
    "address_line_2",
    "city",
    "county_name",
    "county_code",
    "zip_code",
)


def address_snapshot(source: Address | InlineAddress, address_type: OrderAddressType, email=None) -> OrderAddress:
    values = {name: getattr(source, name, None) for name in _ADDRESS_FIELDS}
    if not values["email"] and email:
        values["email"] = email
    return OrderAddress(
        address_type=address_type.value,
        country_id=str(source.country_id) if source.country_id else None,
        **values,
    )


def locker_snapshot(
    pickup: PickupPayload, country_id, first_name=None, last_name=None, phone=None, email=None
) -> OrderAddress:
    """Shipping address for a pickup order, built from the locker the shopper chose."""
    courier = pickup.courier_data
    locker = courier.locker_details
    address_line_1 = courier.point_name or "Pickup Point"
    if locker is not None and locker.address:
        address_line_1 = f"{address_line_1} - {locker.address}"

    return OrderAddress(
        address_type=OrderAddressType.SHIPPING.value,
        first_name=first_name,
        last_name=last_name,
        phone=phone,
        email=email,
        address_line_1=address_line_1,
        city=locker.city if locker else None,
        county_name=locker.county_name if locker else None,
        county_code=locker.county_code if locker else None,
        zip_code=locker.zip_code if locker else None,
        country_id=str(country_id) if country_id else None,
    )


def line_snapshot(product, info: PriceBreakdown, exchange_rate) -> OrderLine:
    purchase = round_money(product.purchase_price_ron)
    profit = round_money((info.unit_price_ron_excl_vat - purchase) * info.quantity)
    return OrderLine(
        product_id=str(product.id),
        name=product.name,
        sku=product.sku,
        ean=product.ean,
        quantity=info.quantity,
        vat_percent=float(info.vat_rate),
        exchange_rate=float(exchange_rate),
        unit_price_currency_excl_vat=float(info.unit_price_excl_vat),
        unit_price_currency=float(info.unit_price_incl_vat),
        unit_price_ron_excl_vat=float(info.unit_price_ron_excl_vat),
        unit_price_ron=float(info.unit_price_ron_incl_vat),
        unit_purchase_price_ron=float(purchase),
        total_currency_excl_vat=float(info.total_price_excl_vat),
        total_currency_incl_vat=float(info.total_price_incl_vat),
        total_ron_excl_vat=float(info.total_price_ron_excl_vat),
        total_ron_incl_vat=float(info.total_price_ron_incl_vat),
        profit_ron=float(profit),
    )


def shipping_snapshot(method, cost_excl_ron, cost_excl, cost_incl, vat_rate, pickup: PickupPayload | None):
    values = {
        "shipping_method_id": str(method.id),
        "title": method.name,
        "vat_percent": float(vat_rate),
        "shipping_cost_excl_vat": float(cost_excl),
        "shipping_cost_incl_vat": float(cost_incl),
        "shipping_cost_ron_excl_vat": float(cost_excl_ron),
        "shipping_cost_ron_incl_vat": float(round_money(to_decimal(method.cost))),
    }
    if pickup is not None:
        values["pickup_point_id"] = pickup.courier_data.point_id
        values["courier_data"] = json.dumps(pickup.courier_data.model_dump(exclude_none=True))
    return OrderShipping(**values)
