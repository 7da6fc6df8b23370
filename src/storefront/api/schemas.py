"""Pydantic request/response schemas for the storefront API.

These are external contracts, kept apart from the domain objects they are
translated into.
"""

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class AddressSchema(BaseModel):
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


class GuestCartLineSchema(BaseModel):
    product_id: str
    quantity: int = Field(ge=1, default=1)


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------
class AddCartLineRequest(BaseModel):
    product_id: str
    quantity: int = Field(ge=1, default=1)
    segment_id: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "product_id": "prod-001",
                    "quantity": 5,
                }
            ]
        }
    }


class UpdateCartLineRequest(BaseModel):
    # Zero removes the line
    quantity: int = Field(ge=0)


class CartKeyResponse(BaseModel):
    cart_key: str


class StatusResponse(BaseModel):
    status: str = "ok"


# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------
class CheckoutBody(BaseModel):
    customer_id: str | None = None
    guest_email: str | None = None
    guest_cart: list[GuestCartLineSchema] = Field(default_factory=list)
    billing_address_id: str | None = None
    shipping_address_id: str | None = None
    billing_address: AddressSchema | None = None
    shipping_address: AddressSchema | None = None
    use_shipping_as_billing: bool = False
    shipping_method_id: str | None = None
    payment_method_id: str | None = None
    pickup: dict | None = None
    currency: str = "RON"

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "customer_id": "cust-001",
                    "billing_address_id": "addr-001",
                    "shipping_address_id": "addr-002",
                    "shipping_method_id": "ship-001",
                    "payment_method_id": "pay-001",
                    "currency": "RON",
                }
            ]
        }
    }


class CheckoutErrorResponse(BaseModel):
    errors: list[str]


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
class OrderLineResponse(BaseModel):
    product_id: str
    name: str
    sku: str | None = None
    quantity: int
    vat_percent: float
    unit_price_currency: float
    unit_price_currency_excl_vat: float
    total_currency_incl_vat: float
    total_currency_excl_vat: float


class OrderAddressResponse(BaseModel):
    address_type: str
    first_name: str | None = None
    last_name: str | None = None
    company_name: str | None = None
    address_line_1: str | None = None
    city: str | None = None
    country_id: str | None = None


class OrderShippingResponse(BaseModel):
    title: str
    vat_percent: float
    shipping_cost_incl_vat: float
    shipping_cost_excl_vat: float
    pickup_point_id: str | None = None


class OrderResponse(BaseModel):
    order_id: str
    number: str
    status: str
    currency: str
    exchange_rate: float
    vat_rate_applied: float
    is_vat_exempt: bool
    total_excl_vat: float
    total_incl_vat: float
    total_ron_excl_vat: float
    total_ron_incl_vat: float
    is_paid: bool
    lines: list[OrderLineResponse]
    addresses: list[OrderAddressResponse]
    shipping: OrderShippingResponse | None = None

    @classmethod
    def from_order(cls, order) -> "OrderResponse":
        shipping = order.shipping
        return cls(
            order_id=str(order.id),
            number=order.number,
            status=order.status,
            currency=order.currency,
            exchange_rate=order.exchange_rate,
            vat_rate_applied=order.vat_rate_applied,
            is_vat_exempt=order.is_vat_exempt,
            total_excl_vat=order.total_excl_vat,
            total_incl_vat=order.total_incl_vat,
            total_ron_excl_vat=order.total_ron_excl_vat,
            total_ron_incl_vat=order.total_ron_incl_vat,
            is_paid=order.is_paid,
            lines=[
                OrderLineResponse(
                    product_id=str(line.product_id),
                    name=line.name,
                    sku=line.sku,
                    quantity=line.quantity,
                    vat_percent=line.vat_percent,
                    unit_price_currency=line.unit_price_currency,
                    unit_price_currency_excl_vat=line.unit_price_currency_excl_vat,
                    total_currency_incl_vat=line.total_currency_incl_vat,
                    total_currency_excl_vat=line.total_currency_excl_vat,
                )
                for line in order.lines or []
            ],
            addresses=[
                OrderAddressResponse(
                    address_type=address.address_type,
                    first_name=address.first_name,
                    last_name=address.last_name,
                    company_name=address.company_name,
                    address_line_1=address.address_line_1,
                    city=address.city,
                    country_id=str(address.country_id) if address.country_id else None,
                )
                for address in order.addresses or []
            ],
            shipping=(
                OrderShippingResponse(
                    title=shipping.title,
                    vat_percent=shipping.vat_percent,
                    shipping_cost_incl_vat=shipping.shipping_cost_incl_vat,
                    shipping_cost_excl_vat=shipping.shipping_cost_excl_vat,
                    pickup_point_id=shipping.pickup_point_id,
                )
                if shipping is not None
                else None
            ),
        )
