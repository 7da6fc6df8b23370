"""FastAPI routes: prices, customer carts, checkout and order lookup."""

from fastapi import APIRouter, Header, HTTPException, Request
from fastapi.responses import JSONResponse
from protean.utils.globals import current_domain

from storefront.api.schemas import (
    AddCartLineRequest,
    CartKeyResponse,
    CheckoutBody,
    CheckoutErrorResponse,
    OrderResponse,
    StatusResponse,
    UpdateCartLineRequest,
)
from storefront.cart.aggregator import CartAggregator, CustomerCartOwner
from storefront.cart.cart import LineKey
from storefront.cart.guest import GuestCart
from storefront.catalogue.product import Product
from storefront.checkout.addresses import InlineAddress, StoredAddressRef
from storefront.checkout.validator import CheckoutRequest, ValidationErrors
from storefront.config import get_settings
from storefront.currency.currency import Currency
from storefront.customer.customer import CustomerSegment
from storefront.order.code import OrderCodeCodec
from storefront.order.creation import OrderCreator
from storefront.order.order import Order
from storefront.pricing.resolver import PriceResolver
from storefront.tax.resolution import CountryResolver, RequestContext


def _request_context(request: Request) -> RequestContext:
    return RequestContext(
        remote_addr=request.client.host if request.client else None,
        headers=dict(request.headers),
    )


def _currency(code: str) -> Currency:
    currency = current_domain.repository_for(Currency).find_by_code(code.upper())
    if currency is None:
        raise HTTPException(status_code=404, detail=f"Currency {code} not found")
    return currency


def _segment(segment_id: str | None) -> CustomerSegment | None:
    if not segment_id:
        return None
    return current_domain.repository_for(CustomerSegment).get(segment_id)


def _pricing_country(request: Request, resolver: PriceResolver, segment, country_id):
    """Explicit country, else the one detected for this request when VAT applies."""
    if country_id or not resolver.show_vat(resolver.effective_segment(segment)):
        return country_id
    return CountryResolver().resolve(request=_request_context(request))


# ---------------------------------------------------------------------------
# Price Router
# ---------------------------------------------------------------------------
price_router = APIRouter(prefix="/prices", tags=["prices"])


@price_router.get("/{product_id}")
def get_price(
    product_id: str,
    request: Request,
    quantity: int = 1,
    currency: str = "RON",
    segment_id: str | None = None,
    country_id: str | None = None,
) -> dict:
    product = current_domain.repository_for(Product).get(product_id)
    resolver = PriceResolver()
    segment = _segment(segment_id)
    country_id = _pricing_country(request, resolver, segment, country_id)
    info = resolver.get_price_info(
        product,
        _currency(currency),
        quantity=max(quantity, 1),
        segment=segment,
        country_id=country_id,
    )
    return info.to_dict()


@price_router.get("/{product_id}/tiers")
def get_price_tiers(
    product_id: str,
    request: Request,
    quantity: int = 1,
    currency: str = "RON",
    segment_id: str | None = None,
    country_id: str | None = None,
) -> list[dict]:
    product = current_domain.repository_for(Product).get(product_id)
    resolver = PriceResolver()
    segment = _segment(segment_id)
    country_id = _pricing_country(request, resolver, segment, country_id)
    tiers = resolver.get_price_tiers(
        product,
        _currency(currency),
        segment=segment,
        country_id=country_id,
        quantity=max(quantity, 1),
    )
    return [tier.to_dict() for tier in tiers]


# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/customers", tags=["carts"])


def _owner(customer_id: str, request: Request, currency: str = "RON") -> CustomerCartOwner:
    return CustomerCartOwner(
        customer_id=customer_id, currency_code=currency.upper(), request=_request_context(request)
    )


@cart_router.get("/{customer_id}/cart")
def get_cart(customer_id: str, request: Request, currency: str = "RON") -> dict:
    owner = _owner(customer_id, request, currency)
    return CartAggregator().format_for_display(owner, _currency(currency))


@cart_router.post("/{customer_id}/cart/lines", status_code=201, response_model=CartKeyResponse)
def add_cart_line(customer_id: str, body: AddCartLineRequest, request: Request) -> CartKeyResponse:
    key = CartAggregator().add_line(
        _owner(customer_id, request),
        body.product_id,
        body.quantity,
        segment_id=body.segment_id,
    )
    return CartKeyResponse(cart_key=str(key))


@cart_router.patch("/{customer_id}/cart/lines/{cart_key}", response_model=StatusResponse)
def update_cart_line(
    customer_id: str, cart_key: str, body: UpdateCartLineRequest, request: Request
) -> StatusResponse:
    CartAggregator().update_quantity(_owner(customer_id, request), LineKey.parse(cart_key), body.quantity)
    return StatusResponse()


@cart_router.delete("/{customer_id}/cart/lines/{cart_key}", response_model=StatusResponse)
def remove_cart_line(customer_id: str, cart_key: str, request: Request) -> StatusResponse:
    CartAggregator().remove_line(_owner(customer_id, request), LineKey.parse(cart_key))
    return StatusResponse()


@cart_router.delete("/{customer_id}/cart", response_model=StatusResponse)
def clear_cart(customer_id: str, request: Request) -> StatusResponse:
    CartAggregator().clear(_owner(customer_id, request))
    return StatusResponse()


# ---------------------------------------------------------------------------
# Checkout Router
# ---------------------------------------------------------------------------
checkout_router = APIRouter(prefix="/checkout", tags=["checkout"])


def _address_input(stored_id, inline):
    if stored_id:
        return StoredAddressRef(address_id=stored_id)
    if inline is not None:
        return InlineAddress.from_mapping(inline.model_dump())
    return None


@checkout_router.post(
    "",
    status_code=201,
    response_model=OrderResponse,
    responses={400: {"model": CheckoutErrorResponse}},
)
def checkout(
    body: CheckoutBody,
    request: Request,
    idempotency_key: str | None = Header(default=None, alias="Idempotency-Key"),
):
    session: dict = {"currency": body.currency.upper()}
    if not body.customer_id:
        guest = GuestCart(session)
        for line in body.guest_cart:
            guest.add(LineKey.of(line.product_id, None), line.quantity)

    checkout_request = CheckoutRequest(
        customer_id=body.customer_id,
        session=session,
        guest_email=body.guest_email,
        billing_address=_address_input(body.billing_address_id, body.billing_address),
        shipping_address=_address_input(body.shipping_address_id, body.shipping_address),
        use_shipping_as_billing=body.use_shipping_as_billing,
        shipping_method_id=body.shipping_method_id,
        payment_method_id=body.payment_method_id,
        pickup=body.pickup,
        currency_code=body.currency.upper(),
        request=_request_context(request),
    )
    result = OrderCreator().create_from_cart(checkout_request, idempotency_key=idempotency_key)
    if isinstance(result, ValidationErrors):
        return JSONResponse(status_code=400, content=CheckoutErrorResponse(errors=result.errors).model_dump())
    return OrderResponse.from_order(result)


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.get("/{code}", response_model=OrderResponse)
def get_order(code: str) -> OrderResponse:
    serial = OrderCodeCodec(get_settings().order_code_salt).decode(code)
    order = current_domain.repository_for(Order).find_by_serial(serial) if serial else None
    if order is None:
        raise HTTPException(status_code=404, detail=f"Order {code} not found")
    return OrderResponse.from_order(order)
