"""Read-only checkout validation.

Checks run in a fixed order and stop at the first failure. The outcome is
data, never an exception: either ``ValidationErrors`` listing what the
shopper must fix, or a ``CheckoutContext`` holding every resolved record
order creation needs. Stock shortfalls only produce warnings (backorders
are allowed).
"""

from collections.abc import MutableMapping
from dataclasses import dataclass, field

import pydantic
import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from storefront.cart.aggregator import CartAggregator, CustomerCartOwner, GuestCartOwner
from storefront.cart.cart import CartLine, LineKey
from storefront.catalogue.product import Product
from storefront.checkout.addresses import (
    AddressInput,
    InlineAddress,
    PickupPayload,
    StoredAddressRef,
    describe_pickup_errors,
)
from storefront.checkout.methods import PaymentMethod, ShippingMethod
from storefront.currency.currency import BASE_CURRENCY
from storefront.customer.customer import Address, AddressType, Customer
from storefront.tax.country import Country
from storefront.tax.resolution import RequestContext

logger = structlog.get_logger(__name__)


@dataclass
class CheckoutRequest:
    """Everything a shopper submits when placing an order.

    Guests leave ``customer_id`` empty and carry their cart in ``session``.
    Client-side totals are deliberately not part of the request.
    """

    customer_id: str | None = None
    session: MutableMapping = field(default_factory=dict)
    guest_email: str | None = None
    billing_address: AddressInput | None = None
    shipping_address: AddressInput | None = None
    use_shipping_as_billing: bool = False
    shipping_method_id: str | None = None
    payment_method_id: str | None = None
    pickup: dict | None = None
    currency_code: str = BASE_CURRENCY
    request: RequestContext | None = None

    @property
    def is_guest(self) -> bool:
        return not self.customer_id

    @property
    def cart_owner(self):
        if self.is_guest:
            return GuestCartOwner(session=self.session, request=self.request)
        return CustomerCartOwner(customer_id=self.customer_id, currency_code=self.currency_code, request=self.request)


@dataclass(frozen=True)
class ValidationErrors:
    errors: list[str]

    def __bool__(self) -> bool:
        return bool(self.errors)


@dataclass
class CheckoutContext:
    customer: Customer | None
    billing_address: Address | InlineAddress
    shipping_address: Address | InlineAddress | None
    shipping_method: ShippingMethod
    pickup: PickupPayload | None
    payment_method: PaymentMethod
    lines: dict[LineKey, CartLine]
    warnings: list[str] = field(default_factory=list)
    guest_email: str | None = None

    @property
    def is_guest(self) -> bool:
        return self.customer is None


class _Rejected(Exception):
    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class CheckoutValidator:
    def __init__(self, carts: CartAggregator | None = None) -> None:
        self.carts = carts or CartAggregator()

    def validate(self, request: CheckoutRequest) -> ValidationErrors | CheckoutContext:
        try:
            return self._validate(request)
        except _Rejected as rejection:
            logger.info("Checkout rejected", customer_id=request.customer_id, reason=rejection.message)
            return ValidationErrors(errors=[rejection.message])

    def _validate(self, request: CheckoutRequest) -> CheckoutContext:
        customer = self._identity(request)

        lines = self.carts.get_lines(request.cart_owner)
        if not lines:
            raise _Rejected("Cart is empty.")

        billing = self._billing_address(request, customer)
        shipping_method = self._shipping_method(request)

        pickup = None
        shipping = None
        if shipping_method.is_pickup:
            pickup = self._pickup(request)
        else:
            shipping = self._shipping_address(request, customer)

        payment_method = self._payment_method(request)

        return CheckoutContext(
            customer=customer,
            billing_address=billing,
            shipping_address=shipping,
            shipping_method=shipping_method,
            pickup=pickup,
            payment_method=payment_method,
            lines=lines,
            warnings=self._stock_warnings(lines),
            guest_email=request.guest_email,
        )

    # -------------------------------------------------------------------
    # Steps
    # -------------------------------------------------------------------
    def _identity(self, request: CheckoutRequest) -> Customer | None:
        if request.is_guest:
            if not request.guest_email:
                raise _Rejected("Email is required for guest checkout.")
            return None

        try:
            customer = current_domain.repository_for(Customer).get(request.customer_id)
        except ObjectNotFoundError:
            raise _Rejected("Customer not found.") from None

        if customer.is_company and not customer.addresses_of_type(AddressType.HEADQUARTERS):
            raise _Rejected("Headquarters address is required for B2B customers.")
        return customer

    def _billing_address(self, request: CheckoutRequest, customer: Customer | None):
        if customer is None:
            if request.use_shipping_as_billing:
                if not isinstance(request.shipping_address, InlineAddress):
                    raise _Rejected("Shipping address is required when using shipping address for billing.")
                return request.shipping_address.with_email(request.guest_email)
            if not isinstance(request.billing_address, InlineAddress):
                raise _Rejected("Billing address is required.")
            return request.billing_address.with_email(request.guest_email)

        if not isinstance(request.billing_address, StoredAddressRef):
            raise _Rejected("Billing address is required.")
        address = customer.find_address(request.billing_address.address_id)
        allowed = {AddressType.BILLING.value, AddressType.HEADQUARTERS.value, AddressType.SHIPPING.value}
        if address is None or address.address_type not in allowed:
            raise _Rejected("Billing address not found.")
        return address

    def _shipping_method(self, request: CheckoutRequest) -> ShippingMethod:
        if not request.shipping_method_id:
            raise _Rejected("Shipping method is required.")
        try:
            return current_domain.repository_for(ShippingMethod).get(request.shipping_method_id)
        except ObjectNotFoundError:
            raise _Rejected("Shipping method not found.") from None

    def _pickup(self, request: CheckoutRequest) -> PickupPayload:
        if not request.pickup or "courier_data" not in request.pickup:
            raise _Rejected("Pickup point selection is required for pickup shipping method.")

        try:
            payload = PickupPayload.model_validate(request.pickup)
        except pydantic.ValidationError as exc:
            raise _Rejected(f"Invalid pickup data structure: {describe_pickup_errors(exc)}") from None

        locker = payload.courier_data.locker_details
        if locker is not None and locker.country_id is not None:
            try:
                current_domain.repository_for(Country).get(locker.country_id)
            except ObjectNotFoundError:
                raise _Rejected(
                    "Invalid pickup data structure: courier_data.locker_details.country_id: Country not found"
                ) from None
        return payload

    def _shipping_address(self, request: CheckoutRequest, customer: Customer | None):
        if customer is None:
            if not isinstance(request.shipping_address, InlineAddress):
                raise _Rejected("Shipping address is required for courier delivery.")
            return request.shipping_address.with_email(request.guest_email)

        if not isinstance(request.shipping_address, StoredAddressRef):
            raise _Rejected("Shipping address is required for courier delivery.")
        address = customer.find_address(request.shipping_address.address_id)
        if address is None or address.address_type != AddressType.SHIPPING.value:
            raise _Rejected("Shipping address not found.")
        return address

    def _payment_method(self, request: CheckoutRequest) -> PaymentMethod:
        if not request.payment_method_id:
            raise _Rejected("Payment method is required.")
        try:
            method = current_domain.repository_for(PaymentMethod).get(request.payment_method_id)
        except ObjectNotFoundError:
            method = None
        if method is None or not method.is_active:
            raise _Rejected("Payment method not found or inactive.")
        return method

    def _stock_warnings(self, lines: dict[LineKey, CartLine]) -> list[str]:
        warnings = []
        products = current_domain.repository_for(Product)
        for line in lines.values():
            try:
                product = products.get(line.product_id)
            except ObjectNotFoundError:
                continue
            if (product.stock_quantity or 0) < line.quantity:
                warnings.append(
                    f"Product {product.name} has insufficient stock "
                    f"(requested: {line.quantity}, available: {product.stock_quantity})."
                )
        return warnings
