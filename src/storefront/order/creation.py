"""Cart to order conversion.

``OrderCreator.create_from_cart`` is the single write path for orders:

1. replay an earlier result when the idempotency key was seen recently;
2. validate the checkout (``CheckoutValidator``);
3. under per-product stock locks, the order-serial lock and one unit of
   work: re-price every line server side (order currency, shipping country
   as VAT jurisdiction), persist the order with its snapshots and the next
   persisted serial, decrement stock (backorders allowed) and convert the
   customer's cart;
4. after commit, discard the guest session cart and remember the key.

Client-supplied totals are never read.
"""

import secrets
from collections import Counter
from datetime import UTC, datetime

import structlog
from protean import UnitOfWork
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from storefront.cart.cart import Cart
from storefront.cart.guest import GuestCart
from storefront.catalogue.product import Product
from storefront.checkout.validator import CheckoutContext, CheckoutRequest, CheckoutValidator, ValidationErrors
from storefront.config import get_settings
from storefront.currency.currency import Currency
from storefront.customer.customer import CustomerSegment
from storefront.errors import ConfigurationError, MissingShippingCountry
from storefront.infra.cache import get_cache
from storefront.infra.locks import get_locks
from storefront.infra.locks.port import LockManager
from storefront.order.code import OrderCodeCodec
from storefront.order.events import OrderPlaced
from storefront.order.order import Order, OrderAddressType, OrderStatus
from storefront.order.serial import ORDER_SERIAL_LOCK, allocate_order_serial
from storefront.order.snapshots import address_snapshot, line_snapshot, locker_snapshot, shipping_snapshot
from storefront.pricing.resolver import PriceResolver, VatRateMemo
from storefront.shared.money import ZERO, add, round_money, to_decimal

logger = structlog.get_logger(__name__)

IDEMPOTENCY_PREFIX = "order_idempotency:"
SESSION_PICKUP_KEY = "pickup_data"

_AWAITING_PAYMENT_CODES = {"card", "credit_card", "debit_card", "online"}
_CASH_ON_DELIVERY_CODES = {"ramburs", "cod", "cash_on_delivery"}
_AUTO_PAID_CODES = {"card", "credit_card", "debit_card", "online", "paypal", "stripe"}


def initial_status(payment_method) -> OrderStatus:
    """Card payments wait for the gateway; cash on delivery is confirmed at once."""
    code = (payment_method.code or "").lower() if payment_method is not None else ""
    if code in _AWAITING_PAYMENT_CODES:
        return OrderStatus.AWAITING_PAYMENT
    if code in _CASH_ON_DELIVERY_CODES:
        return OrderStatus.CONFIRMED
    return OrderStatus.PENDING


def is_paid_on_placement(payment_method) -> bool:
    code = (payment_method.code or "").lower() if payment_method is not None else ""
    return code in _AUTO_PAID_CODES


def temporary_number() -> str:
    return f"TEMP-{int(datetime.now(UTC).timestamp())}-{secrets.token_hex(3)}"


class OrderCreator:
    def __init__(
        self,
        validator: CheckoutValidator | None = None,
        price_resolver: PriceResolver | None = None,
        cache=None,
        codec: OrderCodeCodec | None = None,
        locks: LockManager | None = None,
        settings=None,
    ) -> None:
        self.settings = settings or get_settings()
        self.validator = validator or CheckoutValidator()
        self.prices = price_resolver or self.validator.carts.prices
        self.cache = cache or get_cache()
        self.codec = codec or OrderCodeCodec(self.settings.order_code_salt)
        self.locks = locks or get_locks()

    def create_from_cart(self, request: CheckoutRequest, idempotency_key: str | None = None):
        """Place an order from the requester's cart.

        Returns the ``Order``, or ``ValidationErrors`` the shopper can fix.
        Configuration problems raise ``ConfigurationError`` and lock waits
        that time out raise ``StockContention``.
        """
        if idempotency_key:
            existing = self._replay(idempotency_key)
            if existing is not None:
                return existing

        context = self.validator.validate(request)
        if isinstance(context, ValidationErrors):
            return context
        for warning in context.warnings:
            logger.warning("Checkout stock warning", customer_id=request.customer_id, warning=warning)

        currency = current_domain.repository_for(Currency).find_by_code(request.currency_code)
        if currency is None:
            raise ConfigurationError(f"Currency not configured: {request.currency_code}")
        exchange_rate = self.prices.exchange_rate(currency)

        segment = self._segment(context)
        vat_country_id = self._vat_country(context)
        memo = VatRateMemo()

        lock_keys = {str(line.product_id) for line in context.lines.values()} | {ORDER_SERIAL_LOCK}
        with self.locks.hold(lock_keys, self.settings.lock_wait_timeout):
            with UnitOfWork():
                priced = self._price_lines(context, currency, segment, vat_country_id, memo)
                if not priced:
                    return ValidationErrors(errors=["Cart is empty."])

                totals = self._totals(priced)
                shipping_vat_rate = ZERO
                if self.prices.show_vat(self.prices.effective_segment(segment)):
                    shipping_vat_rate = self.prices.resolve_vat_rate(None, vat_country_id, segment, memo)

                quantities = Counter()
                for product, info in priced:
                    quantities[str(product.id)] += info.quantity

                order = self._persist(
                    context, currency, exchange_rate, segment, vat_country_id, priced, totals, shipping_vat_rate
                )
                self._adjust_stock(quantities, order)
                if context.customer is not None:
                    self._convert_cart(context.customer.id, order)

        if context.is_guest:
            GuestCart(request.session).discard()
            request.session.pop(SESSION_PICKUP_KEY, None)

        if idempotency_key:
            self.cache.set(f"{IDEMPOTENCY_PREFIX}{idempotency_key}", str(order.id), ttl=self.settings.idempotency_ttl)

        logger.info(
            "Order created",
            order_id=str(order.id),
            number=order.number,
            customer_id=order.customer_id,
            total_ron_incl_vat=order.total_ron_incl_vat,
            is_guest=context.is_guest,
        )
        return order

    # -------------------------------------------------------------------
    # Steps
    # -------------------------------------------------------------------
    def _replay(self, idempotency_key: str) -> Order | None:
        order_id = self.cache.get(f"{IDEMPOTENCY_PREFIX}{idempotency_key}")
        if not order_id:
            return None
        try:
            order = current_domain.repository_for(Order).get(order_id)
        except ObjectNotFoundError:
            return None
        logger.info("Idempotent checkout replayed", order_id=str(order.id), idempotency_key=idempotency_key)
        return order

    def _segment(self, context: CheckoutContext) -> CustomerSegment | None:
        if context.customer is None:
            return current_domain.repository_for(CustomerSegment).b2c()
        return current_domain.repository_for(CustomerSegment).get(context.customer.segment_id)

    def _vat_country(self, context: CheckoutContext):
        if context.shipping_address is not None and context.shipping_address.country_id:
            return str(context.shipping_address.country_id)
        if context.pickup is not None and context.pickup.country_id:
            return context.pickup.country_id
        raise MissingShippingCountry()

    def _price_lines(self, context, currency, segment, country_id, memo):
        products = current_domain.repository_for(Product)
        priced = []
        for line in context.lines.values():
            try:
                product = products.get(line.product_id)
            except ObjectNotFoundError:
                continue
            if not product.is_active:
                continue
            info = self.prices.get_price_info(
                product,
                currency,
                quantity=line.quantity,
                segment=self.prices.line_segment(line.segment_id, segment),
                country_id=country_id,
                memo=memo,
            )
            priced.append((product, info))
        return priced

    @staticmethod
    def _totals(priced) -> dict:
        totals = {"excl": ZERO, "incl": ZERO, "ron_excl": ZERO, "ron_incl": ZERO}
        rates = []
        for _, info in priced:
            totals["excl"] = add(totals["excl"], info.total_price_excl_vat)
            totals["incl"] = add(totals["incl"], info.total_price_incl_vat)
            totals["ron_excl"] = add(totals["ron_excl"], info.total_price_ron_excl_vat)
            totals["ron_incl"] = add(totals["ron_incl"], info.total_price_ron_incl_vat)
            rates.append(info.vat_rate)
        totals["average_vat_rate"] = round_money(sum(rates, ZERO) / len(rates)) if rates else ZERO
        return totals

    def _persist(self, context, currency, exchange_rate, segment, vat_country_id, priced, totals, shipping_vat_rate):
        now = datetime.now(UTC)
        status = initial_status(context.payment_method)
        paid = is_paid_on_placement(context.payment_method)
        customer_id = str(context.customer.id) if context.customer is not None else None

        order = Order(
            customer_id=customer_id,
            number=temporary_number(),
            currency=currency.code,
            exchange_rate=float(exchange_rate),
            vat_rate_applied=float(totals["average_vat_rate"]),
            is_vat_exempt=not self.prices.show_vat(self.prices.effective_segment(segment)),
            total_excl_vat=float(totals["excl"]),
            total_incl_vat=float(totals["incl"]),
            total_ron_excl_vat=float(totals["ron_excl"]),
            total_ron_incl_vat=float(totals["ron_incl"]),
            serial=allocate_order_serial(),
            payment_method_id=str(context.payment_method.id),
            status=status.value,
            is_paid=paid,
            paid_at=now if paid else None,
            placed_at=now,
        )
        orders = current_domain.repository_for(Order)
        orders.add(order)

        order.number = self.codec.encode(order.serial)

        order.log_history(
            "order_created",
            new_value={
                "order_number": order.number,
                "status": status.label,
                "total_ron_incl_vat": order.total_ron_incl_vat,
                "is_guest": context.is_guest,
            },
            description=f"Order created with status: {status.label}" + (" (Guest)" if context.is_guest else ""),
            user_id=customer_id,
        )

        for product, info in priced:
            order.add_lines(line_snapshot(product, info, exchange_rate))

        order.add_addresses(address_snapshot(context.billing_address, OrderAddressType.BILLING, context.guest_email))
        if context.pickup is not None:
            order.add_addresses(self._locker_address(context, vat_country_id))
        elif context.shipping_address is not None:
            order.add_addresses(
                address_snapshot(context.shipping_address, OrderAddressType.SHIPPING, context.guest_email)
            )

        order.shipping = self._shipping(context, currency, shipping_vat_rate)

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                number=order.number,
                customer_id=customer_id,
                status=order.status,
                currency=order.currency,
                total_ron_incl_vat=order.total_ron_incl_vat,
                placed_at=now,
            )
        )
        orders.add(order)
        return order

    def _locker_address(self, context: CheckoutContext, vat_country_id):
        pickup = context.pickup
        contact = pickup.shipping_address
        fallback = context.customer if context.customer is not None else context.billing_address

        def pick(name):
            value = getattr(contact, name, None) if contact is not None else None
            return value or getattr(fallback, name, None)

        locker = pickup.courier_data.locker_details
        country_id = (
            (locker.country_id if locker is not None else None)
            or (contact.country_id if contact is not None else None)
            or vat_country_id
        )
        return locker_snapshot(
            pickup,
            country_id,
            first_name=pick("first_name"),
            last_name=pick("last_name"),
            phone=pick("phone"),
            email=pick("email") or context.guest_email,
        )

    def _shipping(self, context: CheckoutContext, currency, vat_rate):
        cost_incl_ron = round_money(to_decimal(context.shipping_method.cost))
        cost_excl_ron = self.prices.price_incl_to_excl(cost_incl_ron, vat_rate)
        return shipping_snapshot(
            context.shipping_method,
            cost_excl_ron=cost_excl_ron,
            cost_excl=self.prices.convert_to_display_currency(cost_excl_ron, currency),
            cost_incl=self.prices.convert_to_display_currency(cost_incl_ron, currency),
            vat_rate=vat_rate,
            pickup=context.pickup,
        )

    def _adjust_stock(self, quantities: Counter, order: Order) -> None:
        products = current_domain.repository_for(Product)
        for product_id, quantity in quantities.items():
            product = products.get(product_id)
            product.decrement_stock(quantity, order_id=order.id)
            products.add(product)
            logger.debug(
                "Stock decremented",
                product_id=product_id,
                quantity=quantity,
                new_stock=product.stock_quantity,
            )

    def _convert_cart(self, customer_id, order: Order) -> None:
        carts = current_domain.repository_for(Cart)
        cart = carts.find_active_for_customer(customer_id)
        if cart is None:
            return
        cart.mark_converted(order.id)
        carts.add(cart)
