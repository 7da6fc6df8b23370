"""Cart aggregation for guests (session) and customers (persisted).

Every mutating operation recomputes the cart total through the price
resolver and stores it: on the ``Cart`` aggregate for customers, in the
session for guests. The total is the displayed amount, VAT-inclusive for
B2C and VAT-exclusive for reverse-charge segments.
"""

from collections.abc import MutableMapping
from dataclasses import dataclass, field
from decimal import Decimal

import structlog
from protean.exceptions import InvalidOperationError, ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from storefront.cart.cart import Cart, CartLine, LineKey
from storefront.cart.events import GuestCartMerged
from storefront.cart.guest import GuestCart
from storefront.catalogue.product import Product
from storefront.currency.currency import BASE_CURRENCY, Currency
from storefront.customer.customer import Customer, CustomerSegment
from storefront.pricing.resolver import PriceResolver, VatRateMemo
from storefront.shared.money import ZERO, add
from storefront.tax.resolution import CountryResolver, RequestContext

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CustomerCartOwner:
    customer_id: str
    currency_code: str = BASE_CURRENCY
    request: RequestContext | None = None


@dataclass(frozen=True, eq=False)
class GuestCartOwner:
    session: MutableMapping = field(default_factory=dict)
    request: RequestContext | None = None

    @property
    def currency_code(self) -> str:
        return self.session.get("currency", BASE_CURRENCY)


CartOwner = CustomerCartOwner | GuestCartOwner


@dataclass(frozen=True)
class CartSummary:
    item_count: int
    total_excl_vat: Decimal
    total_incl_vat: Decimal
    vat_rate: Decimal
    vat_included: bool

    def to_dict(self) -> dict:
        return {
            "item_count": self.item_count,
            "total_excl_vat": float(self.total_excl_vat),
            "total_incl_vat": float(self.total_incl_vat),
            "vat_rate": float(self.vat_rate),
            "vat_included": self.vat_included,
        }


class CartAggregator:
    def __init__(self, price_resolver: PriceResolver | None = None, country_resolver: CountryResolver | None = None):
        self.country_resolver = country_resolver or CountryResolver()
        self.prices = price_resolver or PriceResolver(country_resolver=self.country_resolver)

    # -------------------------------------------------------------------
    # Owner helpers
    # -------------------------------------------------------------------
    def segment_for(self, owner: CartOwner) -> CustomerSegment | None:
        """The customer's real segment; guests price as B2C."""
        segments = current_domain.repository_for(CustomerSegment)
        if isinstance(owner, CustomerCartOwner):
            customer = current_domain.repository_for(Customer).get(owner.customer_id)
            return segments.get(customer.segment_id)
        return segments.b2c()

    def _customer_cart(self, customer_id, create: bool = False) -> Cart | None:
        repo = current_domain.repository_for(Cart)
        cart = repo.find_active_for_customer(customer_id)
        if cart is None and create:
            cart = Cart.create(customer_id=customer_id)
        return cart

    def get_lines(self, owner: CartOwner) -> dict[LineKey, CartLine]:
        if isinstance(owner, GuestCartOwner):
            return GuestCart(owner.session).lines()
        cart = self._customer_cart(owner.customer_id)
        if cart is None:
            return {}
        return {line.key: line for line in cart.lines or []}

    # -------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------
    def add_line(self, owner: CartOwner, product_id, quantity: int, segment_id=None) -> LineKey:
        product = current_domain.repository_for(Product).get(product_id)
        if product.is_configurable:
            raise InvalidOperationError(
                "Configurable products cannot be added directly to cart. Please select a variant."
            )
        if not product.is_active:
            raise ValidationError({"product_id": ["Product is not available"]})
        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})

        if segment_id is None:
            segment = self.segment_for(owner)
            segment_id = segment.id if segment is not None else None
        key = LineKey.of(product_id, segment_id)

        if isinstance(owner, GuestCartOwner):
            guest = GuestCart(owner.session)
            guest.add(key, quantity)
            guest.record_total(self._displayed_total(owner))
        else:
            cart = self._customer_cart(owner.customer_id, create=True)
            cart.add_line(key.product_id, key.segment_id, quantity)
            self._save(owner, cart)

        logger.info("Added line to cart", product_id=key.product_id, segment_id=key.segment_id, quantity=quantity)
        return key

    def update_quantity(self, owner: CartOwner, key: LineKey, quantity: int) -> None:
        if quantity <= 0:
            self.remove_line(owner, key)
            return

        if isinstance(owner, GuestCartOwner):
            guest = GuestCart(owner.session)
            guest.set_quantity(key, quantity)
            guest.record_total(self._displayed_total(owner))
            return

        cart = self._customer_cart(owner.customer_id)
        if cart is None:
            raise ValidationError({"line": ["Line not found in cart"]})
        cart.set_quantity(key, quantity)
        self._save(owner, cart)

    def remove_line(self, owner: CartOwner, key: LineKey) -> None:
        if isinstance(owner, GuestCartOwner):
            guest = GuestCart(owner.session)
            guest.remove(key)
            guest.record_total(self._displayed_total(owner))
            return

        cart = self._customer_cart(owner.customer_id)
        if cart is None or cart.line_for(key) is None:
            return
        cart.remove_line(key)
        self._save(owner, cart)

    def clear(self, owner: CartOwner) -> None:
        if isinstance(owner, GuestCartOwner):
            GuestCart(owner.session).discard()
            return
        cart = self._customer_cart(owner.customer_id)
        if cart is not None:
            cart.clear()
            current_domain.repository_for(Cart).add(cart)

    def merge_guest_into_customer_cart(self, session: MutableMapping, customer_id, request=None) -> Cart:
        """Fold a guest session cart into the customer's cart after login.

        Guest lines are re-keyed to the customer's segment; quantities are
        summed with any line that already has the re-keyed identity.
        """
        owner = CustomerCartOwner(customer_id=str(customer_id), request=request)
        guest = GuestCart(session)
        guest_lines = guest.lines()

        cart = self._customer_cart(customer_id, create=True)
        segment = self.segment_for(owner)
        segment_id = segment.id if segment is not None else None

        for line in guest_lines.values():
            cart.add_line(line.product_id, segment_id, line.quantity)

        if guest_lines:
            cart.raise_(
                GuestCartMerged(cart_id=str(cart.id), customer_id=str(customer_id), lines_merged=len(guest_lines))
            )
        self._save(owner, cart)
        guest.discard()

        logger.info("Merged guest cart", customer_id=str(customer_id), lines_merged=len(guest_lines))
        return cart

    def _save(self, owner: CustomerCartOwner, cart: Cart) -> None:
        lines = {line.key: line for line in cart.lines or []}
        cart.record_total(self._displayed_total(owner, lines))
        current_domain.repository_for(Cart).add(cart)

    def _displayed_total(self, owner: CartOwner, lines=None):
        currency = current_domain.repository_for(Currency).find_by_code(owner.currency_code)
        if currency is None:
            currency = current_domain.repository_for(Currency).find_by_code(BASE_CURRENCY)
        summary = self.summarize(owner, currency, lines=lines)
        return summary.total_incl_vat if summary.vat_included else summary.total_excl_vat

    # -------------------------------------------------------------------
    # Read models
    # -------------------------------------------------------------------
    def _pricing_context(self, owner, segment, country_id):
        segment = segment or self.segment_for(owner)
        show_vat = self.prices.show_vat(segment)
        if show_vat and country_id is None:
            customer_id = owner.customer_id if isinstance(owner, CustomerCartOwner) else None
            country_id = self.country_resolver.resolve(customer_id=customer_id, request=owner.request)
        return segment, show_vat, country_id

    def _priced_lines(self, lines, currency, segment, country_id, memo):
        products = current_domain.repository_for(Product)
        for key, line in lines.items():
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
            yield key, line, product, info

    def summarize(
        self,
        owner: CartOwner,
        currency: Currency,
        segment: CustomerSegment | None = None,
        country_id=None,
        memo: VatRateMemo | None = None,
        lines=None,
    ) -> CartSummary:
        memo = memo or VatRateMemo()
        segment, show_vat, country_id = self._pricing_context(owner, segment, country_id)
        lines = self.get_lines(owner) if lines is None else lines

        item_count = 0
        total_excl = ZERO
        total_incl = ZERO
        for _, line, _, info in self._priced_lines(lines, currency, segment, country_id, memo):
            item_count += line.quantity
            total_excl = add(total_excl, info.total_price_excl_vat)
            total_incl = add(total_incl, info.total_price_incl_vat if show_vat else info.total_price_excl_vat)

        vat_rate = ZERO
        if show_vat and country_id is not None:
            vat_rate = self.prices.resolve_vat_rate(None, country_id, segment, memo)

        return CartSummary(
            item_count=item_count,
            total_excl_vat=total_excl,
            total_incl_vat=total_incl if show_vat else total_excl,
            vat_rate=vat_rate,
            vat_included=show_vat,
        )

    def format_for_display(
        self,
        owner: CartOwner,
        currency: Currency,
        segment: CustomerSegment | None = None,
        country_id=None,
    ) -> dict:
        """Priced lines with tier hints ("buy N more") plus the cart summary."""
        memo = VatRateMemo()
        segment, _, country_id = self._pricing_context(owner, segment, country_id)
        lines = self.get_lines(owner)

        formatted = []
        for key, line, product, info in self._priced_lines(lines, currency, segment, country_id, memo):
            line_segment = self.prices.line_segment(line.segment_id, segment)
            line_segment_id = str(line_segment.id) if line_segment is not None else None
            tiers = product.tiers_for(line_segment_id)
            current = product.select_tier(line.quantity, line_segment_id)

            price_tier = None
            items_to_next_tier = None
            if current is not None:
                index = next(i for i, t in enumerate(tiers) if str(t.id) == str(current.id))
                price_tier = {
                    "tier_index": index + 1,
                    "min_quantity": current.min_quantity,
                    "max_quantity": current.max_quantity,
                    "label": current.label,
                }
                if index + 1 < len(tiers) and tiers[index + 1].min_quantity > line.quantity:
                    items_to_next_tier = tiers[index + 1].min_quantity - line.quantity

            tier_prices = self.prices.get_price_tiers(
                product, currency, segment=line_segment, country_id=country_id, quantity=line.quantity, memo=memo
            )

            formatted.append(
                {
                    "cart_key": str(key),
                    "product_id": str(product.id),
                    "name": product.name,
                    "sku": product.sku,
                    "ean": product.ean,
                    "quantity": line.quantity,
                    "stock_quantity": product.stock_quantity,
                    "unit_price_display": float(info.unit_price_display),
                    "total_price_display": float(info.total_price_display),
                    "unit_price_excl_vat": float(info.unit_price_excl_vat),
                    "unit_price_incl_vat": float(info.unit_price_incl_vat),
                    "total_price_excl_vat": float(info.total_price_excl_vat),
                    "total_price_incl_vat": float(info.total_price_incl_vat),
                    "vat_rate": float(info.vat_rate),
                    "vat_included": info.show_vat,
                    "price_tier": price_tier,
                    "price_tiers": [
                        {"tier_index": i + 1, **tier.to_dict()} for i, tier in enumerate(tier_prices)
                    ],
                    "items_to_next_tier": items_to_next_tier,
                }
            )

        summary = self.summarize(owner, currency, segment=segment, country_id=country_id, memo=memo, lines=lines)
        return {"lines": formatted, "summary": summary.to_dict()}
