"""Price resolution: tier selection, VAT treatment and currency display.

``PriceResolver.get_price_info`` is the only place that turns a product,
quantity, segment, jurisdiction and currency into money figures. Cart
display and order creation both go through it.

Rounding happens to the cent after every multiplication, division and
conversion so per-line drift stays within one cent.
"""

from decimal import Decimal

import structlog
from protean.utils.globals import current_domain

from storefront.catalogue.product import Product
from storefront.currency.converter import CurrencyConverter
from storefront.currency.currency import Currency
from storefront.customer.customer import CustomerSegment
from storefront.errors import ConfigurationError, RateNotFound
from storefront.pricing.breakdown import PriceBreakdown, TierPrice
from storefront.shared.money import ZERO, div, mul, round_money, to_decimal
from storefront.tax.country import Country

logger = structlog.get_logger(__name__)

HUNDRED = Decimal("100")


class VatRateMemo:
    """VAT rate per country for the lifetime of one request or checkout."""

    def __init__(self) -> None:
        self._rates: dict[str, Decimal] = {}
        self.lookups = 0

    def get(self, country_id) -> Decimal | None:
        return self._rates.get(str(country_id))

    def put(self, country_id, rate: Decimal) -> None:
        self._rates[str(country_id)] = rate


class PriceResolver:
    def __init__(self, country_resolver=None, converter: CurrencyConverter | None = None) -> None:
        # Used only when a B2C caller does not say which country applies
        self.country_resolver = country_resolver
        self.converter = converter or CurrencyConverter()

    # -------------------------------------------------------------------
    # Segment
    # -------------------------------------------------------------------
    def effective_segment(self, segment: CustomerSegment | None) -> CustomerSegment | None:
        """Callers without a segment (guests) price as B2C."""
        if segment is not None:
            return segment
        return current_domain.repository_for(CustomerSegment).b2c()

    def line_segment(self, segment_id, fallback: CustomerSegment | None) -> CustomerSegment | None:
        """Segment a cart line was priced under, defaulting to ``fallback``."""
        if not segment_id or (fallback is not None and str(fallback.id) == str(segment_id)):
            return fallback
        return current_domain.repository_for(CustomerSegment).get(segment_id)

    @staticmethod
    def show_vat(segment: CustomerSegment | None) -> bool:
        return segment is None or segment.is_b2c

    # -------------------------------------------------------------------
    # Building blocks
    # -------------------------------------------------------------------
    def resolve_unit_price_ron(self, product: Product, quantity: int, segment_id) -> Decimal:
        tier = product.select_tier(quantity, segment_id)
        if tier is not None:
            return round_money(tier.price_ron)
        return round_money(product.price_ron)

    def resolve_vat_rate(
        self,
        product: Product,
        country_id,
        segment: CustomerSegment | None,
        memo: VatRateMemo | None = None,
    ) -> Decimal:
        """0 for reverse-charge segments, else the country's highest rate."""
        if not self.show_vat(segment):
            return ZERO

        if memo is not None:
            cached = memo.get(country_id)
            if cached is not None:
                return cached

        country = current_domain.repository_for(Country).get(country_id)
        rate = country.highest_vat_rate()
        if rate is None:
            logger.error(
                "VAT rate not configured",
                country_id=str(country_id),
                product_id=str(product.id) if product is not None else None,
            )
            raise RateNotFound(country_id)

        if memo is not None:
            memo.lookups += 1
            memo.put(country_id, rate)
        return rate

    @staticmethod
    def price_excl_to_incl(excl, rate) -> Decimal:
        return mul(excl, 1 + to_decimal(rate) / HUNDRED)

    @staticmethod
    def price_incl_to_excl(incl, rate) -> Decimal:
        return div(incl, 1 + to_decimal(rate) / HUNDRED)

    def exchange_rate(self, currency: Currency) -> Decimal:
        """RON per unit of ``currency``, as reported by the converter's rate provider."""
        rate = self.converter.rate_for(currency.code)
        if rate is None:
            raise ConfigurationError(f"Exchange rate not configured: {currency.code}")
        return rate

    def convert_to_display_currency(self, amount_ron, currency: Currency) -> Decimal:
        if currency.is_base:
            return round_money(amount_ron)
        return div(amount_ron, self.exchange_rate(currency))

    # -------------------------------------------------------------------
    # Composed views
    # -------------------------------------------------------------------
    def _jurisdiction(self, country_id, segment):
        if country_id is not None or not self.show_vat(segment):
            return country_id
        if self.country_resolver is None:
            raise ValueError("country_id is required to price for a VAT-liable segment")
        return self.country_resolver.resolve()

    def get_price_info(
        self,
        product: Product,
        currency: Currency,
        quantity: int = 1,
        segment: CustomerSegment | None = None,
        country_id=None,
        memo: VatRateMemo | None = None,
    ) -> PriceBreakdown:
        segment = self.effective_segment(segment)
        segment_id = str(segment.id) if segment is not None else None
        show_vat = self.show_vat(segment)

        unit_ron_excl = self.resolve_unit_price_ron(product, quantity, segment_id)
        if show_vat:
            vat_rate = self.resolve_vat_rate(product, self._jurisdiction(country_id, segment), segment, memo)
            unit_ron_incl = self.price_excl_to_incl(unit_ron_excl, vat_rate)
        else:
            vat_rate = ZERO
            unit_ron_incl = unit_ron_excl

        unit_incl = self.convert_to_display_currency(unit_ron_incl, currency)
        unit_excl = self.convert_to_display_currency(unit_ron_excl, currency)
        total_incl = mul(unit_incl, quantity)
        total_excl = mul(unit_excl, quantity)

        return PriceBreakdown(
            unit_price_ron_excl_vat=unit_ron_excl,
            unit_price_ron_incl_vat=unit_ron_incl,
            unit_price_excl_vat=unit_excl,
            unit_price_incl_vat=unit_incl,
            unit_price_display=unit_incl if show_vat else unit_excl,
            total_price_ron_excl_vat=mul(unit_ron_excl, quantity),
            total_price_ron_incl_vat=mul(unit_ron_incl, quantity),
            total_price_excl_vat=total_excl,
            total_price_incl_vat=total_incl,
            total_price_display=total_incl if show_vat else total_excl,
            vat_rate=vat_rate,
            vat_included=show_vat,
            show_vat=show_vat,
            quantity=quantity,
            segment_id=segment_id,
            currency_code=currency.code,
        )

    def get_price_tiers(
        self,
        product: Product,
        currency: Currency,
        segment: CustomerSegment | None = None,
        country_id=None,
        quantity: int = 1,
        memo: VatRateMemo | None = None,
    ) -> list[TierPrice]:
        """Every tier of the segment, cheapest-quantity first, with the active one flagged."""
        segment = self.effective_segment(segment)
        segment_id = str(segment.id) if segment is not None else None
        show_vat = self.show_vat(segment)
        tiers = product.tiers_for(segment_id)
        if not tiers:
            return []

        vat_rate = ZERO
        if show_vat:
            vat_rate = self.resolve_vat_rate(product, self._jurisdiction(country_id, segment), segment, memo)

        current = product.select_tier(quantity, segment_id)
        formatted = []
        for tier in tiers:
            excl_ron = round_money(tier.price_ron)
            incl_ron = self.price_excl_to_incl(excl_ron, vat_rate) if show_vat else excl_ron
            excl = self.convert_to_display_currency(excl_ron, currency)
            incl = self.convert_to_display_currency(incl_ron, currency)
            formatted.append(
                TierPrice(
                    min_quantity=tier.min_quantity,
                    max_quantity=tier.max_quantity,
                    quantity_range=tier.label,
                    price_excl_vat=excl,
                    price_incl_vat=incl,
                    price_display=incl if show_vat else excl,
                    is_current=current is not None and str(current.id) == str(tier.id),
                )
            )
        return formatted
