"""Value types returned by the price resolver."""

from dataclasses import asdict, dataclass
from decimal import Decimal


@dataclass(frozen=True)
class PriceBreakdown:
    """Unit and line totals for one product at one quantity.

    ``*_ron_*`` figures are in RON; the others are in ``currency_code``.
    Every figure is already rounded to the cent.
    """

    unit_price_ron_excl_vat: Decimal
    unit_price_ron_incl_vat: Decimal
    unit_price_excl_vat: Decimal
    unit_price_incl_vat: Decimal
    unit_price_display: Decimal
    total_price_ron_excl_vat: Decimal
    total_price_ron_incl_vat: Decimal
    total_price_excl_vat: Decimal
    total_price_incl_vat: Decimal
    total_price_display: Decimal
    vat_rate: Decimal
    vat_included: bool
    show_vat: bool
    quantity: int
    segment_id: str | None
    currency_code: str

    def to_dict(self) -> dict:
        data = asdict(self)
        return {k: float(v) if isinstance(v, Decimal) else v for k, v in data.items()}


@dataclass(frozen=True)
class TierPrice:
    min_quantity: int
    max_quantity: int | None
    quantity_range: str
    price_excl_vat: Decimal
    price_incl_vat: Decimal
    price_display: Decimal
    is_current: bool

    def to_dict(self) -> dict:
        data = asdict(self)
        return {k: float(v) if isinstance(v, Decimal) else v for k, v in data.items()}
