"""RON-based currency conversion.

Rates come from an ``ExchangeRateProvider``; the default provider reads the
``Currency`` table. Every result is rounded to the cent.
"""

from abc import ABC, abstractmethod
from decimal import Decimal

from protean.utils.globals import current_domain

from storefront.currency.currency import BASE_CURRENCY, Currency
from storefront.errors import NonPositiveExchangeRate
from storefront.shared.money import round_money, to_decimal


class ExchangeRateProvider(ABC):
    @abstractmethod
    def rate(self, currency_code: str) -> Decimal | None:
        """RON per one unit of ``currency_code``; None when the currency is unknown."""
        ...


class CurrencyTableRates(ExchangeRateProvider):
    def rate(self, currency_code: str) -> Decimal | None:
        if currency_code == BASE_CURRENCY:
            return Decimal("1")
        currency = current_domain.repository_for(Currency).find_by_code(currency_code)
        return currency.rate if currency is not None else None


class CurrencyConverter:
    def __init__(self, rates: ExchangeRateProvider | None = None) -> None:
        self.rates = rates or CurrencyTableRates()

    def rate_for(self, currency_code: str) -> Decimal | None:
        """RON per unit of ``currency_code``; None when unknown, an error when not positive."""
        rate = self.rates.rate(currency_code)
        if rate is not None and rate <= 0:
            raise NonPositiveExchangeRate(currency_code, rate)
        return rate

    def convert(self, amount, from_code: str, to_code: str) -> Decimal | None:
        """Convert between any two currencies through RON; None if either is unknown."""
        if from_code == to_code:
            return round_money(amount)

        from_rate = self.rate_for(from_code)
        to_rate = self.rate_for(to_code)
        if from_rate is None or to_rate is None:
            return None

        amount_ron = to_decimal(amount) * from_rate
        return round_money(amount_ron / to_rate)

    def convert_from_ron(self, amount_ron, to_code: str) -> Decimal | None:
        return self.convert(amount_ron, BASE_CURRENCY, to_code)

    def convert_to_ron(self, amount, from_code: str) -> Decimal | None:
        return self.convert(amount, from_code, BASE_CURRENCY)

    @staticmethod
    def format(amount, currency: Currency) -> str:
        """``€12.50`` or ``12.50 lei`` depending on which symbol the currency defines."""
        text = f"{round_money(amount):.2f}"
        if currency.symbol_left:
            return f"{currency.symbol_left}{text}"
        return f"{text}{currency.symbol_right or ''}"
