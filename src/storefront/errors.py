"""Fatal and retryable failures raised by the storefront engine.

User-correctable checkout problems are not exceptions: they are returned as
``ValidationErrors`` data. Aggregate misuse raises protean's
``ValidationError`` / ``InvalidOperationError``.
"""


class ConfigurationError(Exception):
    """Operator-facing failure: tax or currency configuration is incomplete."""


class RateNotFound(ConfigurationError):
    def __init__(self, country_id):
        self.country_id = country_id
        super().__init__(f"VAT rate not found for country: {country_id}")


class NonPositiveExchangeRate(ConfigurationError):
    def __init__(self, currency_code, rate):
        self.currency_code = currency_code
        self.rate = rate
        super().__init__(f"Exchange rate for {currency_code} must be positive, got {rate}")


class MissingShippingCountry(ConfigurationError):
    def __init__(self):
        super().__init__("Shipping country is required for VAT calculation")


class StockContention(Exception):
    """A checkout lock (product stock or order serial) could not be acquired in time. Safe to retry."""

    def __init__(self, key, timeout):
        self.key = key
        self.timeout = timeout
        super().__init__(f"Timed out after {timeout}s waiting for lock {key}")
