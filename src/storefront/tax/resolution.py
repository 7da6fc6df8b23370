"""Tax jurisdiction resolution.

For a request the first match wins:

1. the customer's preferred address, else their most recently created one;
2. the country of the request IP (cached for a week, never for local or
   private addresses);
3. the configured default country.

The request is passed in explicitly as a ``RequestContext``.
"""

import ipaddress
from collections.abc import Mapping
from dataclasses import dataclass, field

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from storefront.config import get_settings
from storefront.customer.customer import Customer
from storefront.errors import ConfigurationError
from storefront.infra.cache import get_cache
from storefront.infra.cache.port import Cache
from storefront.tax.country import Country
from storefront.tax.geoip import get_lookup
from storefront.tax.geoip.port import GeoIpLookup

logger = structlog.get_logger(__name__)

GEO_CACHE_PREFIX = "country_detection_ip_"


@dataclass(frozen=True)
class RequestContext:
    """The parts of an inbound HTTP request that country detection reads."""

    remote_addr: str | None = None
    headers: Mapping[str, str] = field(default_factory=dict)

    def _header(self, name: str) -> str | None:
        wanted = name.lower()
        for key, value in self.headers.items():
            if key.lower() == wanted:
                return value
        return None

    @property
    def client_ip(self) -> str | None:
        forwarded = self._header("X-Forwarded-For")
        if forwarded:
            return forwarded.split(",")[0].strip()
        real_ip = self._header("X-Real-IP")
        if real_ip:
            return real_ip.strip()
        return self.remote_addr


def is_public_ip(ip: str | None) -> bool:
    if not ip:
        return False
    try:
        address = ipaddress.ip_address(ip)
    except ValueError:
        return False
    return not (
        address.is_private
        or address.is_loopback
        or address.is_link_local
        or address.is_reserved
        or address.is_unspecified
        or address.is_multicast
    )


class CountryResolver:
    def __init__(self, lookup: GeoIpLookup | None = None, cache: Cache | None = None, settings=None) -> None:
        self.lookup = lookup or get_lookup()
        self.cache = cache or get_cache()
        self.settings = settings or get_settings()

    def resolve(self, customer_id=None, request: RequestContext | None = None):
        """Country id for pricing. Never returns None."""
        if customer_id:
            country_id = self._from_address_book(customer_id)
            if country_id:
                return country_id

        if request is not None:
            country_id = self.resolve_from_ip(request)
            if country_id:
                return country_id

        return self.default_country_id()

    def resolve_from_ip(self, request: RequestContext):
        """Country id from the request IP alone, or None."""
        ip = request.client_ip
        if not is_public_ip(ip):
            return None

        cache_key = f"{GEO_CACHE_PREFIX}{ip}"
        cached = self.cache.get(cache_key)
        if cached:
            return cached

        iso_code = self.lookup.country_for_ip(ip)
        if not iso_code:
            return None

        country = current_domain.repository_for(Country).find_by_iso_code(iso_code)
        if country is None or not country.is_active:
            logger.info("Detected country is not served", ip=ip, iso_code=iso_code)
            return None

        self.cache.set(cache_key, str(country.id), ttl=self.settings.geo_cache_ttl)
        logger.debug("Detected country from IP", ip=ip, country_id=str(country.id))
        return str(country.id)

    def default_country_id(self):
        repo = current_domain.repository_for(Country)
        country = repo.find_by_iso_code(self.settings.default_country_code)
        if country is None:
            active = repo.find_active()
            if not active:
                raise ConfigurationError("No active country configured")
            country = active[0]
        return str(country.id)

    def _from_address_book(self, customer_id):
        try:
            customer = current_domain.repository_for(Customer).get(customer_id)
        except ObjectNotFoundError:
            return None
        address = customer.preferred_or_latest_address()
        return str(address.country_id) if address else None
