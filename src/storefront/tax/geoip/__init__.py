"""Geolocation lookup factory.

Defaults to the ip-api.com adapter configured from settings; tests install a
``FakeGeoIpLookup`` through ``set_lookup()``.
"""

from storefront.config import get_settings
from storefront.tax.geoip.ip_api_adapter import IpApiLookup
from storefront.tax.geoip.port import GeoIpLookup

_current_lookup: GeoIpLookup | None = None


def get_lookup() -> GeoIpLookup:
    global _current_lookup
    if _current_lookup is None:
        settings = get_settings()
        _current_lookup = IpApiLookup(url=settings.geo_url, timeout=settings.geo_timeout)
    return _current_lookup


def set_lookup(lookup: GeoIpLookup) -> None:
    global _current_lookup
    _current_lookup = lookup


def reset_lookup() -> None:
    global _current_lookup
    _current_lookup = None
