"""Table-driven geolocation for development and tests."""

from storefront.tax.geoip.port import GeoIpLookup


class FakeGeoIpLookup(GeoIpLookup):
    def __init__(self, table: dict[str, str] | None = None) -> None:
        self.table = dict(table or {})
        self.calls: list[str] = []

    def country_for_ip(self, ip: str) -> str | None:
        self.calls.append(ip)
        return self.table.get(ip)
