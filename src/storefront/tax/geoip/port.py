"""Geolocation port: maps a public IP address to an ISO 3166-1 alpha-2 code."""

from abc import ABC, abstractmethod


class GeoIpLookup(ABC):
    @abstractmethod
    def country_for_ip(self, ip: str) -> str | None:
        """Return the country code, or None when the address cannot be located.

        Implementations must not raise for network or lookup failures.
        """
        ...
