"""ip-api.com adapter (JSON endpoint, no API key)."""

import requests
import structlog

from storefront.tax.geoip.port import GeoIpLookup

logger = structlog.get_logger(__name__)


class IpApiLookup(GeoIpLookup):
    def __init__(self, url: str, timeout: float, session: requests.Session | None = None) -> None:
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()

    def country_for_ip(self, ip: str) -> str | None:
        try:
            response = self.session.get(
                self.url.format(ip=ip),
                params={"fields": "status,countryCode,message"},
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as exc:
            logger.warning("IP geolocation lookup failed", ip=ip, error=str(exc))
            return None

        if data.get("status") != "success":
            logger.info("IP geolocation returned no country", ip=ip, message=data.get("message"))
            return None

        return data.get("countryCode")
