"""
Geolocation utilities for resolving a viewer's country and city from an IP address.
"""

import requests
import logging
from typing import Optional, Dict, Any
from fastapi import Request

from .config import settings

logger = logging.getLogger(__name__)

LOCAL_ADDRESSES = {"127.0.0.1", "localhost", "::1"}


class GeolocationService:
    """Service for determining geographic location from IP addresses."""

    def __init__(self, timeout: Optional[float] = None):
        self.free_apis = [
            "https://ipapi.co/{ip}/json/",
            "https://ipinfo.io/{ip}/json"
        ]
        self.timeout = timeout if timeout is not None else settings.GEOLOCATION_TIMEOUT_SECONDS

    def get_location_from_ip(self, ip_address: Optional[str]) -> Dict[str, Optional[str]]:
        """Get country and city for an IP address; both None when unresolved."""
        if not ip_address or ip_address in LOCAL_ADDRESSES:
            return {"country": None, "city": None}

        for api_url in self.free_apis:
            try:
                response = requests.get(api_url.format(ip=ip_address), timeout=self.timeout)
                if response.status_code == 200:
                    location = self._parse_location_data(response.json())
                    if location["country"]:
                        return location
            except (requests.RequestException, ValueError) as e:
                logger.warning(f"Failed to get location from {api_url}: {e}")
                continue

        return {"country": None, "city": None}

    def _parse_location_data(self, data: Dict[str, Any]) -> Dict[str, Optional[str]]:
        """Parse location data from the ipapi.co or ipinfo.io response shape."""
        if data.get("error"):
            return {"country": None, "city": None}
        # ipapi.co spells the country out, ipinfo.io only has the code
        country = data.get("country_name") or data.get("country")
        return {"country": country or None, "city": data.get("city") or None}

    def get_client_ip(self, request: Request) -> Optional[str]:
        """Extract the client's real IP address from the request."""
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()

        real_ip = request.headers.get("X-Real-IP")
        if real_ip:
            return real_ip

        return request.client.host if request.client else None


geolocation_service = GeolocationService()
