"""Nominatim geocoding for start-location entry."""
from __future__ import annotations

import logging
from typing import Optional

from springs_trip.config import settings
from springs_trip.core.models import Coordinate
from springs_trip.exceptions import MalformedResponseError
from springs_trip.providers.base import Geocoder
from springs_trip.providers.http import HTTPClient

log = logging.getLogger(__name__)


class NominatimGeocoder(Geocoder):
    def __init__(self, url: Optional[str] = None, http: Optional[HTTPClient] = None):
        self.url = (url or settings.nominatim_url).rstrip("/")
        self.http = http or HTTPClient(settings.user_agent, timeout_s=settings.http_timeout_s)

    def search(self, query: str) -> Optional[Coordinate]:
        """Address or place name -> first matching coordinate."""
        data = self.http.get_json(
            f"{self.url}/search", params={"q": query, "format": "json", "limit": 1}
        )
        if not isinstance(data, list):
            raise MalformedResponseError("Nominatim search did not return a list")
        if not data:
            return None
        try:
            return Coordinate(lat=float(data[0]["lat"]), lng=float(data[0]["lon"]))
        except (KeyError, TypeError, ValueError) as e:
            raise MalformedResponseError(f"Unexpected Nominatim result: {e}") from e

    def reverse(self, point: Coordinate) -> Optional[str]:
        data = self.http.get_json(
            f"{self.url}/reverse", params={"lat": point.lat, "lon": point.lng, "format": "json"}
        )
        if not isinstance(data, dict):
            raise MalformedResponseError("Nominatim reverse did not return an object")
        return data.get("display_name")
