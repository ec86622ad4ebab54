"""Mapbox Directions: road-following geometry for an ordered stop list."""
from __future__ import annotations

from typing import Optional, Sequence

from springs_trip.config import settings
from springs_trip.core.models import Coordinate
from springs_trip.exceptions import ConfigurationError, MalformedResponseError
from springs_trip.providers.base import DirectionsProvider, DirectionsResult
from springs_trip.providers.http import HTTPClient


class MapboxDirectionsProvider(DirectionsProvider):
    def __init__(
        self,
        token: Optional[str] = None,
        url: Optional[str] = None,
        http: Optional[HTTPClient] = None,
    ):
        self.token = settings.mapbox_token if token is None else token
        self.url = (url or settings.mapbox_directions_url).rstrip("/")
        self.http = http or HTTPClient(settings.user_agent, timeout_s=settings.http_timeout_s)

    @staticmethod
    def format_coordinates(coordinates: Sequence[Coordinate]) -> str:
        """Mapbox wants ``lng,lat;lng,lat;...``."""
        return ";".join(f"{c.lng},{c.lat}" for c in coordinates)

    def directions(self, coordinates: Sequence[Coordinate]) -> DirectionsResult:
        if not self.token:
            raise ConfigurationError("Mapbox access token not set")
        if len(coordinates) < 2:
            raise ValueError("At least two coordinates are required to compute a route.")

        data = self.http.get_json(
            f"{self.url}/{self.format_coordinates(coordinates)}",
            params={"overview": "full", "geometries": "geojson", "access_token": self.token},
        )

        if not isinstance(data, dict) or data.get("code") not in (None, "Ok"):
            raise MalformedResponseError(f"Mapbox error: {data.get('message', data) if isinstance(data, dict) else data}")

        try:
            route = data["routes"][0]
            coords = route["geometry"]["coordinates"]
            geometry = [Coordinate(lat=float(lat), lng=float(lng)) for lng, lat, *_ in coords]
            distance_m = float(route["distance"])
            duration_s = float(route["duration"])
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise MalformedResponseError(f"Unexpected Mapbox payload: {e}") from e

        if len(geometry) < 2:
            raise MalformedResponseError("Mapbox returned a degenerate geometry")

        return DirectionsResult(geometry=geometry, distance_m=distance_m, duration_s=duration_s)
