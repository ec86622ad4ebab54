"""Google Routes ``computeRoutes`` with intermediate waypoint optimization."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

from springs_trip.config import settings
from springs_trip.core.models import Coordinate, Waypoint
from springs_trip.exceptions import ConfigurationError, MalformedResponseError
from springs_trip.providers.base import OptimizedOrder, OrderProvider
from springs_trip.providers.http import HTTPClient

log = logging.getLogger(__name__)

_FIELD_MASK = "routes.optimizedIntermediateWaypointIndex,routes.distanceMeters,routes.duration"


def _location(p: Coordinate) -> Dict[str, Any]:
    return {"location": {"latLng": {"latitude": p.lat, "longitude": p.lng}}}


def _parse_duration_s(value: Any) -> Optional[float]:
    """Routes API durations come back as strings like ``"5400s"``."""
    if value is None:
        return None
    try:
        return float(str(value).rstrip("s"))
    except ValueError:
        return None


def map_permutation(intermediates: Sequence[Waypoint], indices: Any) -> List[Waypoint]:
    """
    Apply the provider's permutation to ``intermediates``.

    Raises MalformedResponseError unless ``indices`` is exactly a permutation of
    ``range(len(intermediates))``.
    """
    if not isinstance(indices, list) or not all(isinstance(i, int) for i in indices):
        raise MalformedResponseError(f"optimizedIntermediateWaypointIndex is not an int list: {indices!r}")
    if sorted(indices) != list(range(len(intermediates))):
        raise MalformedResponseError(
            f"optimizedIntermediateWaypointIndex {indices} is not a permutation of {len(intermediates)} stops"
        )
    return [intermediates[i] for i in indices]


class GoogleRoutesProvider(OrderProvider):
    """
    Origin is the trip start, destination is the last waypoint in the current
    order and every other waypoint is an intermediate the API may reorder.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        url: Optional[str] = None,
        http: Optional[HTTPClient] = None,
    ):
        self.api_key = settings.google_api_key if api_key is None else api_key
        self.url = url or settings.google_routes_url
        self.http = http or HTTPClient(settings.user_agent, timeout_s=settings.http_timeout_s, tries=1)

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def build_request(self, start: Coordinate, waypoints: Sequence[Waypoint]) -> Dict[str, Any]:
        *intermediates, destination = waypoints
        return {
            "origin": _location(start),
            "destination": _location(destination.coordinate),
            "intermediates": [_location(w.coordinate) for w in intermediates],
            "optimizeWaypointOrder": True,
            "travelMode": "DRIVE",
        }

    def optimize_order(self, start: Coordinate, waypoints: Sequence[Waypoint]) -> OptimizedOrder:
        if not self.configured:
            raise ConfigurationError("Google Routes API key not set")
        if len(waypoints) < 2:
            raise ValueError("At least two waypoints are required to optimize an order.")

        data = self.http.post_json(
            self.url,
            self.build_request(start, waypoints),
            headers={
                "X-Goog-Api-Key": self.api_key,
                "X-Goog-FieldMask": _FIELD_MASK,
            },
        )

        try:
            route = data["routes"][0]
        except (KeyError, IndexError, TypeError) as e:
            raise MalformedResponseError(f"Google Routes returned no routes: {data!r}") from e

        intermediates = list(waypoints[:-1])
        # The API omits the index list when there is a single intermediate
        indices = route.get("optimizedIntermediateWaypointIndex")
        if indices is None and len(intermediates) <= 1:
            indices = list(range(len(intermediates)))

        ordered = map_permutation(intermediates, indices) + [waypoints[-1]]
        log.info("Google Routes reordered %d stops: %s", len(ordered), [w.id for w in ordered])

        distance_m = route.get("distanceMeters")
        if distance_m is not None:
            try:
                distance_m = float(distance_m)
            except (TypeError, ValueError) as e:
                raise MalformedResponseError(f"distanceMeters is not numeric: {distance_m!r}") from e

        return OptimizedOrder(
            waypoints=ordered,
            distance_m=distance_m,
            duration_s=_parse_duration_s(route.get("duration")),
        )
