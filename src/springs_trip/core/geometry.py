from __future__ import annotations

import logging
from typing import Optional, Sequence

from springs_trip.core.models import Coordinate, RouteResult, Waypoint
from springs_trip.core.optimizer import OrderResult
from springs_trip.core.timeout import run_with_timeout
from springs_trip.exceptions import ConfigurationError
from springs_trip.geo.distance import approximate_path_miles
from springs_trip.providers.base import DirectionsProvider

log = logging.getLogger(__name__)

METERS_PER_MILE = 1609.34


def straight_route(
    start: Coordinate,
    order: Sequence[Waypoint],
    speed_mph: float,
    tier: str = "geometric",
) -> RouteResult:
    """Straight legs between consecutive stops; always renderable."""
    path = [start] + [w.coordinate for w in order]
    miles = approximate_path_miles(path)
    duration_s = miles / speed_mph * 3600.0 if speed_mph > 0 else None
    return RouteResult(
        order=list(order),
        geometry=path,
        distance_miles=miles,
        duration_s=duration_s,
        tier=tier,
        geometry_source="straight",
        approximate=True,
    )


class GeometryFetcher:
    """Road-following path for a fixed stop order, straight segments on failure."""

    def __init__(
        self,
        provider: Optional[DirectionsProvider] = None,
        timeout_s: float = 15.0,
        fallback_speed_mph: float = 45.0,
    ):
        self.provider = provider
        self.timeout_s = timeout_s
        self.fallback_speed_mph = fallback_speed_mph

    async def fetch(self, start: Coordinate, order: OrderResult) -> RouteResult:
        stops = order.waypoints
        if self.provider is not None:
            path = [start] + [w.coordinate for w in stops]
            outcome = await run_with_timeout(
                self.provider.directions, path, timeout_s=self.timeout_s, label="directions"
            )
            if outcome.ok:
                d = outcome.value
                return RouteResult(
                    order=list(stops),
                    geometry=d.geometry,
                    distance_miles=d.distance_m / METERS_PER_MILE,
                    duration_s=d.duration_s,
                    tier=order.tier,
                    geometry_source="directions",
                    approximate=False,
                )
            if isinstance(outcome.error, ConfigurationError):
                log.debug("Directions provider skipped: %s", outcome.error)
            elif outcome.status == "error":
                log.warning("Failed to fetch route geometry, drawing straight lines: %s", outcome.error)

        route = straight_route(start, stops, self.fallback_speed_mph, tier=order.tier)
        # The optimizing tier measured the road network even if directions failed
        if order.distance_m is not None:
            route.distance_miles = order.distance_m / METERS_PER_MILE
            route.approximate = False
            if order.duration_s is not None:
                route.duration_s = order.duration_s
        return route
