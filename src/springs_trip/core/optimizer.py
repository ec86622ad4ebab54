"""Tiered stop ordering: optimizing provider first, geometric fallback last."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Literal, Optional, Sequence

from springs_trip.core.models import Coordinate, Waypoint
from springs_trip.core.state import MAX_WAYPOINTS
from springs_trip.core.timeout import run_with_timeout
from springs_trip.exceptions import ConfigurationError, PreconditionError
from springs_trip.geo.distance import haversine_miles
from springs_trip.providers.base import OrderProvider

log = logging.getLogger(__name__)


@dataclass
class OrderResult:
    waypoints: List[Waypoint]
    tier: Literal["provider", "geometric"]
    distance_m: Optional[float] = None
    duration_s: Optional[float] = None


def geometric_order(start: Coordinate, waypoints: Sequence[Waypoint]) -> List[Waypoint]:
    """
    Waypoints sorted by straight-line distance from ``start``.

    Every stop is ranked against the origin only; this is not a chained
    nearest-next tour. Ties keep their input order.
    """
    return sorted(waypoints, key=lambda w: haversine_miles(start, w.coordinate))


def check_preconditions(
    start: Optional[Coordinate],
    waypoints: Sequence[Waypoint],
    max_waypoints: int = MAX_WAYPOINTS,
) -> None:
    if start is None:
        raise PreconditionError("Please set a starting location first")
    if len(waypoints) < 2:
        raise PreconditionError("Please select at least 2 springs")
    if len(waypoints) > max_waypoints:
        raise PreconditionError(f"A trip holds at most {max_waypoints} springs")
    if len({w.id for w in waypoints}) != len(waypoints):
        raise PreconditionError("Duplicate springs in trip")


def _same_stops(a: Sequence[Waypoint], b: Sequence[Waypoint]) -> bool:
    return len(a) == len(b) and sorted(w.id for w in a) == sorted(w.id for w in b)


class RouteOptimizer:
    def __init__(
        self,
        provider: Optional[OrderProvider] = None,
        timeout_s: float = 10.0,
        max_waypoints: int = MAX_WAYPOINTS,
    ):
        self.provider = provider
        self.timeout_s = timeout_s
        self.max_waypoints = max_waypoints

    async def _provider_tier(self, start: Coordinate, waypoints: Sequence[Waypoint]) -> Optional[OrderResult]:
        if self.provider is None:
            log.debug("No optimizing provider configured; using geometric order")
            return None
        if getattr(self.provider, "configured", True) is False:
            log.debug("Optimizing provider has no credential; using geometric order")
            return None

        outcome = await run_with_timeout(
            self.provider.optimize_order,
            start,
            list(waypoints),
            timeout_s=self.timeout_s,
            label="route optimization",
        )
        if outcome.status == "timeout":
            return None
        if outcome.status == "error":
            if isinstance(outcome.error, ConfigurationError):
                log.debug("Optimizing provider skipped: %s", outcome.error)
            else:
                log.warning("Route optimization failed, falling back to geometric order: %s", outcome.error)
            return None

        result = outcome.value
        if result is None or not _same_stops(result.waypoints, waypoints):
            log.warning("Route optimization returned a different stop set, falling back to geometric order")
            return None

        return OrderResult(
            waypoints=list(result.waypoints),
            tier="provider",
            distance_m=result.distance_m,
            duration_s=result.duration_s,
        )

    async def optimize(self, start: Optional[Coordinate], waypoints: Sequence[Waypoint]) -> OrderResult:
        """
        Order ``waypoints`` for a trip from ``start``.

        Raises PreconditionError before touching the network when there is no
        start or fewer than two stops; otherwise always returns an order.
        """
        check_preconditions(start, waypoints, self.max_waypoints)

        result = await self._provider_tier(start, waypoints)
        if result is not None:
            return result

        return OrderResult(waypoints=geometric_order(start, waypoints), tier="geometric")
