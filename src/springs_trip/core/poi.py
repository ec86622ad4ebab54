from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

from springs_trip.core.models import POI, Coordinate
from springs_trip.core.timeout import run_with_timeout
from springs_trip.geo.distance import distance_to_route_miles, envelope
from springs_trip.providers.base import POIProvider
from springs_trip.providers.overpass import CATEGORIES

log = logging.getLogger(__name__)


def pick_representatives(
    pois: Sequence[POI],
    route: Sequence[Coordinate],
    max_categories: int = 3,
) -> List[POI]:
    """
    One POI per category, nearest the route wins.

    Unnamed POIs are dropped, distances are filled in, and categories follow
    the fixed display order, capped at ``max_categories``.
    """
    by_category: Dict[str, List[POI]] = {}
    for p in pois:
        if not p.name:
            continue
        by_category.setdefault(p.category, []).append(p)

    ordered = [c for c in CATEGORIES if c in by_category]
    ordered += [c for c in by_category if c not in CATEGORIES]

    picks: List[POI] = []
    for category in ordered[:max_categories]:
        measured = [
            p.model_copy(update={"distance_miles": distance_to_route_miles(Coordinate(lat=p.lat, lng=p.lng), route)})
            for p in by_category[category]
        ]
        picks.append(min(measured, key=lambda p: p.distance_miles))
    return picks


class POIEnricher:
    def __init__(
        self,
        provider: Optional[POIProvider] = None,
        buffer_deg: float = 0.05,
        max_categories: int = 3,
        timeout_s: float = 15.0,
    ):
        self.provider = provider
        self.buffer_deg = buffer_deg
        self.max_categories = max_categories
        self.timeout_s = timeout_s

    async def enrich(self, route: Sequence[Coordinate]) -> List[POI]:
        """Representative amenities near ``route``; empty on any provider failure."""
        if self.provider is None or not route:
            return []

        bbox = envelope(route, self.buffer_deg)
        outcome = await run_with_timeout(
            self.provider.pois_in_envelope, bbox, timeout_s=self.timeout_s, label="POI lookup"
        )
        if not outcome.ok:
            if outcome.status == "error":
                log.warning("Failed to find recommendations: %s", outcome.error)
            return []

        return pick_representatives(outcome.value or [], route, self.max_categories)
