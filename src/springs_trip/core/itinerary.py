from __future__ import annotations

from typing import List, Sequence

from springs_trip.core.models import Coordinate, DirectionStep, Waypoint
from springs_trip.geo.distance import haversine_miles


def direction_steps(start: Coordinate, stops: Sequence[Waypoint]) -> List[DirectionStep]:
    """One leg per stop, measured as the crow flies."""
    steps: List[DirectionStep] = []
    prev = start
    for i, stop in enumerate(stops):
        if i == 0:
            instruction = f"Start from your location and drive to {stop.name or stop.id}"
        else:
            instruction = f"Continue to {stop.name or stop.id}"
        steps.append(DirectionStep(instruction=instruction, distance_miles=haversine_miles(prev, stop.coordinate)))
        prev = stop.coordinate
    return steps


def search_catalog(catalog: Sequence[Waypoint], text: str = "") -> List[Waypoint]:
    """Case-insensitive match on name or description."""
    needle = text.strip().lower()
    if not needle:
        return list(catalog)
    return [
        w for w in catalog
        if needle in w.name.lower() or needle in str(w.attributes.get("description") or "").lower()
    ]
