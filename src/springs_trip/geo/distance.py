"""Great-circle distances and route-proximity helpers (miles)."""
from __future__ import annotations

from math import atan2, cos, radians, sin, sqrt
from typing import Iterable, Sequence, Tuple

from shapely.geometry import LineString, Point
from shapely.ops import nearest_points

from springs_trip.core.models import Coordinate


EARTH_RADIUS_MI = 3959.0

# (min_lat, min_lng, max_lat, max_lng)
Envelope = Tuple[float, float, float, float]


def haversine_miles(a: Coordinate, b: Coordinate) -> float:
    """Great-circle distance in miles between two points."""
    lat1r, lon1r, lat2r, lon2r = map(radians, [a.lat, a.lng, b.lat, b.lng])
    dlat = lat2r - lat1r
    dlon = lon2r - lon1r
    h = sin(dlat / 2) ** 2 + cos(lat1r) * cos(lat2r) * sin(dlon / 2) ** 2
    return EARTH_RADIUS_MI * 2 * atan2(sqrt(h), sqrt(1 - h))


def approximate_path_miles(points: Sequence[Coordinate]) -> float:
    """
    Sum of straight-line legs between consecutive points.

    Ignores the road network entirely, so it always undershoots a driven
    distance. Results built on it must be flagged ``approximate``.
    """
    total = 0.0
    for i in range(1, len(points)):
        total += haversine_miles(points[i - 1], points[i])
    return total


def envelope(points: Iterable[Coordinate], buffer_deg: float = 0.0) -> Envelope:
    """Axis-aligned bounding box around ``points``, grown by ``buffer_deg``."""
    pts = list(points)
    if not pts:
        raise ValueError("envelope() needs at least one point")
    lats = [p.lat for p in pts]
    lngs = [p.lng for p in pts]
    return (
        max(-90.0, min(lats) - buffer_deg),
        max(-180.0, min(lngs) - buffer_deg),
        min(90.0, max(lats) + buffer_deg),
        min(180.0, max(lngs) + buffer_deg),
    )


def _project(p: Coordinate, ref_lat_cos: float) -> Tuple[float, float]:
    # Local equirectangular plane: longitude shrinks with cos(latitude)
    return p.lng * ref_lat_cos, p.lat


def distance_to_route_miles(point: Coordinate, route: Sequence[Coordinate]) -> float:
    """
    Distance from ``point`` to the nearest point on the ``route`` polyline.

    The nearest point is located on a local equirectangular projection (good
    at trip scale) and the final distance is measured with haversine.
    """
    if not route:
        raise ValueError("distance_to_route_miles() needs a non-empty route")
    if len(route) == 1:
        return haversine_miles(point, route[0])

    ref_lat_cos = cos(radians(sum(p.lat for p in route) / len(route)))
    if ref_lat_cos <= 1e-9:
        ref_lat_cos = 1e-9

    line = LineString([_project(p, ref_lat_cos) for p in route])
    target = Point(_project(point, ref_lat_cos))
    _, on_line = nearest_points(target, line)

    nearest = Coordinate.model_construct(lat=on_line.y, lng=on_line.x / ref_lat_cos)
    return haversine_miles(point, nearest)


def format_duration(seconds: float) -> str:
    """``"2h 5m"`` for long drives, ``"45m"`` otherwise."""
    minutes = int(seconds // 60)
    hours = minutes // 60
    if hours > 0:
        return f"{hours}h {minutes % 60}m"
    return f"{minutes}m"
