"""Overpass API: amenities a traveller wants near the route."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

from springs_trip.config import settings
from springs_trip.core.models import POI
from springs_trip.exceptions import MalformedResponseError
from springs_trip.providers.base import POIProvider
from springs_trip.providers.http import HTTPClient

log = logging.getLogger(__name__)

# category -> (OSM key, OSM value); dict order is the display order
CATEGORIES: Dict[str, Tuple[str, str]] = {
    "restaurant": ("amenity", "restaurant"),
    "fuel": ("amenity", "fuel"),
    "camp_site": ("tourism", "camp_site"),
    "cafe": ("amenity", "cafe"),
}

CATEGORY_LABELS: Dict[str, str] = {
    "restaurant": "Restaurants",
    "fuel": "Gas Stations",
    "camp_site": "Campgrounds",
    "cafe": "Cafes",
}


def build_query(bbox: Tuple[float, float, float, float], limit: int = 20) -> str:
    """Overpass QL over a ``(south, west, north, east)`` box."""
    box = ",".join(f"{v:.6f}" for v in bbox)
    lines = [f'  node["{k}"="{v}"]({box});' for k, v in CATEGORIES.values()]
    return "[out:json];\n(\n" + "\n".join(lines) + f"\n);\nout center {limit};\n"


def _category(tags: Dict[str, Any]) -> Optional[str]:
    for name, (k, v) in CATEGORIES.items():
        if tags.get(k) == v:
            return name
    return None


def parse_elements(data: Any) -> List[POI]:
    if not isinstance(data, dict) or not isinstance(data.get("elements"), list):
        raise MalformedResponseError("Overpass response has no elements list")

    out: List[POI] = []
    for el in data["elements"]:
        tags = el.get("tags") or {}
        name = tags.get("name")
        if not name:
            continue
        category = _category(tags)
        if category is None:
            continue
        center = el.get("center") or {}
        lat = el.get("lat", center.get("lat"))
        lon = el.get("lon", center.get("lon"))
        if lat is None or lon is None:
            continue
        out.append(POI(category=category, name=name, lat=float(lat), lng=float(lon), osm_id=el.get("id")))
    return out


class OverpassPOIProvider(POIProvider):
    def __init__(self, url: Optional[str] = None, http: Optional[HTTPClient] = None, limit: int = 20):
        self.url = url or settings.overpass_url
        self.http = http or HTTPClient(settings.user_agent, timeout_s=settings.http_timeout_s)
        self.limit = limit

    def pois_in_envelope(self, bbox: Tuple[float, float, float, float]) -> List[POI]:
        query = build_query(bbox, self.limit)
        data = self.http.post_form(self.url, {"data": query})
        pois = parse_elements(data)
        log.info("Overpass returned %d named POIs in %s", len(pois), bbox)
        return pois
