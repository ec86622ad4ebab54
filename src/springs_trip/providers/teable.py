"""Teable records API: the hot springs catalog."""
from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Optional, Tuple

from springs_trip.cache import keys
from springs_trip.cache.redis_client import cache_get_json, cache_set_json
from springs_trip.config import settings
from springs_trip.core.models import Waypoint
from springs_trip.exceptions import ConfigurationError, MalformedResponseError
from springs_trip.providers.base import CatalogSource
from springs_trip.providers.http import HTTPClient

log = logging.getLogger(__name__)

# "47.9689° N, 123.8631° W" (hemisphere letters optional, signs allowed)
_GPS_RE = re.compile(
    r"(?P<lat>-?\d+(?:\.\d+)?)\s*°?\s*(?P<ns>[NS])?\s*[,;\s]\s*(?P<lng>-?\d+(?:\.\d+)?)\s*°?\s*(?P<ew>[EW])?",
    re.IGNORECASE,
)

_ATTRIBUTE_FIELDS = ("temp_f", "fee", "access_type", "description", "gps")


def parse_gps(text: str) -> Optional[Tuple[float, float]]:
    """Parse a catalog GPS string into ``(lat, lng)``; None if unusable."""
    if not text:
        return None
    m = _GPS_RE.search(text)
    if not m:
        return None
    lat = float(m.group("lat"))
    lng = float(m.group("lng"))
    if (m.group("ns") or "").upper() == "S":
        lat = -abs(lat)
    if (m.group("ew") or "").upper() == "W":
        lng = -abs(lng)
    if not (-90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0):
        return None
    return lat, lng


def record_to_waypoint(record: Dict[str, Any]) -> Optional[Waypoint]:
    """Teable record -> Waypoint, or None when coordinates are missing/invalid."""
    fields = record.get("fields") or {}
    coords = parse_gps(str(fields.get("gps") or ""))
    if coords is None:
        return None
    lat, lng = coords

    wp_id = fields.get("slug") or record.get("id")
    if not wp_id:
        return None

    attributes = {k: fields.get(k) for k in _ATTRIBUTE_FIELDS if fields.get(k) not in (None, "")}
    attributes["record_id"] = record.get("id")

    return Waypoint(id=str(wp_id), name=fields.get("name") or "", lat=lat, lng=lng, attributes=attributes)


class TeableCatalogSource(CatalogSource):
    def __init__(
        self,
        base_url: Optional[str] = None,
        table_id: Optional[str] = None,
        api_token: Optional[str] = None,
        http: Optional[HTTPClient] = None,
        page_size: Optional[int] = None,
        redis_url: Optional[str] = None,
    ):
        self.base_url = (base_url or settings.teable_base_url).rstrip("/")
        self.table_id = table_id or settings.teable_table_id
        self.api_token = settings.teable_api_token if api_token is None else api_token
        self.http = http or HTTPClient(settings.user_agent, timeout_s=settings.http_timeout_s, tries=3)
        self.page_size = page_size or settings.catalog_page_size
        self.redis_url = settings.redis_url if redis_url is None else redis_url

    def _fetch_records(self) -> List[Dict[str, Any]]:
        if not self.api_token:
            raise ConfigurationError("Teable API token not set")

        url = f"{self.base_url}/api/table/{self.table_id}/record"
        headers = {"Authorization": f"Bearer {self.api_token}"}
        records: List[Dict[str, Any]] = []
        skip = 0
        while True:
            data = self.http.get_json(
                url,
                params={"fieldKeyType": "name", "take": self.page_size, "skip": skip},
                headers=headers,
            )
            page = data.get("records") if isinstance(data, dict) else None
            if not isinstance(page, list):
                raise MalformedResponseError("Teable response has no records list")
            records.extend(page)
            if len(page) < self.page_size:
                break
            skip += self.page_size
        return records

    def fetch_waypoints(self) -> List[Waypoint]:
        ck = keys.catalog(self.base_url, self.table_id)
        records = cache_get_json(ck, self.redis_url)
        if records is None:
            records = self._fetch_records()
            cache_set_json(ck, records, settings.ttl_catalog, self.redis_url)

        waypoints: List[Waypoint] = []
        seen: set[str] = set()
        for rec in records:
            wp = record_to_waypoint(rec)
            if wp is None:
                log.debug("Skipping record %s: no usable coordinates", rec.get("id"))
                continue
            if wp.id in seen:
                log.warning("Duplicate waypoint id %r in catalog, keeping the first", wp.id)
                continue
            seen.add(wp.id)
            waypoints.append(wp)

        log.info("Loaded %d waypoints (%d records)", len(waypoints), len(records))
        return waypoints
