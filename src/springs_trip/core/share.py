"""URL form of a trip: ``?springs=a,b,c&start=lat,lng``."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence
from urllib.parse import parse_qs, urlencode, urlsplit

from pydantic import ValidationError

from springs_trip.core.models import Coordinate, Waypoint

log = logging.getLogger(__name__)

SPRINGS_PARAM = "springs"
START_PARAM = "start"
MAX_URL_LENGTH = 2000


@dataclass
class DecodedTrip:
    waypoint_ids: List[str]
    start: Optional[Coordinate]


def _fmt(v: float) -> str:
    return f"{round(v, 6):.6f}".rstrip("0").rstrip(".")


def format_start(start: Coordinate) -> str:
    return f"{_fmt(start.lat)},{_fmt(start.lng)}"


def parse_start(text: str) -> Optional[Coordinate]:
    """``"47.6062,-120.7401"`` -> Coordinate; None when malformed or out of range."""
    parts = [p.strip() for p in text.split(",")]
    if len(parts) != 2:
        return None
    try:
        return Coordinate(lat=float(parts[0]), lng=float(parts[1]))
    except (ValueError, ValidationError):
        return None


def encode(waypoint_ids: Sequence[str], start: Optional[Coordinate], base_url: str = "") -> str:
    """
    Query string (or full URL when ``base_url`` is given) for a trip.

    Ids keep their order. Long trips still encode but log a warning since
    some browsers and chat clients truncate past ~2000 characters.
    """
    params: Dict[str, str] = {
        SPRINGS_PARAM: ",".join(waypoint_ids),
        START_PARAM: format_start(start) if start is not None else "",
    }
    query = urlencode(params)
    url = f"{base_url}?{query}" if base_url else query
    if len(url) > MAX_URL_LENGTH:
        log.warning("Share URL is %d characters (limit ~%d); it may be truncated", len(url), MAX_URL_LENGTH)
    return url


def decode(url_or_query: str) -> DecodedTrip:
    """Parse a share URL or bare query string. Missing parts decode as empty."""
    text = url_or_query.strip()
    if "?" in text or "://" in text:
        text = urlsplit(text).query
    params = parse_qs(text.lstrip("?"), keep_blank_values=True)

    ids: List[str] = []
    raw_springs = (params.get(SPRINGS_PARAM) or [""])[0]
    for wid in raw_springs.split(","):
        wid = wid.strip()
        if wid and wid not in ids:
            ids.append(wid)

    start = None
    raw_start = (params.get(START_PARAM) or [""])[0]
    if raw_start:
        start = parse_start(raw_start)
        if start is None:
            log.warning("Ignoring malformed start parameter %r", raw_start)

    return DecodedTrip(waypoint_ids=ids, start=start)


def resolve(waypoint_ids: Sequence[str], catalog: Dict[str, Waypoint]) -> List[str]:
    """Keep ids present in ``catalog``, in their original relative order."""
    kept = [wid for wid in waypoint_ids if wid in catalog]
    dropped = len(waypoint_ids) - len(kept)
    if dropped:
        log.info("Dropped %d trip stops no longer in the catalog", dropped)
    return kept


def google_maps_url(start: Optional[Coordinate], stops: Sequence[Waypoint]) -> str:
    """Directions link that opens the whole trip in Google Maps."""
    points = []
    if start is not None:
        points.append(f"{start.lat},{start.lng}")
    points.extend(f"{w.lat},{w.lng}" for w in stops)
    return "https://www.google.com/maps/dir/" + "/".join(points)
