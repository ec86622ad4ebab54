from __future__ import annotations

import threading
import time
from typing import List, Optional, Sequence

import pytest

from springs_trip.core.models import POI, Coordinate, Waypoint
from springs_trip.exceptions import ProviderError
from springs_trip.providers.base import (
    DirectionsProvider,
    DirectionsResult,
    OptimizedOrder,
    OrderProvider,
    POIProvider,
)


def wp(wid: str, lat: float, lng: float, name: Optional[str] = None, **attributes) -> Waypoint:
    return Waypoint(id=wid, name=name or wid.replace("-", " ").title(), lat=lat, lng=lng, attributes=attributes)


@pytest.fixture
def start() -> Coordinate:
    return Coordinate(lat=47.60, lng=-120.74)


@pytest.fixture
def abc() -> List[Waypoint]:
    return [
        wp("a", 48.0, -121.0),
        wp("b", 46.0, -119.0),
        wp("c", 47.5, -120.5),
    ]


@pytest.fixture
def catalog(abc) -> List[Waypoint]:
    return abc + [
        wp("sol-duc", 47.9689, -123.8631, "Sol Duc Hot Springs", temp_f=104, fee=15, description="Olympic resort pools"),
        wp("baker", 48.7637, -121.6665, "Baker Hot Springs", temp_f=100, fee=0, description="Primitive forest pool"),
        wp("goldmyer", 47.4844, -121.3922, "Goldmyer Hot Springs", temp_f=108, fee=20),
    ]


class ReversingOrderProvider(OrderProvider):
    """Answers with the input order reversed, counting calls."""

    def __init__(self, delay_s: float = 0.0):
        self.delay_s = delay_s
        self.calls = 0

    def optimize_order(self, start: Coordinate, waypoints: Sequence[Waypoint]) -> OptimizedOrder:
        self.calls += 1
        if self.delay_s:
            time.sleep(self.delay_s)
        return OptimizedOrder(waypoints=list(reversed(waypoints)), distance_m=160934.0, duration_s=7200.0)


class FailingOrderProvider(OrderProvider):
    def __init__(self, exc: Exception = None):
        self.exc = exc or ProviderError("503 Service Unavailable")
        self.calls = 0

    def optimize_order(self, start, waypoints):
        self.calls += 1
        raise self.exc


class BlockingOrderProvider(OrderProvider):
    """Holds the call until ``gate`` is set, then returns the input order."""

    def __init__(self):
        self.gate = threading.Event()

    def optimize_order(self, start, waypoints):
        self.gate.wait(timeout=5)
        return OptimizedOrder(waypoints=list(waypoints))


class StraightDirections(DirectionsProvider):
    """Echoes the requested coordinates back with fixed stats."""

    def __init__(self):
        self.requests: List[List[Coordinate]] = []

    def directions(self, coordinates):
        self.requests.append(list(coordinates))
        return DirectionsResult(geometry=list(coordinates), distance_m=321868.0, duration_s=14400.0)


class FailingDirections(DirectionsProvider):
    def directions(self, coordinates):
        raise ProviderError("Mapbox API error")


class FixedPOIs(POIProvider):
    def __init__(self, pois: List[POI]):
        self.pois = pois
        self.bboxes = []

    def pois_in_envelope(self, bbox):
        self.bboxes.append(bbox)
        return list(self.pois)


class FailingPOIs(POIProvider):
    def pois_in_envelope(self, bbox):
        raise ProviderError("Overpass API error")


class FakeHTTP:
    """Stands in for HTTPClient; returns queued payloads and records calls."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def _next(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    def get_json(self, url, params=None, headers=None, timeout_s=None):
        return self._next("GET", url, params=params, headers=headers)

    def post_json(self, url, payload, headers=None, timeout_s=None):
        return self._next("POST", url, payload=payload, headers=headers)

    def post_form(self, url, data, headers=None, timeout_s=None):
        return self._next("POST", url, data=data, headers=headers)
