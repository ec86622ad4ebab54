import asyncio

import pytest

from conftest import FailingDirections, FailingPOIs, FixedPOIs, StraightDirections
from springs_trip.core.geometry import METERS_PER_MILE, GeometryFetcher, straight_route
from springs_trip.core.models import POI, Coordinate
from springs_trip.core.optimizer import OrderResult
from springs_trip.core.poi import POIEnricher, pick_representatives
from springs_trip.geo.distance import approximate_path_miles


def test_directions_success(start, abc):
    provider = StraightDirections()
    route = asyncio.run(GeometryFetcher(provider).fetch(start, OrderResult(waypoints=abc, tier="provider")))

    assert provider.requests[0][0] == start
    assert len(provider.requests[0]) == 4
    assert route.geometry_source == "directions"
    assert route.approximate is False
    assert route.tier == "provider"
    assert route.distance_miles == pytest.approx(321868.0 / METERS_PER_MILE)
    assert route.duration_s == 14400.0


@pytest.mark.parametrize("provider", [None, FailingDirections()])
def test_straight_fallback_is_fully_measured(start, abc, provider):
    route = asyncio.run(GeometryFetcher(provider, fallback_speed_mph=45).fetch(start, OrderResult(waypoints=abc, tier="geometric")))

    path = [start] + [w.coordinate for w in abc]
    assert route.geometry_source == "straight"
    assert route.geometry == path
    assert route.approximate is True
    assert route.distance_miles == pytest.approx(approximate_path_miles(path))
    assert route.duration_s == pytest.approx(route.distance_miles / 45 * 3600)
    assert route.waypoint_ids == ["a", "b", "c"]


def test_straight_fallback_keeps_provider_measurements(start, abc):
    order = OrderResult(waypoints=abc, tier="provider", distance_m=160934.0, duration_s=7200.0)
    route = asyncio.run(GeometryFetcher(FailingDirections()).fetch(start, order))

    assert route.geometry_source == "straight"
    assert route.approximate is False
    assert route.distance_miles == pytest.approx(100.0, rel=1e-4)
    assert route.duration_s == 7200.0


def test_straight_route_single_stop(start, abc):
    route = straight_route(start, abc[:1], 45.0)
    assert len(route.geometry) == 2


ROUTE = [Coordinate(lat=47.0, lng=-121.0), Coordinate(lat=47.0, lng=-120.0)]


def _poi(category, name, lat, lng=-120.5):
    return POI(category=category, name=name, lat=lat, lng=lng)


def test_representatives_one_per_category_nearest_route():
    pois = [
        _poi("restaurant", "Far Diner", 47.04),
        _poi("restaurant", "Near Diner", 47.01),
        _poi("fuel", "Chevron", 46.98),
        _poi("camp_site", "Lake Camp", 47.02),
        _poi("cafe", "Espresso Hut", 47.001),
    ]
    picks = pick_representatives(pois, ROUTE, max_categories=3)

    assert [p.category for p in picks] == ["restaurant", "fuel", "camp_site"]
    assert picks[0].name == "Near Diner"
    assert picks[0].distance_miles == pytest.approx(0.01 * 69.0975, abs=0.005)
    assert picks[1].distance_miles == pytest.approx(0.02 * 69.0975, abs=0.005)


def test_representatives_skip_unnamed_and_never_invent_distance():
    pois = [_poi("cafe", "", 47.01), _poi("cafe", "Bean There", 47.0)]
    picks = pick_representatives(pois, ROUTE)

    assert [p.name for p in picks] == ["Bean There"]
    assert picks[0].distance_miles == pytest.approx(0.0, abs=1e-6)


def test_enrich_queries_buffered_envelope():
    provider = FixedPOIs([_poi("fuel", "Chevron", 47.01)])
    pois = asyncio.run(POIEnricher(provider, buffer_deg=0.05).enrich(ROUTE))

    assert provider.bboxes == [pytest.approx((46.95, -121.05, 47.05, -119.95))]
    assert [p.name for p in pois] == ["Chevron"]


def test_enrich_failure_gives_empty_list():
    assert asyncio.run(POIEnricher(FailingPOIs()).enrich(ROUTE)) == []
    assert asyncio.run(POIEnricher(None).enrich(ROUTE)) == []
