import asyncio

import pytest

from conftest import FailingDirections, FakeHTTP
from springs_trip.core.geometry import GeometryFetcher
from springs_trip.core.models import Coordinate
from springs_trip.core.optimizer import RouteOptimizer
from springs_trip.core.session import TripSession
from springs_trip.exceptions import ConfigurationError, MalformedResponseError, ProviderError
from springs_trip.providers.google_routes import GoogleRoutesProvider, map_permutation
from springs_trip.providers.mapbox import MapboxDirectionsProvider
from springs_trip.providers.nominatim import NominatimGeocoder
from springs_trip.providers.overpass import OverpassPOIProvider, build_query, parse_elements


# ── Google Routes ────────────────────────────────────────────────────────

def test_google_request_uses_last_stop_as_destination(start, abc):
    body = GoogleRoutesProvider(api_key="k", http=FakeHTTP()).build_request(start, abc)

    assert body["origin"]["location"]["latLng"] == {"latitude": 47.60, "longitude": -120.74}
    assert body["destination"]["location"]["latLng"] == {"latitude": 47.5, "longitude": -120.5}
    assert [i["location"]["latLng"]["latitude"] for i in body["intermediates"]] == [48.0, 46.0]
    assert body["optimizeWaypointOrder"] is True


def test_google_maps_permutation_back_onto_waypoints(start, abc):
    http = FakeHTTP({"routes": [{"optimizedIntermediateWaypointIndex": [1, 0], "distanceMeters": 250000, "duration": "10800s"}]})
    result = GoogleRoutesProvider(api_key="secret", http=http).optimize_order(start, abc)

    assert [w.id for w in result.waypoints] == ["b", "a", "c"]
    assert result.distance_m == 250000
    assert result.duration_s == 10800.0

    method, _, kwargs = http.calls[0]
    assert method == "POST"
    assert kwargs["headers"]["X-Goog-Api-Key"] == "secret"
    assert "optimizedIntermediateWaypointIndex" in kwargs["headers"]["X-Goog-FieldMask"]


def test_google_two_stops_without_index_list(start, abc):
    http = FakeHTTP({"routes": [{"distanceMeters": 1000, "duration": "60s"}]})
    result = GoogleRoutesProvider(api_key="k", http=http).optimize_order(start, abc[:2])
    assert [w.id for w in result.waypoints] == ["a", "b"]


def test_google_without_key_raises_configuration_error(start, abc):
    http = FakeHTTP()
    with pytest.raises(ConfigurationError):
        GoogleRoutesProvider(api_key="", http=http).optimize_order(start, abc)
    assert http.calls == []


@pytest.mark.parametrize("payload", [{}, {"routes": []}, {"routes": [{"optimizedIntermediateWaypointIndex": [0, 0]}]}, {"routes": [{"optimizedIntermediateWaypointIndex": [1, 0], "distanceMeters": "12 km"}]}])
def test_google_malformed_payloads(start, abc, payload):
    with pytest.raises(MalformedResponseError):
        GoogleRoutesProvider(api_key="k", http=FakeHTTP(payload)).optimize_order(start, abc)


def test_google_non_numeric_distance_falls_back_to_geometric_tier(start, abc):
    http = FakeHTTP({"routes": [{"optimizedIntermediateWaypointIndex": [1, 0], "distanceMeters": "12 km"}]})
    session = TripSession(
        abc,
        optimizer=RouteOptimizer(GoogleRoutesProvider(api_key="k", http=http)),
        geometry=GeometryFetcher(FailingDirections()),
    )
    for w in abc:
        session.add_waypoint(w.id)
    session.set_start(start.lat, start.lng)

    route = asyncio.run(session.optimize())

    assert route.tier == "geometric"
    assert route.geometry_source == "straight"
    assert route.approximate is True
    assert route.waypoint_ids == ["c", "a", "b"]


def test_google_numeric_string_distance_is_accepted(start, abc):
    http = FakeHTTP({"routes": [{"optimizedIntermediateWaypointIndex": [0, 1], "distanceMeters": "1500"}]})
    result = GoogleRoutesProvider(api_key="k", http=http).optimize_order(start, abc)
    assert result.distance_m == 1500.0


def test_map_permutation_rejects_out_of_range(abc):
    with pytest.raises(MalformedResponseError):
        map_permutation(abc, [0, 1, 3])
    with pytest.raises(MalformedResponseError):
        map_permutation(abc, "0,1,2")
    assert [w.id for w in map_permutation(abc, [2, 0, 1])] == ["c", "a", "b"]


# ── Mapbox ───────────────────────────────────────────────────────────────

def test_mapbox_parses_geojson_route(start):
    stop = Coordinate(lat=47.5, lng=-120.5)
    http = FakeHTTP({
        "code": "Ok",
        "routes": [{
            "geometry": {"type": "LineString", "coordinates": [[-120.74, 47.6], [-120.6, 47.55], [-120.5, 47.5]]},
            "distance": 24140.1,
            "duration": 1500.0,
        }],
    })
    result = MapboxDirectionsProvider(token="pk", url="https://mapbox.test/driving", http=http).directions([start, stop])

    assert [(c.lat, c.lng) for c in result.geometry] == [(47.6, -120.74), (47.55, -120.6), (47.5, -120.5)]
    assert result.distance_m == 24140.1
    assert result.duration_s == 1500.0

    _, url, kwargs = http.calls[0]
    assert url == "https://mapbox.test/driving/-120.74,47.6;-120.5,47.5"
    assert kwargs["params"]["geometries"] == "geojson"


def test_mapbox_error_code_is_malformed(start):
    http = FakeHTTP({"code": "NoRoute", "message": "No route found"})
    with pytest.raises(MalformedResponseError):
        MapboxDirectionsProvider(token="pk", http=http).directions([start, Coordinate(lat=47.5, lng=-120.5)])


def test_mapbox_without_token(start):
    with pytest.raises(ConfigurationError):
        MapboxDirectionsProvider(token="", http=FakeHTTP()).directions([start, start])


# ── Overpass ─────────────────────────────────────────────────────────────

def test_overpass_query_covers_categories_and_bbox():
    q = build_query((46.95, -121.05, 48.05, -119.95))
    assert q.startswith("[out:json];")
    for fragment in ('"amenity"="restaurant"', '"amenity"="fuel"', '"tourism"="camp_site"', '"amenity"="cafe"'):
        assert fragment in q
    assert "(46.950000,-121.050000,48.050000,-119.950000)" in q
    assert q.rstrip().endswith("out center 20;")


def test_overpass_elements_without_name_are_dropped():
    data = {"elements": [
        {"id": 1, "lat": 47.1, "lon": -120.1, "tags": {"amenity": "fuel", "name": "Chevron"}},
        {"id": 2, "lat": 47.2, "lon": -120.2, "tags": {"amenity": "cafe"}},
        {"id": 3, "center": {"lat": 47.3, "lon": -120.3}, "tags": {"tourism": "camp_site", "name": "Lake Camp"}},
        {"id": 4, "lat": 47.4, "lon": -120.4},
    ]}
    pois = parse_elements(data)
    assert [(p.category, p.name, p.lat) for p in pois] == [("fuel", "Chevron", 47.1), ("camp_site", "Lake Camp", 47.3)]


def test_overpass_posts_form_query():
    http = FakeHTTP({"elements": []})
    assert OverpassPOIProvider(url="https://overpass.test", http=http).pois_in_envelope((1, 2, 3, 4)) == []
    _, url, kwargs = http.calls[0]
    assert url == "https://overpass.test"
    assert "data" in kwargs["data"]


def test_overpass_bad_payload():
    with pytest.raises(MalformedResponseError):
        parse_elements({"remark": "runtime error"})


# ── Nominatim ────────────────────────────────────────────────────────────

def test_nominatim_search_and_reverse():
    http = FakeHTTP([{"lat": "47.6062", "lon": "-122.3321"}], {"display_name": "Seattle, WA"}, [])
    geo = NominatimGeocoder(url="https://nominatim.test", http=http)

    assert geo.search("Seattle") == Coordinate(lat=47.6062, lng=-122.3321)
    assert geo.reverse(Coordinate(lat=47.6062, lng=-122.3321)) == "Seattle, WA"
    assert geo.search("Nowhere at all") is None


def test_http_errors_surface_as_provider_errors():
    http = FakeHTTP(ProviderError("GET failed: 500"))
    with pytest.raises(ProviderError):
        NominatimGeocoder(http=http).search("x")
