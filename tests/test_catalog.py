import pytest

from conftest import FakeHTTP
from springs_trip.exceptions import ConfigurationError, MalformedResponseError
from springs_trip.providers.teable import TeableCatalogSource, parse_gps, record_to_waypoint


@pytest.mark.parametrize(
    "text, expected",
    [
        ("47.9689° N, 123.8631° W", (47.9689, -123.8631)),
        ("47.9689 N 123.8631 W", (47.9689, -123.8631)),
        ("48.7637, -121.6665", (48.7637, -121.6665)),
        ("33.9° S, 18.4° E", (-33.9, 18.4)),
    ],
)
def test_parse_gps(text, expected):
    assert parse_gps(text) == pytest.approx(expected)


@pytest.mark.parametrize("text", ["", "somewhere near Leavenworth", "95.0, -120.0", "47.0, -190.0"])
def test_parse_gps_rejects_unusable(text):
    assert parse_gps(text) is None


def test_record_to_waypoint_keeps_attributes():
    wp = record_to_waypoint({
        "id": "rec123",
        "fields": {
            "name": "Sol Duc Hot Springs",
            "slug": "sol-duc",
            "gps": "47.9689° N, 123.8631° W",
            "temp_f": 104,
            "fee": 15,
            "access_type": "Resort",
            "description": "",
        },
    })
    assert wp.id == "sol-duc"
    assert wp.lat == 47.9689 and wp.lng == -123.8631
    assert wp.attributes["temp_f"] == 104
    assert wp.attributes["record_id"] == "rec123"
    assert "description" not in wp.attributes


def test_record_without_slug_uses_record_id():
    wp = record_to_waypoint({"id": "rec9", "fields": {"name": "Nameless", "gps": "46.5, -121.5"}})
    assert wp.id == "rec9"


def test_record_without_coordinates_is_excluded():
    assert record_to_waypoint({"id": "rec1", "fields": {"name": "Lost Spring", "gps": ""}}) is None


def _record(i, gps="47.0, -120.0", slug=None):
    return {"id": f"rec{i}", "fields": {"name": f"Spring {i}", "slug": slug or f"spring-{i}", "gps": gps}}


def test_catalog_pages_until_short_page():
    http = FakeHTTP(
        {"records": [_record(1), _record(2), _record(3, gps="nope")]},
        {"records": [_record(4, slug="spring-1"), _record(5)]},
    )
    source = TeableCatalogSource(base_url="https://teable.test", table_id="tbl", api_token="tok", http=http, page_size=3)

    springs = source.fetch_waypoints()

    assert [w.id for w in springs] == ["spring-1", "spring-2", "spring-5"]
    assert [c[2]["params"]["skip"] for c in http.calls] == [0, 3]
    assert http.calls[0][2]["headers"]["Authorization"] == "Bearer tok"
    assert http.calls[0][1] == "https://teable.test/api/table/tbl/record"


def test_catalog_needs_token():
    with pytest.raises(ConfigurationError):
        TeableCatalogSource(api_token="", http=FakeHTTP()).fetch_waypoints()


def test_catalog_malformed_response():
    source = TeableCatalogSource(api_token="tok", http=FakeHTTP({"data": []}))
    with pytest.raises(MalformedResponseError):
        source.fetch_waypoints()
