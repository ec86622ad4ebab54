"""Centralized settings for the springs trip planner."""
from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_prefix": "SPRINGS_TRIP_"}

    # Credentials: empty string means the provider tier is skipped
    google_api_key: str = ""
    mapbox_token: str = ""
    teable_api_token: str = ""

    # Endpoints
    google_routes_url: str = "https://routes.googleapis.com/directions/v2:computeRoutes"
    mapbox_directions_url: str = "https://api.mapbox.com/directions/v5/mapbox/driving"
    overpass_url: str = "https://overpass-api.de/api/interpreter"
    nominatim_url: str = "https://nominatim.openstreetmap.org"
    teable_base_url: str = "https://teable-snickers-u27640.vm.elestio.app"
    teable_table_id: str = "tbl0ZdZarej0x4Pv7lG"

    user_agent: str = "SpringsTrip/0.1.0 (contact: trips@example.com)"

    # Timeouts in seconds
    optimize_timeout_s: float = 10.0   # race window for the optimizing tier
    provider_timeout_s: float = 15.0   # directions / POI / geocoding
    http_timeout_s: int = 10

    # Routing behavior
    max_waypoints: int = 50           # Google Routes intermediate limit
    poi_buffer_deg: float = 0.05      # ~5 km around the route envelope
    poi_max_categories: int = 3
    fallback_speed_mph: float = 45.0  # duration estimate for straight segments
    catalog_page_size: int = 100

    # Storage
    data_dir: str = ""                # empty -> ~/.springs_trip
    trip_slot: str = "hotSpringsTrip"

    # Redis: empty string means disabled (graceful fallback)
    redis_url: str = ""
    ttl_catalog: int = 3600           # 1 h, spring records change rarely


settings = Settings()
