from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

from springs_trip.config import Settings, settings
from springs_trip.core.geometry import GeometryFetcher
from springs_trip.core.models import Waypoint
from springs_trip.core.optimizer import RouteOptimizer
from springs_trip.core.poi import POIEnricher
from springs_trip.core.session import TripSession
from springs_trip.providers.base import CatalogSource, Geocoder
from springs_trip.storage.slot import SlotStore, TripRepository

log = logging.getLogger(__name__)


@dataclass
class PlannerServices:
    """Provider-backed stages shared by every session built from one config."""

    optimizer: RouteOptimizer
    geometry: GeometryFetcher
    poi: POIEnricher
    geocoder: Geocoder
    max_waypoints: int


def load_catalog(source: Optional[CatalogSource] = None) -> List[Waypoint]:
    """Fetch the spring catalog once; callers keep the list for the session."""
    if source is None:
        from springs_trip.providers.teable import TeableCatalogSource

        source = TeableCatalogSource()
    return source.fetch_waypoints()


def build_services(cfg: Optional[Settings] = None) -> PlannerServices:
    """
    Wire the real providers configured in ``cfg``.

    Providers without credentials are still attached; their tier is skipped
    at call time and the geometric / straight-line fallbacks take over.
    """
    cfg = cfg or settings

    # Local imports to keep provider modules out of pure-engine imports
    from springs_trip.providers.google_routes import GoogleRoutesProvider
    from springs_trip.providers.mapbox import MapboxDirectionsProvider
    from springs_trip.providers.nominatim import NominatimGeocoder
    from springs_trip.providers.overpass import OverpassPOIProvider

    services = PlannerServices(
        optimizer=RouteOptimizer(
            GoogleRoutesProvider(api_key=cfg.google_api_key, url=cfg.google_routes_url),
            timeout_s=cfg.optimize_timeout_s,
            max_waypoints=cfg.max_waypoints,
        ),
        geometry=GeometryFetcher(
            MapboxDirectionsProvider(token=cfg.mapbox_token, url=cfg.mapbox_directions_url),
            timeout_s=cfg.provider_timeout_s,
            fallback_speed_mph=cfg.fallback_speed_mph,
        ),
        poi=POIEnricher(
            OverpassPOIProvider(url=cfg.overpass_url),
            buffer_deg=cfg.poi_buffer_deg,
            max_categories=cfg.poi_max_categories,
            timeout_s=cfg.provider_timeout_s,
        ),
        geocoder=NominatimGeocoder(url=cfg.nominatim_url),
        max_waypoints=cfg.max_waypoints,
    )
    log.info(
        "Providers ready: optimizer=%s, directions=%s",
        "google" if cfg.google_api_key else "geometric",
        "mapbox" if cfg.mapbox_token else "straight",
    )
    return services


def new_session(
    catalog: Sequence[Waypoint],
    services: PlannerServices,
    trips: Optional[TripRepository] = None,
) -> TripSession:
    """Fresh trip state on top of already-wired providers."""
    return TripSession(
        catalog,
        optimizer=services.optimizer,
        geometry=services.geometry,
        poi=services.poi,
        trips=trips,
        geocoder=services.geocoder,
        max_waypoints=services.max_waypoints,
    )


def build_session(
    catalog: Sequence[Waypoint],
    cfg: Optional[Settings] = None,
    store: Optional[SlotStore] = None,
) -> TripSession:
    """One-shot wiring for the CLI: providers plus a slot-backed repository."""
    cfg = cfg or settings
    if store is None:
        store = SlotStore(Path(cfg.data_dir) / "storage.json") if cfg.data_dir else SlotStore()

    session = new_session(catalog, build_services(cfg), TripRepository(store, slot=cfg.trip_slot))
    log.info("Session ready: %d springs", len(session.catalog))
    return session
