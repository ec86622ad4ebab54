"""The planner session: one trip, its derived route, and every user command.

A :class:`TripSession` is built once per client and handed to whatever drives
it (CLI, HTTP handler, tests). It owns the trip state and the derived route /
POI results; collaborators are passed in at construction.
"""
from __future__ import annotations

import inspect
import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

from springs_trip.config import settings
from springs_trip.core import share
from springs_trip.core.geometry import GeometryFetcher
from springs_trip.core.itinerary import direction_steps, search_catalog
from springs_trip.core.models import POI, Coordinate, DirectionStep, RouteResult, StoredTrip, Waypoint
from springs_trip.core.optimizer import RouteOptimizer, check_preconditions
from springs_trip.core.poi import POIEnricher
from springs_trip.core.state import TripState
from springs_trip.core.timeout import run_with_timeout
from springs_trip.exceptions import PreconditionError, UnknownWaypointError
from springs_trip.providers.base import Geocoder
from springs_trip.storage.slot import TripRepository

log = logging.getLogger(__name__)


class TripSession:
    def __init__(
        self,
        catalog: Sequence[Waypoint],
        optimizer: Optional[RouteOptimizer] = None,
        geometry: Optional[GeometryFetcher] = None,
        poi: Optional[POIEnricher] = None,
        trips: Optional[TripRepository] = None,
        geocoder: Optional[Geocoder] = None,
        max_waypoints: int = 50,
    ):
        self.catalog: Dict[str, Waypoint] = {w.id: w for w in catalog}
        self.optimizer = optimizer or RouteOptimizer(max_waypoints=max_waypoints)
        self.geometry = geometry or GeometryFetcher()
        self.poi = poi or POIEnricher()
        self.trips = trips
        self.geocoder = geocoder

        self.state = TripState(max_waypoints=max_waypoints)
        self.route: Optional[RouteResult] = None
        self.pois: List[POI] = []

        self.in_flight = False
        self._seq = 0

        self.commands: Dict[str, Callable[..., Any]] = {
            "add_waypoint": self.add_waypoint,
            "remove_waypoint": self.remove_waypoint,
            "toggle_waypoint": self.toggle_waypoint,
            "set_start": self.set_start,
            "locate_start": self.locate_start,
            "optimize": self.optimize,
            "clear": self.clear,
            "save": self.save,
            "share": self.share,
            "restore": self.restore,
        }

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    async def dispatch(self, command: str, **kwargs: Any) -> Any:
        """Run a user intent by name, e.g. ``dispatch("add_waypoint", waypoint_id="baker")``."""
        handler = self.commands.get(command)
        if handler is None:
            raise ValueError(f"Unknown command: '{command}' (supported: {', '.join(self.commands)})")
        result = handler(**kwargs)
        if inspect.isawaitable(result):
            result = await result
        return result

    # ------------------------------------------------------------------
    # Trip state transitions
    # ------------------------------------------------------------------

    def _invalidate(self) -> None:
        # Any trip change makes an outstanding optimize result stale
        self._seq += 1
        self.route = None
        self.pois = []

    def _require(self, waypoint_id: str) -> Waypoint:
        wp = self.catalog.get(waypoint_id)
        if wp is None:
            raise UnknownWaypointError(f"Unknown spring: {waypoint_id}")
        return wp

    def add_waypoint(self, waypoint_id: str) -> bool:
        self._require(waypoint_id)
        added = self.state.add(waypoint_id)
        if added:
            self._invalidate()
        return added

    def remove_waypoint(self, waypoint_id: str) -> bool:
        removed = self.state.remove(waypoint_id)
        if removed:
            self._invalidate()
        return removed

    def toggle_waypoint(self, waypoint_id: str) -> bool:
        if waypoint_id not in self.state:
            self._require(waypoint_id)
        selected = self.state.toggle(waypoint_id)
        self._invalidate()
        return selected

    def set_start(self, lat: float, lng: float) -> Coordinate:
        start = Coordinate(lat=lat, lng=lng)
        self.state.start = start
        self._invalidate()
        return start

    async def locate_start(self, address: str) -> Coordinate:
        """Geocode ``address`` and use it as the trip start."""
        if self.geocoder is None:
            raise PreconditionError("Address lookup is not available")
        outcome = await run_with_timeout(
            self.geocoder.search, address, timeout_s=settings.provider_timeout_s, label="geocoding"
        )
        if not outcome.ok or outcome.value is None:
            if outcome.status == "error":
                log.warning("Geocoding %r failed: %s", address, outcome.error)
            raise PreconditionError(f"Could not find a location for '{address}'")
        return self.set_start(outcome.value.lat, outcome.value.lng)

    async def describe_start(self) -> Optional[str]:
        """Human label for the start: reverse-geocoded name, else coordinates."""
        start = self.state.start
        if start is None:
            return None
        if self.geocoder is not None:
            outcome = await run_with_timeout(
                self.geocoder.reverse, start, timeout_s=settings.provider_timeout_s, label="reverse geocoding"
            )
            if outcome.ok and outcome.value:
                return outcome.value
        return start.label()

    def clear(self) -> None:
        """Drop every selected spring and the derived route; the start stays."""
        self.state.clear()
        self._invalidate()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def selected_waypoints(self) -> List[Waypoint]:
        return [self.catalog[wid] for wid in self.state.waypoint_ids if wid in self.catalog]

    def search(self, text: str = "") -> List[Waypoint]:
        return search_catalog(list(self.catalog.values()), text)

    def directions(self) -> List[DirectionStep]:
        if self.state.start is None:
            return []
        return direction_steps(self.state.start, self.selected_waypoints())

    def google_maps_url(self) -> Optional[str]:
        stops = self.selected_waypoints()
        if not stops:
            return None
        return share.google_maps_url(self.state.start, stops)

    # ------------------------------------------------------------------
    # Optimize
    # ------------------------------------------------------------------

    def _is_current(self, seq: int, stage: str) -> bool:
        if seq != self._seq:
            log.debug("Dropping stale %s result (seq %d, current %d)", stage, seq, self._seq)
            return False
        return True

    async def optimize(self) -> Optional[RouteResult]:
        """
        Order the selected springs, fetch the path and nearby amenities.

        Returns None without touching anything when another optimize is
        already running, or when the trip changed before this one finished.
        """
        if self.in_flight:
            log.info("Optimize already in progress; ignoring request")
            return None

        start = self.state.start
        waypoints = self.selected_waypoints()
        check_preconditions(start, waypoints, self.state.max_waypoints)

        self._seq += 1
        seq = self._seq
        self.in_flight = True
        try:
            order = await self.optimizer.optimize(start, waypoints)
            if not self._is_current(seq, "order"):
                return None

            route = await self.geometry.fetch(start, order)
            if not self._is_current(seq, "geometry"):
                return None

            pois = await self.poi.enrich(route.geometry)
            if not self._is_current(seq, "POI"):
                return None

            self.state.reorder(route.waypoint_ids)
            self.route = route
            self.pois = pois
            log.info(
                "Trip optimized via %s tier: %d stops, %.1f mi%s",
                route.tier,
                len(route.order),
                route.distance_miles,
                " (approx.)" if route.approximate else "",
            )
            return route
        finally:
            self.in_flight = False

    # ------------------------------------------------------------------
    # Persistence & sharing
    # ------------------------------------------------------------------

    def save(self) -> bool:
        """Write the trip to the durable slot; False when there is nothing to save."""
        if self.trips is None:
            log.warning("No trip store configured; trip not saved")
            return False
        if not self.state.waypoint_ids:
            return False
        self.trips.save(StoredTrip(waypoint_ids=list(self.state.waypoint_ids), start=self.state.start))
        return True

    def load_saved(self) -> bool:
        """Apply the saved trip unless the session already holds one."""
        if self.trips is None or not self.state.is_empty:
            return False
        trip = self.trips.load(self.catalog)
        if trip is None:
            return False
        self.state.replace(trip.waypoint_ids, trip.start)
        self._invalidate()
        return True

    def share(self, base_url: str = "") -> str:
        return share.encode(self.state.waypoint_ids, self.state.start, base_url)

    def apply_share(self, url_or_query: str) -> bool:
        decoded = share.decode(url_or_query)
        ids = share.resolve(decoded.waypoint_ids, self.catalog)
        if not ids:
            return False
        self.state.replace(ids, decoded.start)
        self._invalidate()
        return True

    def restore(self, share_query: Optional[str] = None) -> Optional[str]:
        """
        Session start-up: a shared link wins over the local save.

        Returns ``"share"``, ``"local"`` or None depending on what populated
        the trip.
        """
        source = None
        if share_query and self.apply_share(share_query):
            source = "share"
        if self.load_saved():
            source = "local"
        return source
