from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from springs_trip.core.models import POI, Coordinate, Waypoint


@dataclass
class OptimizedOrder:
    waypoints: List[Waypoint]
    distance_m: Optional[float] = None
    duration_s: Optional[float] = None


@dataclass
class DirectionsResult:
    geometry: List[Coordinate]
    distance_m: float
    duration_s: float


class OrderProvider(ABC):
    """Reorder waypoints for minimal travel from a start point."""

    @abstractmethod
    def optimize_order(self, start: Coordinate, waypoints: Sequence[Waypoint]) -> OptimizedOrder:
        raise NotImplementedError


class DirectionsProvider(ABC):
    """Road-following path and aggregate stats through ordered coordinates."""

    @abstractmethod
    def directions(self, coordinates: Sequence[Coordinate]) -> DirectionsResult:
        raise NotImplementedError


class POIProvider(ABC):
    """Named amenities inside a bounding envelope."""

    @abstractmethod
    def pois_in_envelope(self, bbox: Tuple[float, float, float, float]) -> List[POI]:
        raise NotImplementedError


class CatalogSource(ABC):
    """Every selectable waypoint with coordinates and attributes."""

    @abstractmethod
    def fetch_waypoints(self) -> List[Waypoint]:
        raise NotImplementedError


class Geocoder(ABC):
    @abstractmethod
    def search(self, query: str) -> Optional[Coordinate]:
        raise NotImplementedError

    @abstractmethod
    def reverse(self, point: Coordinate) -> Optional[str]:
        raise NotImplementedError
