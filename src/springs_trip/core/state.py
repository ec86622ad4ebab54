from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from springs_trip.core.models import Coordinate
from springs_trip.exceptions import TripLimitError

MAX_WAYPOINTS = 50


@dataclass
class TripState:
    """
    Ordered, duplicate-free waypoint ids plus the optional start location.

    Order is insertion order until an optimize pass rewrites it.
    """

    waypoint_ids: List[str] = field(default_factory=list)
    start: Optional[Coordinate] = None
    max_waypoints: int = MAX_WAYPOINTS

    def __len__(self) -> int:
        return len(self.waypoint_ids)

    def __contains__(self, waypoint_id: object) -> bool:
        return waypoint_id in self.waypoint_ids

    @property
    def is_empty(self) -> bool:
        return not self.waypoint_ids and self.start is None

    def add(self, waypoint_id: str) -> bool:
        """Append ``waypoint_id``; False if it was already selected."""
        if waypoint_id in self.waypoint_ids:
            return False
        if len(self.waypoint_ids) >= self.max_waypoints:
            raise TripLimitError(f"A trip holds at most {self.max_waypoints} springs")
        self.waypoint_ids.append(waypoint_id)
        return True

    def remove(self, waypoint_id: str) -> bool:
        if waypoint_id not in self.waypoint_ids:
            return False
        self.waypoint_ids.remove(waypoint_id)
        return True

    def toggle(self, waypoint_id: str) -> bool:
        """Add or remove; returns True when the id ends up selected."""
        if self.remove(waypoint_id):
            return False
        self.add(waypoint_id)
        return True

    def reorder(self, waypoint_ids: Iterable[str]) -> None:
        ids = list(waypoint_ids)
        if sorted(ids) != sorted(self.waypoint_ids) or len(set(ids)) != len(ids):
            raise ValueError("reorder() must receive exactly the selected waypoint ids")
        self.waypoint_ids = ids

    def replace(self, waypoint_ids: Iterable[str], start: Optional[Coordinate]) -> None:
        """Load a whole trip at once (restore paths); duplicates collapse."""
        ids: List[str] = []
        for wid in waypoint_ids:
            if wid not in ids:
                ids.append(wid)
        if len(ids) > self.max_waypoints:
            raise TripLimitError(f"A trip holds at most {self.max_waypoints} springs")
        self.waypoint_ids = ids
        self.start = start

    def clear(self) -> None:
        self.waypoint_ids = []
