from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class Coordinate(BaseModel):
    lat: float = Field(..., ge=-90.0, le=90.0)
    lng: float = Field(..., ge=-180.0, le=180.0)

    def label(self) -> str:
        """Short display form, e.g. ``"47.6062, -120.7401"``."""
        return f"{self.lat:.4f}, {self.lng:.4f}"


class Waypoint(BaseModel):
    id: str
    name: str = ""
    lat: float = Field(..., ge=-90.0, le=90.0)
    lng: float = Field(..., ge=-180.0, le=180.0)

    # temp_f, fee, access_type, description, record_id ...
    attributes: Dict[str, Any] = Field(default_factory=dict)

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(lat=self.lat, lng=self.lng)


class RouteResult(BaseModel):
    order: List[Waypoint]
    geometry: List[Coordinate]  # start first, then the path through every stop
    distance_miles: float
    duration_s: Optional[float] = None

    # Which optimizer tier chose the order: "provider" | "geometric"
    tier: Literal["provider", "geometric"] = "geometric"
    # Where the path came from: "directions" (road-following) | "straight"
    geometry_source: Literal["directions", "straight"] = "straight"
    # True when distance/duration ignore the road network
    approximate: bool = True

    @property
    def waypoint_ids(self) -> List[str]:
        return [w.id for w in self.order]


class POI(BaseModel):
    category: str
    name: str
    lat: float
    lng: float
    distance_miles: float = 0.0
    osm_id: Optional[int] = None


class StoredTrip(BaseModel):
    """Record kept in the durable trip slot."""

    model_config = ConfigDict(populate_by_name=True)

    waypoint_ids: List[str] = Field(default_factory=list, alias="waypointIds")
    start: Optional[Coordinate] = None
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc), alias="createdAt"
    )


class DirectionStep(BaseModel):
    instruction: str
    distance_miles: float
