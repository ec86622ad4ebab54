"""FastAPI surface for the trip planner (stateless: one session per request)."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import urlencode

from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from springs_trip.core import share
from springs_trip.core.models import POI, Coordinate, DirectionStep, RouteResult, Waypoint
from springs_trip.core.session import TripSession
from springs_trip.exceptions import PreconditionError, SpringsTripError, UnknownWaypointError
from springs_trip.planner import PlannerServices, build_services, load_catalog, new_session
from springs_trip.storage.slot import MemorySlotStore, TripRepository

log = logging.getLogger(__name__)

app = FastAPI(title="Springs Trip", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Module-level catalog (loaded once, reused across requests)
# ---------------------------------------------------------------------------
_catalog_cache: Dict[str, List[Waypoint]] = {}


def get_catalog() -> List[Waypoint]:
    if "springs" not in _catalog_cache:
        try:
            _catalog_cache["springs"] = load_catalog()
        except SpringsTripError as e:
            log.error("Failed to load springs catalog: %s", e)
            raise HTTPException(status_code=503, detail="Hot springs catalog unavailable")
    return _catalog_cache["springs"]


# ---------------------------------------------------------------------------
# Module-level provider wiring (HTTP sessions persist across requests)
# ---------------------------------------------------------------------------
_services_cache: Dict[str, PlannerServices] = {}


def get_services() -> PlannerServices:
    if "default" not in _services_cache:
        _services_cache["default"] = build_services()
    return _services_cache["default"]


def get_session(
    catalog: List[Waypoint] = Depends(get_catalog),
    services: PlannerServices = Depends(get_services),
) -> TripSession:
    return new_session(catalog, services, TripRepository(MemorySlotStore()))


# ---------------------------------------------------------------------------
# Request / Response models
# ---------------------------------------------------------------------------

class PlanRequest(BaseModel):
    waypoint_ids: List[str] = Field(..., min_length=1)
    start: Coordinate


class PlanResponse(BaseModel):
    route: RouteResult
    pois: List[POI] = []
    steps: List[DirectionStep] = []
    share_query: str
    google_maps_url: Optional[str] = None


class SharedTrip(BaseModel):
    waypoint_ids: List[str]
    start: Optional[Coordinate] = None


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@app.get("/health")
def health() -> Dict[str, Any]:
    redis_ok = False
    try:
        from springs_trip.cache.redis_client import get_redis

        r = get_redis()
        if r is not None:
            r.ping()
            redis_ok = True
    except Exception:
        pass
    return {"status": "ok", "redis": redis_ok}


@app.get("/waypoints", response_model=List[Waypoint])
def list_waypoints(q: str = "", session: TripSession = Depends(get_session)):
    return session.search(q)


@app.get("/trip", response_model=SharedTrip)
def resolve_shared_trip(
    springs: str = Query(""),
    start: str = Query(""),
    catalog: List[Waypoint] = Depends(get_catalog),
):
    decoded = share.decode(urlencode({share.SPRINGS_PARAM: springs, share.START_PARAM: start}))
    ids = share.resolve(decoded.waypoint_ids, {w.id: w for w in catalog})
    return SharedTrip(waypoint_ids=ids, start=decoded.start)


@app.post("/plan", response_model=PlanResponse)
async def plan_trip(req: PlanRequest, session: TripSession = Depends(get_session)):
    try:
        for wid in req.waypoint_ids:
            await session.dispatch("add_waypoint", waypoint_id=wid)
        await session.dispatch("set_start", lat=req.start.lat, lng=req.start.lng)
        route = await session.dispatch("optimize")
    except UnknownWaypointError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PreconditionError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if route is None:
        raise HTTPException(status_code=409, detail="Trip changed while optimizing; try again")

    return PlanResponse(
        route=route,
        pois=session.pois,
        steps=session.directions(),
        share_query=session.share(),
        google_maps_url=session.google_maps_url(),
    )
