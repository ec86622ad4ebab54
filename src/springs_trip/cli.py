from __future__ import annotations

import argparse
import asyncio
import json
import logging
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.table import Table

from springs_trip.core.models import Waypoint
from springs_trip.core.session import TripSession
from springs_trip.core.share import parse_start
from springs_trip.exceptions import PreconditionError, SpringsTripError
from springs_trip.geo.distance import format_duration
from springs_trip.planner import build_session, load_catalog
from springs_trip.providers.overpass import CATEGORY_LABELS


def _read_catalog(path: Optional[Path]) -> List[Waypoint]:
    if path is None:
        return load_catalog()
    data = json.loads(path.read_text(encoding="utf-8"))
    return [Waypoint(**row) for row in data]


def _print_catalog(console: Console, springs: List[Waypoint]) -> None:
    table = Table(title=f"Hot springs ({len(springs)})")
    table.add_column("Id")
    table.add_column("Name")
    table.add_column("Lat")
    table.add_column("Lng")
    table.add_column("Temp °F")
    table.add_column("Fee")
    table.add_column("Access")
    for w in springs:
        a = w.attributes
        table.add_row(
            w.id,
            w.name,
            f"{w.lat:.4f}",
            f"{w.lng:.4f}",
            str(a.get("temp_f") or "Unknown"),
            f"${a.get('fee') or '0'}",
            str(a.get("access_type") or "Unknown access"),
        )
    console.print(table)


def _print_trip(console: Console, session: TripSession, base_url: str) -> None:
    route = session.route
    if route is None:
        return

    table = Table(title="Trip")
    table.add_column("#")
    table.add_column("Spring")
    table.add_column("Lat")
    table.add_column("Lng")
    table.add_column("Leg mi")
    for i, (w, step) in enumerate(zip(route.order, session.directions()), start=1):
        table.add_row(str(i), w.name or w.id, f"{w.lat:.4f}", f"{w.lng:.4f}", f"{step.distance_miles:.1f}")
    console.print(table)

    approx = " (straight-line estimate)" if route.approximate else ""
    duration = format_duration(route.duration_s) if route.duration_s is not None else "?"
    console.print(
        f"Total: {route.distance_miles:.1f} mi, {duration}{approx}  "
        f"[order: {route.tier}, path: {route.geometry_source}]"
    )

    if session.pois:
        pois = Table(title="Along the way")
        pois.add_column("Type")
        pois.add_column("Name")
        pois.add_column("Off route")
        for p in session.pois:
            pois.add_row(CATEGORY_LABELS.get(p.category, p.category), p.name, f"{p.distance_miles:.1f} mi")
        console.print(pois)

    console.print(f"Share: {session.share(base_url)}")
    console.print(f"Google Maps: {session.google_maps_url()}")


async def _plan(args: argparse.Namespace, console: Console) -> int:
    session = build_session(_read_catalog(args.catalog))

    if args.share:
        session.restore(args.share)
    elif args.springs:
        for wid in [s.strip() for s in args.springs.split(",") if s.strip()]:
            await session.dispatch("add_waypoint", waypoint_id=wid)
    else:
        session.restore()

    if args.start:
        start = parse_start(args.start)
        if start is None:
            console.print(f"[red]Invalid --start {args.start!r}; expected 'lat,lng'[/red]")
            return 2
        await session.dispatch("set_start", lat=start.lat, lng=start.lng)
    elif args.address:
        await session.dispatch("locate_start", address=args.address)

    await session.dispatch("optimize")
    _print_trip(console, session, args.base_url)

    if args.save and session.save():
        console.print("Trip saved")
    return 0


def main() -> None:
    ap = argparse.ArgumentParser(prog="springs-trip")
    ap.add_argument("--debug", action="store_true")
    ap.add_argument("--catalog", type=Path, default=None, help="JSON list of waypoints instead of Teable")
    sub = ap.add_subparsers(dest="command", required=True)

    cat = sub.add_parser("catalog", help="List selectable springs")
    cat.add_argument("--search", default="", help="Filter by name or description")

    plan = sub.add_parser("plan", help="Optimize a multi-spring trip")
    plan.add_argument("--springs", default="", help="Comma-separated spring ids, e.g. sol-duc,baker")
    plan.add_argument("--start", default="", help="Start as 'lat,lng'")
    plan.add_argument("--address", default="", help="Start as an address to geocode")
    plan.add_argument("--share", default="", help="Restore from a share URL or query string")
    plan.add_argument("--base-url", default="", help="Prefix for the printed share link")
    plan.add_argument("--save", action="store_true", help="Save the trip to the local slot")

    args = ap.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(asctime)s [springs-trip] %(levelname)s %(name)s: %(message)s",
    )
    console = Console()

    try:
        if args.command == "catalog":
            springs = _read_catalog(args.catalog)
            session = TripSession(springs)
            _print_catalog(console, session.search(args.search))
            code = 0
        else:
            code = asyncio.run(_plan(args, console))
    except PreconditionError as e:
        console.print(f"[yellow]{e}[/yellow]")
        code = 2
    except SpringsTripError as e:
        console.print(f"[red]{type(e).__name__}: {e}[/red]")
        code = 1

    raise SystemExit(code)


if __name__ == "__main__":
    main()
