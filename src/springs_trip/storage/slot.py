"""Durable named slots for saved trips (the planner's local storage)."""
from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import ValidationError

from springs_trip.core.models import StoredTrip, Waypoint
from springs_trip.core.share import resolve
from springs_trip.exceptions import StorageError

log = logging.getLogger(__name__)

_DEFAULT_DATA_DIR = Path.home() / ".springs_trip"

SLOT_QUOTA_BYTES = 5 * 1024 * 1024


def _data_dir(configured: str = "") -> Path:
    d = Path(configured or os.environ.get("SPRINGS_TRIP_DATA_DIR", str(_DEFAULT_DATA_DIR)))
    d.mkdir(parents=True, exist_ok=True)
    return d


class SlotStore:
    """
    String slots persisted as one JSON object on disk.

    Each ``set`` rewrites the file atomically (write to a temp file, then
    rename), so a crash never leaves a half-written trip behind.
    """

    def __init__(self, path: Optional[Path] = None, quota_bytes: int = SLOT_QUOTA_BYTES):
        self.path = path or (_data_dir() / "storage.json")
        self.quota_bytes = quota_bytes

    def _read_all(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            log.warning("Unreadable slot store %s (%s); starting empty", self.path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def get(self, name: str) -> Optional[str]:
        value = self._read_all().get(name)
        return value if isinstance(value, str) else None

    def set(self, name: str, value: str) -> None:
        if len(value.encode("utf-8")) > self.quota_bytes:
            raise StorageError(f"Slot {name!r} value exceeds {self.quota_bytes} bytes")
        data = self._read_all()
        data[name] = value
        self._write_all(data)

    def delete(self, name: str) -> None:
        data = self._read_all()
        if data.pop(name, None) is not None:
            self._write_all(data)

    def _write_all(self, data: Dict[str, str]) -> None:
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps(data), encoding="utf-8")
            tmp.replace(self.path)
        except OSError as e:
            raise StorageError(f"Could not write slot store {self.path}: {e}") from e


class MemorySlotStore(SlotStore):
    """Process-local slots; used by the HTTP API and tests."""

    def __init__(self, quota_bytes: int = SLOT_QUOTA_BYTES):
        self.quota_bytes = quota_bytes
        self._slots: Dict[str, str] = {}

    def get(self, name: str) -> Optional[str]:
        return self._slots.get(name)

    def set(self, name: str, value: str) -> None:
        if len(value.encode("utf-8")) > self.quota_bytes:
            raise StorageError(f"Slot {name!r} value exceeds {self.quota_bytes} bytes")
        self._slots[name] = value

    def delete(self, name: str) -> None:
        self._slots.pop(name, None)


class TripRepository:
    """Save / load a trip in a single named slot."""

    def __init__(self, store: SlotStore, slot: str = "hotSpringsTrip"):
        self.store = store
        self.slot = slot

    def save(self, trip: StoredTrip) -> None:
        self.store.set(self.slot, trip.model_dump_json(by_alias=True))
        log.info("Trip saved (%d springs)", len(trip.waypoint_ids))

    def load_raw(self) -> Optional[StoredTrip]:
        raw = self.store.get(self.slot)
        if raw is None:
            return None
        try:
            return StoredTrip.model_validate_json(raw)
        except ValidationError as e:
            log.warning("Failed to load saved trip: %s", e)
            return None

    def load(self, catalog: Dict[str, Waypoint]) -> Optional[StoredTrip]:
        """Saved trip with ids missing from ``catalog`` removed, or None."""
        trip = self.load_raw()
        if trip is None:
            return None
        ids: List[str] = resolve(trip.waypoint_ids, catalog)
        return trip.model_copy(update={"waypoint_ids": ids})

    def clear(self) -> None:
        self.store.delete(self.slot)
