"""YAML snapshot of a MemoryStore: profiles, meters and weight tables.

Layout
──────
    meters:
      - {id: m-001, code: PQM-APA-01, location: Apaleu S/S, voltage_level: 132kV}
    profiles:
      - {id: p-2025, name: SARFI 2025, year: 2025, is_active: true}
    weights:
      - {id: W-0001, profile_id: p-2025, meter_id: m-001,
         customer_count: 5000, weight_factor: 0.61, notes: null}

Rows are validated here once; everything past this module works with
typed records.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from src.contracts.profile import Meter, Profile, WeightEntry
from src.shared.config_loader import load_yaml
from src.shared.fileio import atomic_write_text
from src.storage.memory import MemoryStore

log = logging.getLogger(__name__)


def _customer_count(raw: Any, where: str) -> int:
    if isinstance(raw, bool) or not isinstance(raw, int) or raw < 0:
        raise ValueError(f"{where}: customer_count must be a non-negative integer, got {raw!r}")
    return raw


def _parse_meter(row: dict[str, Any]) -> Meter:
    return Meter(
        id=str(row["id"]),
        code=str(row["code"]),
        location=str(row.get("location") or ""),
        voltage_level=str(row.get("voltage_level") or ""),
    )


def _parse_profile(row: dict[str, Any]) -> Profile:
    return Profile(
        id=str(row["id"]),
        name=str(row["name"]),
        year=int(row["year"]),
        is_active=bool(row.get("is_active", False)),
        description=str(row.get("description") or ""),
    )


def _parse_weight(row: dict[str, Any]) -> WeightEntry:
    wid = str(row["id"])
    return WeightEntry(
        id=wid,
        profile_id=str(row["profile_id"]),
        meter_id=str(row["meter_id"]),
        customer_count=_customer_count(row.get("customer_count", 0), f"weight {wid}"),
        weight_factor=float(row.get("weight_factor") or 0.0),
        notes=row.get("notes"),
    )


def load_store(path: str | Path) -> MemoryStore:
    """Build a MemoryStore from a YAML snapshot.

    Raises:
        FileNotFoundError: the snapshot does not exist.
        ValueError / KeyError: a row is malformed.
    """
    data = load_yaml(path)
    meters = [_parse_meter(r) for r in data.get("meters", []) or []]
    profiles = [_parse_profile(r) for r in data.get("profiles", []) or []]
    weights = [_parse_weight(r) for r in data.get("weights", []) or []]

    known_meters = {m.id for m in meters}
    known_profiles = {p.id for p in profiles}
    for w in weights:
        if w.profile_id not in known_profiles:
            raise ValueError(f"weight {w.id}: unknown profile {w.profile_id}")
        if w.meter_id not in known_meters:
            raise ValueError(f"weight {w.id}: unknown meter {w.meter_id}")

    log.info(
        "Loaded store %s: %d profiles, %d meters, %d weights",
        Path(path).name,
        len(profiles),
        len(meters),
        len(weights),
    )
    return MemoryStore(profiles=profiles, meters=meters, weights=weights)


def dump_store(store: MemoryStore) -> dict[str, Any]:
    """Plain-dict representation suitable for ``yaml.safe_dump``."""
    return {
        "meters": [
            {"id": m.id, "code": m.code, "location": m.location, "voltage_level": m.voltage_level}
            for m in store.list_meters()
        ],
        "profiles": [
            {
                "id": p.id,
                "name": p.name,
                "year": p.year,
                "is_active": p.is_active,
                "description": p.description,
            }
            for p in store.list_profiles()
        ],
        "weights": [
            {
                "id": w.id,
                "profile_id": w.profile_id,
                "meter_id": w.meter_id,
                "customer_count": w.customer_count,
                "weight_factor": w.weight_factor,
                "notes": w.notes,
            }
            for w in store.all_weights()
        ],
    }


def save_store(store: MemoryStore, path: str | Path) -> None:
    """Atomically write the store snapshot to *path*."""
    text = yaml.safe_dump(dump_store(store), sort_keys=False, allow_unicode=True)
    atomic_write_text(path, text)
    log.info("Saved store → %s", path)
