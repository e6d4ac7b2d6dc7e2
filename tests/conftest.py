"""Shared fixtures for SARFI engine tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from src.contracts.event import DipEvent
from src.contracts.profile import Meter, Profile, WeightEntry
from src.sarfi.engine import SarfiEngine
from src.storage.events import MemoryEventSource
from src.storage.memory import MemoryStore

DATA_DIR = Path(__file__).resolve().parents[1] / "data"

# ── Helpers: records with sensible defaults ─────────────────────────────


def make_profile(
    *,
    id: str = "P-2025",
    name: str = "SARFI 2025",
    year: int = 2025,
    is_active: bool = True,
    description: str = "",
) -> Profile:
    return Profile(id=id, name=name, year=year, is_active=is_active, description=description)


def make_meter(
    *,
    id: str = "m-001",
    code: str = "PQM-APA-01",
    location: str = "Ap Lei Chau S/S",
    voltage_level: str = "132kV",
) -> Meter:
    return Meter(id=id, code=code, location=location, voltage_level=voltage_level)


def make_weight(
    *,
    id: str = "W-0001",
    profile_id: str = "P-2025",
    meter_id: str = "m-001",
    customer_count: int = 0,
    weight_factor: float = 0.0,
    notes: str | None = None,
) -> WeightEntry:
    return WeightEntry(
        id=id,
        profile_id=profile_id,
        meter_id=meter_id,
        customer_count=customer_count,
        weight_factor=weight_factor,
        notes=notes,
    )


def make_event(
    *,
    id: str = "E-0001",
    meter_id: str = "m-001",
    timestamp: str = "2025-03-21T19:05:33Z",
    remaining_voltage: float | None = 50.0,
    magnitude: float | None = None,
    voltage_level: str = "132kV",
    is_special_event: bool = False,
) -> DipEvent:
    return DipEvent(
        id=id,
        meter_id=meter_id,
        timestamp=timestamp,
        remaining_voltage=remaining_voltage,
        magnitude=magnitude,
        voltage_level=voltage_level,
        is_special_event=is_special_event,
    )


def events_for(meter_id: str, voltages: list[float], **kwargs) -> list[DipEvent]:
    """One event per remaining-voltage value for *meter_id*."""
    return [
        make_event(id=f"E-{meter_id}-{i:03d}", meter_id=meter_id, remaining_voltage=v, **kwargs)
        for i, v in enumerate(voltages)
    ]


# ── Store fixtures ──────────────────────────────────────────────────────


@pytest.fixture
def meters() -> list[Meter]:
    return [
        make_meter(id="m-001", code="PQM-APA-01", location="Ap Lei Chau S/S", voltage_level="132kV"),
        make_meter(id="m-002", code="PQM-BKK-02", location="Bank Kowloon S/S", voltage_level="11kV"),
        make_meter(id="m-003", code="PQM-CPK-03", location="Castle Peak S/S", voltage_level="400kV"),
    ]


@pytest.fixture
def store(meters) -> MemoryStore:
    """Profile P-2025 with two meters: 3000 and 1000 customers (not yet normalized)."""
    return MemoryStore(
        profiles=[make_profile(), make_profile(id="P-2024", name="SARFI 2024", year=2024, is_active=False)],
        meters=meters,
        weights=[
            make_weight(id="W-0001", meter_id="m-001", customer_count=3000),
            make_weight(id="W-0002", meter_id="m-002", customer_count=1000),
        ],
    )


@pytest.fixture
def engine(store) -> SarfiEngine:
    return SarfiEngine(store, MemoryEventSource())
