"""Profile, Meter and WeightEntry records."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class Profile:
    """A named, year-scoped SARFI reporting configuration."""

    id: str
    name: str
    year: int
    is_active: bool = False
    description: str = ""


@dataclass(slots=True)
class Meter:
    """A PQ meter as known to the store."""

    id: str          # internal identity, referenced by WeightEntry
    code: str        # human-readable code, e.g. "PQM-APA-01"
    location: str = ""
    voltage_level: str = ""


@dataclass(slots=True)
class WeightEntry:
    """One (profile, meter) row of a profile's weight table.

    ``weight_factor`` is derived from ``customer_count`` by the
    recalculator; nothing else should set it.
    """

    id: str
    profile_id: str
    meter_id: str
    customer_count: int = 0
    weight_factor: float = 0.0
    notes: str | None = None
