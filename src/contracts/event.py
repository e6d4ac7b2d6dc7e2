"""Voltage-dip event record, validated once when it enters the engine."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

# CSV column order for event files
CSV_COLUMNS: list[str] = [
    "id",
    "meter_id",
    "timestamp",
    "event_type",
    "remaining_voltage",
    "magnitude",
    "voltage_level",
    "is_special_event",
]

_TRUE_STRINGS = {"1", "true", "yes", "y", "t"}


def _opt_float(raw: Any) -> float | None:
    """Convert a raw cell to float; empty / missing -> None."""
    if raw is None:
        return None
    if isinstance(raw, str):
        raw = raw.strip()
        if not raw:
            return None
    value = float(raw)
    if math.isnan(value):
        return None
    return value


def _as_bool(raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    if raw is None:
        return False
    return str(raw).strip().lower() in _TRUE_STRINGS


@dataclass(slots=True)
class DipEvent:
    """One voltage-dip event recorded by a meter."""

    # ── mandatory ──
    id: str
    meter_id: str
    timestamp: str                      # ISO-8601 UTC

    # ── optional ──
    remaining_voltage: float | None = None  # percent of nominal, 0..100
    magnitude: float | None = None
    voltage_level: str = ""
    is_special_event: bool = False

    @property
    def effective_voltage(self) -> float:
        """Remaining voltage, falling back to magnitude, then to 100 (no dip)."""
        if self.remaining_voltage is not None:
            return self.remaining_voltage
        if self.magnitude is not None:
            return self.magnitude
        return 100.0

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> DipEvent:
        """Build a DipEvent from a CSV/JSON row.

        Raises:
            KeyError: ``meter_id`` is missing.
            ValueError: a voltage cell is not numeric or out of 0..100.
        """
        meter_id = str(row["meter_id"]).strip()
        if not meter_id:
            raise ValueError("empty meter_id")
        remaining = _opt_float(row.get("remaining_voltage"))
        magnitude = _opt_float(row.get("magnitude"))
        for name, value in (("remaining_voltage", remaining), ("magnitude", magnitude)):
            if value is not None and not 0.0 <= value <= 100.0:
                raise ValueError(f"{name} out of range: {value}")
        return cls(
            id=str(row.get("id", "") or ""),
            meter_id=meter_id,
            timestamp=str(row.get("timestamp", "") or ""),
            remaining_voltage=remaining,
            magnitude=magnitude,
            voltage_level=str(row.get("voltage_level", "") or ""),
            is_special_event=_as_bool(row.get("is_special_event")),
        )
