"""SARFI data points and the weighted system summary.

SARFI-X counts dips whose remaining voltage falls below ``100 - X`` percent
of nominal.  The thresholds are nested: an event deep enough for SARFI-90
also counts towards every shallower index.

    index      remaining voltage
    ────────   ─────────────────
    sarfi_10   < 90 %
    sarfi_30   < 70 %
    sarfi_50   < 50 %
    sarfi_70   < 30 %
    sarfi_80   < 20 %
    sarfi_90   < 10 %
"""

from __future__ import annotations

import csv
import io
from dataclasses import dataclass

# (bucket name, remaining-voltage limit) from shallowest to deepest
SARFI_THRESHOLDS: tuple[tuple[str, float], ...] = (
    ("sarfi_10", 90.0),
    ("sarfi_30", 70.0),
    ("sarfi_50", 50.0),
    ("sarfi_70", 30.0),
    ("sarfi_80", 20.0),
    ("sarfi_90", 10.0),
)

SARFI_BUCKETS: tuple[str, ...] = tuple(name for name, _ in SARFI_THRESHOLDS)

DATAPOINT_CSV_COLUMNS: list[str] = [
    "meter_code",
    "location",
    "customer_count",
    "weight_factor",
    *SARFI_BUCKETS,
]


@dataclass(slots=True)
class SARFIDataPoint:
    """Per-meter snapshot: weight data plus six bucket counts."""

    meter_id: str
    meter_code: str = ""
    location: str = ""
    customer_count: int = 0
    weight_factor: float | None = 0.0
    sarfi_10: int = 0
    sarfi_30: int = 0
    sarfi_50: int = 0
    sarfi_70: int = 0
    sarfi_80: int = 0
    sarfi_90: int = 0

    def counts(self) -> tuple[int, ...]:
        return tuple(getattr(self, b) for b in SARFI_BUCKETS)

    def to_csv_row(self) -> str:
        buf = io.StringIO()
        writer = csv.writer(buf)
        weight = "" if self.weight_factor is None else f"{self.weight_factor:.6f}"
        writer.writerow(
            [self.meter_code, self.location, self.customer_count, weight, *self.counts()]
        )
        return buf.getvalue().rstrip("\r\n")

    @staticmethod
    def csv_header() -> str:
        return ",".join(DATAPOINT_CSV_COLUMNS)


@dataclass(slots=True)
class WeightedSARFISummary:
    """Customer-weighted system indices, one real number per bucket."""

    sarfi_10: float = 0.0
    sarfi_30: float = 0.0
    sarfi_50: float = 0.0
    sarfi_70: float = 0.0
    sarfi_80: float = 0.0
    sarfi_90: float = 0.0

    def as_dict(self) -> dict[str, float]:
        return {b: getattr(self, b) for b in SARFI_BUCKETS}

    def to_csv_row(self) -> str:
        return ",".join(f"{getattr(self, b):.4f}" for b in SARFI_BUCKETS)

    @staticmethod
    def csv_header() -> str:
        return ",".join(SARFI_BUCKETS)
