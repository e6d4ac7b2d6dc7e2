"""Structured results returned by recalculation and import.

Partial success is a normal outcome for both operations, so failures are
carried as data instead of being raised.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(slots=True)
class WriteOutcome:
    """Result of writing one weight entry in a batch."""

    weight_id: str
    ok: bool
    message: str = ""


@dataclass(slots=True)
class RecalcResult:
    """Outcome of one profile-wide weight recalculation."""

    profile_id: str
    total_customers: int = 0
    updated: int = 0
    failures: list[WriteOutcome] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def zero_total(self) -> bool:
        return self.total_customers == 0


@dataclass(slots=True)
class ImportRowError:
    """A rejected import row. ``row_number`` is 1-based over data rows."""

    row_number: int
    meter_code: str
    message: str


@dataclass(slots=True)
class ImportResult:
    """Summary of one bulk customer-count import."""

    success_count: int = 0
    failed_count: int = 0
    errors: list[ImportRowError] = field(default_factory=list)
    recalculation: RecalcResult | None = None

    @property
    def total_rows(self) -> int:
        return self.success_count + self.failed_count

    def to_dict(self) -> dict:
        return {
            "success_count": self.success_count,
            "failed_count": self.failed_count,
            "errors": [
                {"row_number": e.row_number, "meter_code": e.meter_code, "message": e.message}
                for e in self.errors
            ],
        }
