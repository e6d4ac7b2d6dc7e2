"""SARFI contracts — canonical records shared by all modules."""

from src.contracts.enums import EventType, VoltageLevel
from src.contracts.errors import (
    ImportFormatError,
    NotFoundError,
    PersistenceError,
    SarfiError,
    ValidationError,
)
from src.contracts.event import DipEvent
from src.contracts.profile import Meter, Profile, WeightEntry
from src.contracts.results import ImportResult, ImportRowError, RecalcResult, WriteOutcome
from src.contracts.sarfi import SARFI_BUCKETS, SARFI_THRESHOLDS, SARFIDataPoint, WeightedSARFISummary

__all__ = [
    "DipEvent",
    "EventType",
    "ImportFormatError",
    "ImportResult",
    "ImportRowError",
    "Meter",
    "NotFoundError",
    "PersistenceError",
    "Profile",
    "RecalcResult",
    "SARFI_BUCKETS",
    "SARFI_THRESHOLDS",
    "SARFIDataPoint",
    "SarfiError",
    "ValidationError",
    "VoltageLevel",
    "WeightEntry",
    "WeightedSARFISummary",
    "WriteOutcome",
]
