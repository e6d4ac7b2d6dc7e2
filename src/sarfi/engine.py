"""Engine — wires the store, event source and per-profile lanes together."""

from __future__ import annotations

import logging

from src.contracts.results import ImportResult, RecalcResult
from src.reporting.export import weight_export_rows
from src.sarfi.aggregator import SARFIReport, SarfiReportService
from src.sarfi.importer import ProfileImporter
from src.sarfi.profiles import ProfileManager
from src.sarfi.weights import WeightRecalculator
from src.shared.config_loader import Settings
from src.storage.base import EventSource, WeightStore
from src.storage.events import MemoryEventSource
from src.storage.lanes import ProfileLanes

log = logging.getLogger(__name__)


class SarfiEngine:
    """Facade over every SARFI operation, sharing one set of lanes."""

    def __init__(
        self,
        store: WeightStore,
        events: EventSource | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.store = store
        self.events = events or MemoryEventSource()
        self.settings = settings or Settings()
        self.lanes = ProfileLanes()
        self.recalculator = WeightRecalculator(store, self.lanes)
        self.importer = ProfileImporter(store, self.recalculator)
        self.profiles = ProfileManager(store, self.recalculator)
        self.reports = SarfiReportService(store, self.events)

    def recalculate(self, profile_id: str) -> RecalcResult:
        return self.recalculator.recalculate(profile_id)

    def import_text(self, profile_id: str, text: str) -> ImportResult:
        return self.importer.import_text(profile_id, text)

    def report(
        self,
        profile_id: str,
        voltage_level: str | None = None,
        exclude_special_events: bool | None = None,
    ) -> SARFIReport:
        """Build a SARFI report; unset filters fall back to the settings."""
        if voltage_level is None:
            voltage_level = self.settings.voltage_level
        if exclude_special_events is None:
            exclude_special_events = self.settings.exclude_special_events
        return self.reports.build_report(profile_id, voltage_level, exclude_special_events)

    def export_rows(self, profile_id: str) -> list[dict]:
        self.store.get_profile(profile_id)
        weights = self.store.list_weights(profile_id)
        rows = weight_export_rows(weights, self.store.get_meter, self.settings.percent_decimals)
        total = sum(w.weight_factor for w in weights)
        if weights and abs(total - 1.0) > self.settings.weight_tolerance and total != 0.0:
            log.warning(
                "Profile %s weight factors sum to %.12f — recalculation pending?",
                profile_id,
                total,
            )
        return rows
