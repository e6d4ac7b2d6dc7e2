"""Aggregator — weight table + dip events → per-meter points and system summary.

Weighted summary
────────────────
    For each bucket X:

        SARFI-X(system) = SUM(count_i × w_i) / SUM(w_i)

    over data points whose weight is defined.  When ``SUM(w_i) == 0`` the
    bucket is 0.  With normalized weights (SUM = 1) this reduces to the
    customer-share-weighted sum of per-meter counts.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field

from src.contracts.enums import VoltageLevel
from src.contracts.event import DipEvent
from src.contracts.profile import Meter, Profile, WeightEntry
from src.contracts.sarfi import SARFI_BUCKETS, SARFIDataPoint, WeightedSARFISummary
from src.sarfi.classifier import classify_events
from src.storage.base import EventSource, WeightStore

log = logging.getLogger(__name__)


@dataclass(slots=True)
class SARFIReport:
    """Everything the reporting layer renders for one profile."""

    profile: Profile
    datapoints: list[SARFIDataPoint] = field(default_factory=list)
    summary: WeightedSARFISummary = field(default_factory=WeightedSARFISummary)
    events_counted: int = 0
    voltage_level: str = VoltageLevel.ALL.value
    exclude_special_events: bool = False


def build_datapoints(
    weights: Sequence[WeightEntry],
    meter_lookup: Callable[[str], Meter | None] | None = None,
) -> dict[str, SARFIDataPoint]:
    """One zeroed data point per weight entry, keyed by meter id."""
    points: dict[str, SARFIDataPoint] = {}
    for w in weights:
        meter = meter_lookup(w.meter_id) if meter_lookup else None
        points[w.meter_id] = SARFIDataPoint(
            meter_id=w.meter_id,
            meter_code=meter.code if meter else w.meter_id,
            location=meter.location if meter else "",
            customer_count=w.customer_count,
            weight_factor=w.weight_factor,
        )
    return points


def _has_weight(dp: SARFIDataPoint) -> bool:
    return dp.weight_factor is not None and not math.isnan(dp.weight_factor)


def weighted_summary(datapoints: Iterable[SARFIDataPoint]) -> WeightedSARFISummary:
    """Customer-weighted average of every bucket across *datapoints*."""
    weighted = [dp for dp in datapoints if _has_weight(dp)]
    total_weight = sum(dp.weight_factor for dp in weighted)
    if total_weight == 0:
        return WeightedSARFISummary()

    values = {
        bucket: sum(getattr(dp, bucket) * dp.weight_factor for dp in weighted) / total_weight
        for bucket in SARFI_BUCKETS
    }
    return WeightedSARFISummary(**values)


def aggregate(
    weights: Sequence[WeightEntry],
    events: Iterable[DipEvent],
    meter_lookup: Callable[[str], Meter | None] | None = None,
) -> tuple[list[SARFIDataPoint], WeightedSARFISummary, int]:
    """Classify *events* against *weights*.

    Returns:
        (data points in weight-table order, weighted summary, events counted)
    """
    points = build_datapoints(weights, meter_lookup)
    counted = classify_events(points, events)
    datapoints = list(points.values())
    return datapoints, weighted_summary(datapoints), counted


class SarfiReportService:
    """Fetches a profile's weights and events and aggregates them."""

    def __init__(self, store: WeightStore, events: EventSource) -> None:
        self.store = store
        self.events = events

    def build_report(
        self,
        profile_id: str,
        voltage_level: str | None = None,
        exclude_special_events: bool = False,
    ) -> SARFIReport:
        """Build the SARFI report of one profile.

        Raises:
            NotFoundError: the profile does not exist.
        """
        profile = self.store.get_profile(profile_id)
        level = voltage_level or VoltageLevel.ALL.value
        report = SARFIReport(
            profile=profile,
            voltage_level=level,
            exclude_special_events=exclude_special_events,
        )

        weights = self.store.list_weights(profile_id)
        if not weights:
            log.warning("No weights found for profile %s — empty report", profile_id)
            return report

        dip_events = self.events.query_dip_events(
            [w.meter_id for w in weights],
            voltage_level=level,
            exclude_special=exclude_special_events,
        )
        datapoints, summary, counted = aggregate(weights, dip_events, self.store.get_meter)
        report.datapoints = datapoints
        report.summary = summary
        report.events_counted = counted

        log.info(
            "SARFI report for %s: %d meters, %d events (level=%s) sarfi_70=%.4f",
            profile_id,
            len(datapoints),
            counted,
            level,
            summary.sarfi_70,
        )
        return report
