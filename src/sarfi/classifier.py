"""Event Classifier — voltage-dip events → SARFI bucket counts."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping

from src.contracts.event import DipEvent
from src.contracts.sarfi import SARFI_THRESHOLDS, SARFIDataPoint

log = logging.getLogger(__name__)


def classify(remaining_voltage: float) -> list[str]:
    """Return the buckets a dip with *remaining_voltage* falls into.

    Thresholds are nested, so the result is always a prefix of
    ``SARFI_BUCKETS``: ``classify(45)`` → sarfi_10, sarfi_30, sarfi_50.
    """
    return [bucket for bucket, limit in SARFI_THRESHOLDS if remaining_voltage < limit]


def classify_events(
    datapoints: Mapping[str, SARFIDataPoint],
    events: Iterable[DipEvent],
) -> int:
    """Increment the buckets of *datapoints* (keyed by meter id) in place.

    Events of meters absent from *datapoints* are out of scope for the
    profile and are skipped.

    Returns:
        Number of events that were counted.
    """
    counted = 0
    skipped = 0
    for ev in events:
        dp = datapoints.get(ev.meter_id)
        if dp is None:
            skipped += 1
            continue
        for bucket in classify(ev.effective_voltage):
            setattr(dp, bucket, getattr(dp, bucket) + 1)
        counted += 1

    if skipped:
        log.debug("Skipped %d events of meters outside the profile", skipped)
    return counted
