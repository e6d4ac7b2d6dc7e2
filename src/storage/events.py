"""Dip-event loading and the file-backed EventSource.

Supports CSV and JSONL input, auto-detected by extension.  Only rows whose
``event_type`` is ``voltage_dip`` (or that carry no event_type) are kept;
other PQ events do not count towards SARFI.
"""

from __future__ import annotations

import csv
import json
import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from src.contracts.enums import EventType, VoltageLevel
from src.contracts.event import DipEvent
from src.storage.base import EventSource

log = logging.getLogger(__name__)


def _is_dip(row: dict[str, Any]) -> bool:
    event_type = str(row.get("event_type") or "").strip()
    return not event_type or event_type == EventType.VOLTAGE_DIP.value


def _rows_to_events(rows: Iterable[tuple[int, dict[str, Any]]], path: str) -> list[DipEvent]:
    events: list[DipEvent] = []
    skipped = 0
    for line_no, row in rows:
        if not _is_dip(row):
            continue
        try:
            events.append(DipEvent.from_row(row))
        except (KeyError, ValueError, TypeError) as exc:
            skipped += 1
            log.warning("Skipping %s line %d: %s", Path(path).name, line_no, exc)
    if skipped:
        log.warning("Skipped %d malformed event rows in %s", skipped, path)
    return events


def load_dip_events_csv(path: str | Path) -> list[DipEvent]:
    """Load dip events from a CSV file with a header row."""
    with open(path, encoding="utf-8", newline="") as fh:
        reader = csv.DictReader(fh)
        # line 1 is the header
        events = _rows_to_events(enumerate(reader, 2), str(path))
    log.info("Loaded %d dip events from CSV: %s", len(events), path)
    return events


def load_dip_events_jsonl(path: str | Path) -> list[DipEvent]:
    """Load dip events from a JSONL (one JSON object per line) file."""
    rows: list[tuple[int, dict[str, Any]]] = []
    with open(path, encoding="utf-8") as fh:
        for line_no, line in enumerate(fh, 1):
            line = line.strip()
            if not line:
                continue
            try:
                rows.append((line_no, json.loads(line)))
            except json.JSONDecodeError as exc:
                log.warning("Skipping JSONL line %d: %s", line_no, exc)
    events = _rows_to_events(rows, str(path))
    log.info("Loaded %d dip events from JSONL: %s", len(events), path)
    return events


def load_dip_events(path: str | Path) -> list[DipEvent]:
    """Auto-detect format by file extension and load events."""
    if Path(path).suffix in (".jsonl", ".ndjson"):
        return load_dip_events_jsonl(path)
    return load_dip_events_csv(path)


def filter_dip_events(
    events: Iterable[DipEvent],
    meter_ids: Iterable[str],
    voltage_level: str | None = None,
    exclude_special: bool = False,
) -> list[DipEvent]:
    """Keep events of *meter_ids* matching the voltage level / special flag."""
    wanted = set(meter_ids)
    level = None if voltage_level in (None, "", VoltageLevel.ALL.value) else voltage_level
    return [
        ev
        for ev in events
        if ev.meter_id in wanted
        and (level is None or ev.voltage_level == level)
        and not (exclude_special and ev.is_special_event)
    ]


class MemoryEventSource(EventSource):
    """EventSource over a fixed list of events."""

    def __init__(self, events: Iterable[DipEvent] = ()) -> None:
        self.events: list[DipEvent] = list(events)

    @classmethod
    def from_file(cls, path: str | Path) -> MemoryEventSource:
        return cls(load_dip_events(path))

    def query_dip_events(
        self,
        meter_ids: Iterable[str],
        voltage_level: str | None = None,
        exclude_special: bool = False,
    ) -> list[DipEvent]:
        result = filter_dip_events(self.events, meter_ids, voltage_level, exclude_special)
        log.debug(
            "query_dip_events: %d of %d events (level=%s, exclude_special=%s)",
            len(result),
            len(self.events),
            voltage_level or "All",
            exclude_special,
        )
        return result
