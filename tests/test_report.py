"""Tests for src.reporting.report — SARFI report artefacts."""

from __future__ import annotations

import csv

import pytest

from src.reporting.report import (
    SUMMARY_CSV_COLUMNS,
    render_datapoints_csv,
    render_report_txt,
    write_report,
)
from src.sarfi.engine import SarfiEngine
from src.storage.events import MemoryEventSource
from tests.conftest import events_for


@pytest.fixture
def report(store):
    events = MemoryEventSource(events_for("m-001", [85, 65, 45, 25, 15, 5]) + events_for("m-002", [80, 60]))
    engine = SarfiEngine(store, events)
    engine.recalculate("P-2025")
    return engine.report("P-2025")


class TestRender:
    def test_datapoints_csv_total_row(self, report):
        rows = list(csv.reader(render_datapoints_csv(report.datapoints).splitlines()))
        assert rows[0][0] == "meter_code"
        assert [r[0] for r in rows[1:]] == ["PQM-APA-01", "PQM-BKK-02", "Total"]
        assert rows[-1] == ["Total", "", "4000", "1.000000", "8", "6", "4", "3", "2", "1"]

    def test_report_txt(self, report):
        text = render_report_txt(report)
        assert "SARFI 2025 (P-2025)" in text
        assert "Events counted:   8" in text
        assert "SARFI-10" in text
        assert f"{6 * 0.75 + 2 * 0.25:10.4f}" in text
        assert "1. PQM-APA-01" in text

    def test_report_txt_without_events(self, engine):
        text = render_report_txt(engine.report("P-2025"))
        assert "Meters with most deep dips" not in text


class TestWriteReport:
    def test_all_artefacts_written(self, report, tmp_path):
        write_report(report, tmp_path)
        assert (tmp_path / "sarfi_by_meter.csv").exists()
        assert (tmp_path / "report.txt").exists()
        assert (tmp_path / "plots" / "sarfi.png").exists()

        with open(tmp_path / "sarfi_summary.csv", encoding="utf-8", newline="") as fh:
            rows = list(csv.DictReader(fh))
        assert list(rows[0]) == SUMMARY_CSV_COLUMNS
        assert rows[0]["profile_id"] == "P-2025"
        assert rows[0]["voltage_level"] == "All"
        assert rows[0]["events_counted"] == "8"
        assert rows[0]["sarfi_10"] == "5.0000"
        assert rows[0]["sarfi_90"] == "0.7500"
