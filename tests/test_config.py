"""Tests for src.shared — settings loading, logging, atomic writes."""

from __future__ import annotations

import logging

import pytest

from src.sarfi.engine import SarfiEngine
from src.shared.config_loader import Settings, load_settings, load_yaml
from src.shared.fileio import atomic_write_text
from src.shared.logger import setup_logging
from tests.conftest import events_for


class TestSettings:
    def test_defaults(self):
        s = Settings()
        assert s.weight_tolerance == 1e-9
        assert s.percent_decimals == 4
        assert s.voltage_level == "All"

    def test_from_file(self, tmp_path):
        path = tmp_path / "sarfi.yaml"
        path.write_text(
            "engine:\n  weight_tolerance: 1.0e-6\n"
            "export:\n  percent_decimals: 2\n"
            "report:\n  voltage_level: 11kV\n  exclude_special_events: true\n",
            encoding="utf-8",
        )
        s = load_settings(path)
        assert s.weight_tolerance == 1e-6
        assert s.percent_decimals == 2
        assert s.voltage_level == "11kV"
        assert s.exclude_special_events is True
        assert s.log_level == "INFO"

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert load_yaml(path) == {}
        assert load_settings(path) == Settings()

    def test_explicit_missing_path_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_settings(tmp_path / "absent.yaml")

    def test_engine_uses_settings(self, store):
        engine = SarfiEngine(
            store,
            settings=Settings(voltage_level="11kV", percent_decimals=1),
        )
        engine.events.events.extend(events_for("m-001", [5], voltage_level="132kV"))
        engine.recalculate("P-2025")
        assert engine.report("P-2025").events_counted == 0
        assert engine.report("P-2025", voltage_level="All").events_counted == 1
        assert engine.export_rows("P-2025")[0]["weight_factor_percent"] == "75.0%"


class TestShared:
    def test_setup_logging_level(self):
        setup_logging("DEBUG")
        assert logging.getLogger().level == logging.DEBUG
        setup_logging("nonsense")
        assert logging.getLogger().level == logging.INFO

    def test_atomic_write_creates_parents(self, tmp_path):
        target = tmp_path / "a" / "b" / "out.txt"
        atomic_write_text(target, "hello\n")
        assert target.read_text(encoding="utf-8") == "hello\n"
        assert [p.name for p in target.parent.iterdir()] == ["out.txt"]
