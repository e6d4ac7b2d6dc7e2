"""Tests for src.sarfi.cli — end-to-end runs against a copied store."""

from __future__ import annotations

import json
import shutil

import pytest

from src.sarfi.cli import build_parser, main
from src.storage.snapshot import load_store
from tests.conftest import DATA_DIR


@pytest.fixture
def workspace(tmp_path):
    shutil.copy(DATA_DIR / "store.yaml", tmp_path / "store.yaml")
    shutil.copy(DATA_DIR / "events.csv", tmp_path / "events.csv")
    return tmp_path


def run(workspace, *args):
    return main(
        [
            "--store",
            str(workspace / "store.yaml"),
            "--events",
            str(workspace / "events.csv"),
            "--log-level",
            "WARNING",
            *args,
        ]
    )


class TestParser:
    def test_command_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_report_defaults(self):
        args = build_parser().parse_args(["report", "--profile", "P-2025"])
        assert args.voltage_level is None
        assert args.exclude_special is None
        assert args.out_dir == "out"


class TestCommands:
    def test_recalc_saves_store(self, workspace, capsys):
        assert run(workspace, "recalc", "--profile", "P-2024") == 0
        assert "Recalculated 2 weights" in capsys.readouterr().out
        store = load_store(workspace / "store.yaml")
        assert store.get_weight("W-0004").weight_factor == 0.75

    def test_import(self, workspace, capsys):
        counts = workspace / "counts.csv"
        counts.write_text("meter_id,customer_count\nPQM-APA-01,1000\nPQM-XXX,5\n", encoding="utf-8")
        assert run(workspace, "import", "--profile", "P-2024", "--file", str(counts)) == 0
        out = json.loads(capsys.readouterr().out)
        assert out["success_count"] == 1
        assert out["errors"][0]["message"] == "meter not found"
        store = load_store(workspace / "store.yaml")
        assert store.get_weight("W-0004").weight_factor == 0.5

    def test_report(self, workspace, capsys):
        out_dir = workspace / "out"
        assert run(workspace, "report", "--profile", "P-2025", "--out-dir", str(out_dir)) == 0
        assert "sarfi_10" in capsys.readouterr().out
        assert (out_dir / "sarfi_summary.csv").exists()

    def test_export_and_template(self, workspace):
        assert run(workspace, "export", "--profile", "P-2025", "--out", str(workspace / "w.csv")) == 0
        assert "# Total,10000,100.0000%," in (workspace / "w.csv").read_text(encoding="utf-8")
        assert run(workspace, "template", "--profile", "P-2025", "--out", str(workspace / "t.csv")) == 0
        assert (workspace / "t.csv").read_text(encoding="utf-8").startswith("# Weight Factor Import Template")

    def test_profiles(self, workspace, capsys):
        assert run(workspace, "profiles") == 0
        lines = capsys.readouterr().out.splitlines()
        assert lines[0].startswith("* P-2025")
        assert "P-2024" in lines[1]

    def test_missing_profile_exits_nonzero(self, workspace, capsys):
        before = (workspace / "store.yaml").read_text(encoding="utf-8")
        assert run(workspace, "recalc", "--profile", "P-404") == 1
        assert "profile not found: P-404" in capsys.readouterr().err
        assert (workspace / "store.yaml").read_text(encoding="utf-8") == before

    def test_missing_events_file_is_tolerated(self, workspace):
        (workspace / "events.csv").unlink()
        assert run(workspace, "report", "--profile", "P-2025", "--out-dir", str(workspace / "out")) == 0
