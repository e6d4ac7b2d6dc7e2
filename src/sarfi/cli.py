"""CLI entry-point for the SARFI engine.

Usage examples
--------------
# Recalculate weight factors of a profile:
python -m src.sarfi.cli recalc --profile P-2025

# Import customer counts:
python -m src.sarfi.cli import --profile P-2025 --file counts.csv

# SARFI report for 132 kV, special events excluded:
python -m src.sarfi.cli report --profile P-2025 --voltage-level 132kV --exclude-special

# Export weights (CSV or XLSX by extension):
python -m src.sarfi.cli export --profile P-2025 --out out/weights.xlsx
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from src.contracts.enums import VoltageLevel
from src.contracts.errors import SarfiError
from src.reporting.export import write_import_template, write_weights_export
from src.reporting.report import write_report
from src.sarfi.engine import SarfiEngine
from src.shared.config_loader import load_settings
from src.shared.logger import setup_logging
from src.storage.events import MemoryEventSource
from src.storage.snapshot import load_store, save_store

log = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="sarfi",
        description="SARFI engine — weight factors, customer-count import, SARFI reports",
    )
    p.add_argument(
        "--store",
        default="data/store.yaml",
        help="YAML snapshot with profiles, meters and weights. Default: data/store.yaml",
    )
    p.add_argument(
        "--events",
        default="data/events.csv",
        help="Dip events (CSV or JSONL, by extension). Default: data/events.csv",
    )
    p.add_argument(
        "--config",
        default=None,
        help="Engine settings YAML. Default: config/sarfi.yaml if present",
    )
    p.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level. Default: from config, else INFO",
    )

    sub = p.add_subparsers(dest="command", required=True)

    s = sub.add_parser("recalc", help="Recalculate weight factors of a profile")
    s.add_argument("--profile", required=True)

    s = sub.add_parser("import", help="Import customer counts from a CSV file")
    s.add_argument("--profile", required=True)
    s.add_argument("--file", required=True, help="meter_id,customer_count text file")

    s = sub.add_parser("report", help="Write SARFI report files")
    s.add_argument("--profile", required=True)
    s.add_argument(
        "--voltage-level",
        default=None,
        choices=[v.value for v in VoltageLevel],
        help="Only count events tagged with this level. Default: from config",
    )
    s.add_argument(
        "--exclude-special",
        action="store_true",
        default=None,
        help="Drop events flagged as special events",
    )
    s.add_argument("--out-dir", default="out", help="Output directory. Default: out/")

    s = sub.add_parser("export", help="Export the weight table (CSV or XLSX)")
    s.add_argument("--profile", required=True)
    s.add_argument("--out", required=True)

    s = sub.add_parser("template", help="Write an import template")
    s.add_argument("--profile", required=True)
    s.add_argument("--out", required=True)

    s = sub.add_parser("profiles", help="List profiles")
    s.add_argument("--year", type=int, default=None)

    return p


def _run(args: argparse.Namespace, engine: SarfiEngine) -> bool:
    """Execute one command. Returns True when the store must be saved."""
    if args.command == "recalc":
        result = engine.recalculate(args.profile)
        print(
            f"Recalculated {result.updated} weights "
            f"({result.total_customers} customers, {len(result.failures)} failed)"
        )
        return True

    if args.command == "import":
        text = Path(args.file).read_text(encoding="utf-8")
        result = engine.import_text(args.profile, text)
        print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
        return result.success_count > 0

    if args.command == "report":
        report = engine.report(args.profile, args.voltage_level, args.exclude_special)
        write_report(report, args.out_dir)
        for bucket, value in report.summary.as_dict().items():
            print(f"{bucket:<10} {value:.4f}")
        return False

    if args.command == "export":
        profile = engine.store.get_profile(args.profile)
        write_weights_export(engine.export_rows(args.profile), profile, args.out)
        return False

    if args.command == "template":
        profile = engine.store.get_profile(args.profile)
        write_import_template(profile, args.out)
        return False

    if args.command == "profiles":
        for prof in engine.profiles.list_profiles(args.year):
            marker = "*" if prof.is_active else " "
            print(f"{marker} {prof.id:<14} {prof.year}  {prof.name}")
        return False

    raise ValueError(f"unknown command {args.command}")


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = load_settings(args.config)
    setup_logging(args.log_level or settings.log_level)

    store = load_store(args.store)
    if Path(args.events).exists():
        events = MemoryEventSource.from_file(args.events)
    else:
        log.warning("Events file %s not found — reporting with no events", args.events)
        events = MemoryEventSource()
    engine = SarfiEngine(store, events, settings)

    try:
        dirty = _run(args, engine)
    except SarfiError as exc:
        log.error("%s", exc)
        print(f"error: {exc}", file=sys.stderr)
        return 1

    if dirty:
        save_store(store, args.store)
    return 0


if __name__ == "__main__":
    sys.exit(main())
