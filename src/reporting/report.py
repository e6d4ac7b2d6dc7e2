"""Звітування SARFI: CSV по лічильниках, зведення, TXT, PNG."""

from __future__ import annotations

import csv
import io
import logging
from pathlib import Path

from src.contracts.sarfi import DATAPOINT_CSV_COLUMNS, SARFI_BUCKETS, SARFIDataPoint, WeightedSARFISummary
from src.sarfi.aggregator import SARFIReport
from src.shared.fileio import atomic_write_text

log = logging.getLogger(__name__)

SUMMARY_CSV_COLUMNS = [
    "profile_id",
    "profile_name",
    "year",
    "voltage_level",
    "exclude_special_events",
    "meters",
    "events_counted",
    *SARFI_BUCKETS,
]


# ═══════════════════════════════════════════════════════════════════════════
#  CSV writers
# ═══════════════════════════════════════════════════════════════════════════


def render_datapoints_csv(datapoints: list[SARFIDataPoint]) -> str:
    """Per-meter rows followed by a ``Total`` row of summed bucket counts."""
    lines = [SARFIDataPoint.csv_header()]
    for dp in datapoints:
        lines.append(dp.to_csv_row())

    totals = [sum(getattr(dp, b) for dp in datapoints) for b in SARFI_BUCKETS]
    customers = sum(dp.customer_count for dp in datapoints)
    weight = sum(dp.weight_factor or 0.0 for dp in datapoints)
    buf = io.StringIO()
    csv.writer(buf, lineterminator="").writerow(["Total", "", customers, f"{weight:.6f}", *totals])
    lines.append(buf.getvalue())
    return "\n".join(lines) + "\n"


def write_datapoints_csv(report: SARFIReport, path: str | Path) -> None:
    atomic_write_text(path, render_datapoints_csv(report.datapoints))
    log.info("Wrote SARFI data → %s (%d meters)", path, len(report.datapoints))


def write_summary_csv(report: SARFIReport, path: str | Path) -> None:
    p = report.profile
    head = [
        p.id,
        p.name,
        str(p.year),
        report.voltage_level,
        str(report.exclude_special_events).lower(),
        str(len(report.datapoints)),
        str(report.events_counted),
    ]
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(SUMMARY_CSV_COLUMNS)
    writer.writerow(head + report.summary.to_csv_row().split(","))
    atomic_write_text(path, buf.getvalue())
    log.info("Wrote SARFI summary → %s", path)


# ═══════════════════════════════════════════════════════════════════════════
#  TXT report
# ═══════════════════════════════════════════════════════════════════════════


def render_report_txt(report: SARFIReport) -> str:
    p = report.profile
    lines: list[str] = []
    lines.append("=" * 60)
    lines.append("  SARFI Report")
    lines.append("=" * 60)
    lines.append(f"  Profile:          {p.name} ({p.id})")
    lines.append(f"  Year:             {p.year}")
    lines.append(f"  Voltage level:    {report.voltage_level}")
    lines.append(f"  Special events:   {'excluded' if report.exclude_special_events else 'included'}")
    lines.append(f"  Meters:           {len(report.datapoints)}")
    lines.append(f"  Events counted:   {report.events_counted}")
    lines.append("")
    lines.append("--- Weighted system indices ---")
    for bucket, value in report.summary.as_dict().items():
        lines.append(f"  {bucket.upper().replace('_', '-'):<10} {value:10.4f}")
    lines.append("")

    worst = sorted(report.datapoints, key=lambda d: (d.sarfi_70, d.sarfi_10), reverse=True)[:5]
    if worst and worst[0].sarfi_10 > 0:
        lines.append("--- Meters with most deep dips (SARFI-70) ---")
        for i, dp in enumerate(worst, 1):
            lines.append(
                f"  {i}. {dp.meter_code:<14} sarfi_70={dp.sarfi_70:<4} "
                f"sarfi_10={dp.sarfi_10:<4} weight={dp.weight_factor or 0.0:.4f}"
            )
        lines.append("")
    lines.append("=" * 60)
    return "\n".join(lines) + "\n"


def write_report_txt(report: SARFIReport, path: str | Path) -> None:
    atomic_write_text(path, render_report_txt(report))
    log.info("Wrote report → %s", path)


# ═══════════════════════════════════════════════════════════════════════════
#  Plots (matplotlib)
# ═══════════════════════════════════════════════════════════════════════════


def write_plot(summary: WeightedSARFISummary, title: str, out_dir: str | Path) -> Path | None:
    """Bar chart of the weighted indices into out_dir/plots/sarfi.png."""
    try:
        import matplotlib

        matplotlib.use("Agg")
        import matplotlib.pyplot as plt
    except ImportError:
        log.warning("matplotlib not installed — skipping plots")
        return None

    plots_dir = Path(out_dir) / "plots"
    plots_dir.mkdir(parents=True, exist_ok=True)
    target = plots_dir / "sarfi.png"

    labels = [b.upper().replace("_", "-") for b in SARFI_BUCKETS]
    values = [getattr(summary, b) for b in SARFI_BUCKETS]

    fig, ax = plt.subplots(figsize=(8, 5))
    bars = ax.bar(labels, values, color="#2980b9", edgecolor="black", linewidth=0.5)
    for bar, v in zip(bars, values):
        ax.text(
            bar.get_x() + bar.get_width() / 2,
            bar.get_height(),
            f"{v:.2f}",
            ha="center",
            va="bottom",
            fontweight="bold",
        )
    ax.set_ylabel("Weighted events per customer share")
    ax.set_title(title)
    fig.tight_layout()
    fig.savefig(str(target), dpi=150)
    plt.close(fig)
    log.info("Wrote %s", target)
    return target


def write_report(report: SARFIReport, out_dir: str | Path) -> None:
    """Write every report artefact into *out_dir*."""
    out = Path(out_dir)
    out.mkdir(parents=True, exist_ok=True)
    write_datapoints_csv(report, out / "sarfi_by_meter.csv")
    write_summary_csv(report, out / "sarfi_summary.csv")
    write_report_txt(report, out / "report.txt")
    write_plot(report.summary, f"Weighted SARFI — {report.profile.name}", out)
    log.info("Report complete. Outputs in %s/", out)
