"""Експорт таблиці вагових коефіцієнтів: CSV, XLSX, шаблон імпорту.

Export rows
───────────
    meter_code, location, customer_count, weight_factor_percent

followed by a ``Total`` row: customer counts summed, percentages summed.
For an internally consistent profile the total is exactly ``100.0000%``.

The CSV export uses the import column names (``meter_id``,
``customer_count``) as its first two columns, keeps the free-text
``location`` last and writes the totals as a comment line, so an exported
file can be edited and fed straight back to the importer.
"""

from __future__ import annotations

import csv
import io
import logging
from collections.abc import Callable, Sequence
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import pandas as pd

from src.contracts.profile import Meter, Profile, WeightEntry
from src.shared.fileio import atomic_write_text

log = logging.getLogger(__name__)

EXPORT_COLUMNS = ["meter_code", "location", "customer_count", "weight_factor_percent"]
CSV_EXPORT_COLUMNS = ["meter_code", "customer_count", "weight_factor_percent", "location"]
CSV_EXPORT_HEADER = ["meter_id", "customer_count", "weight_factor", "location"]
XLSX_HEADER = ["Meter No.", "Location", "Customer Count", "Weight Factor (%)"]
TOTAL_LABEL = "Total"


def _percent(factor: float, decimals: int) -> str:
    return f"{factor * 100:.{decimals}f}%"


def _generated(now: datetime | None) -> str:
    return (now or datetime.now(UTC)).strftime("%Y-%m-%d %H:%M:%S UTC")


def weight_export_rows(
    weights: Sequence[WeightEntry],
    meter_lookup: Callable[[str], Meter | None],
    decimals: int = 4,
) -> list[dict[str, Any]]:
    """Build ordered export rows plus the trailing totals row."""
    rows: list[dict[str, Any]] = []
    for w in weights:
        meter = meter_lookup(w.meter_id)
        rows.append(
            {
                "meter_code": meter.code if meter else "N/A",
                "location": meter.location if meter else "N/A",
                "customer_count": w.customer_count,
                "weight_factor_percent": _percent(w.weight_factor, decimals),
            }
        )
    rows.append(
        {
            "meter_code": TOTAL_LABEL,
            "location": "",
            "customer_count": sum(w.customer_count for w in weights),
            "weight_factor_percent": _percent(sum(w.weight_factor for w in weights), decimals),
        }
    )
    return rows


# ═══════════════════════════════════════════════════════════════════════════
#  CSV
# ═══════════════════════════════════════════════════════════════════════════


def render_weights_csv(
    rows: Sequence[dict[str, Any]],
    profile: Profile,
    now: datetime | None = None,
) -> str:
    buf = io.StringIO()
    buf.write("# Weight Factor Report\n")
    buf.write(f"# Profile: {profile.name}\n")
    buf.write(f"# Generated: {_generated(now)}\n")
    buf.write("\n")
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(CSV_EXPORT_HEADER)
    for row in rows:
        values = [row[c] for c in CSV_EXPORT_COLUMNS]
        if row["meter_code"] == TOTAL_LABEL:
            buf.write("# " + ",".join(str(v) for v in values) + "\n")
        else:
            writer.writerow(values)
    return buf.getvalue()


def write_weights_csv(
    rows: Sequence[dict[str, Any]],
    profile: Profile,
    path: str | Path,
    now: datetime | None = None,
) -> None:
    atomic_write_text(path, render_weights_csv(rows, profile, now))
    log.info("Wrote weight export → %s (%d meters)", path, len(rows) - 1)


# ═══════════════════════════════════════════════════════════════════════════
#  XLSX
# ═══════════════════════════════════════════════════════════════════════════


def write_weights_xlsx(
    rows: Sequence[dict[str, Any]],
    profile: Profile,
    path: str | Path,
    now: datetime | None = None,
) -> None:
    """Write the export as a single-sheet workbook with a header block."""
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    header_block = pd.DataFrame(
        [
            ["Weight Factor Report", ""],
            ["Profile:", profile.name],
            ["Year:", str(profile.year)],
            ["Generated:", _generated(now)],
            ["Total Meters:", str(len(rows) - 1)],
        ]
    )
    data = pd.DataFrame([[r[c] for c in EXPORT_COLUMNS] for r in rows], columns=XLSX_HEADER)

    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        header_block.to_excel(writer, sheet_name="Weight Factors", index=False, header=False)
        data.to_excel(writer, sheet_name="Weight Factors", index=False, startrow=len(header_block) + 1)
        sheet = writer.sheets["Weight Factors"]
        for col, width in zip("ABCD", (20, 35, 18, 20)):
            sheet.column_dimensions[col].width = width
    log.info("Wrote weight export → %s (%d meters)", path, len(rows) - 1)


def write_weights_export(
    rows: Sequence[dict[str, Any]],
    profile: Profile,
    path: str | Path,
    now: datetime | None = None,
) -> None:
    """Dispatch on suffix: ``.xlsx`` → workbook, anything else → CSV."""
    if Path(path).suffix.lower() == ".xlsx":
        write_weights_xlsx(rows, profile, path, now)
    else:
        write_weights_csv(rows, profile, path, now)


# ═══════════════════════════════════════════════════════════════════════════
#  Import template
# ═══════════════════════════════════════════════════════════════════════════


def render_import_template(
    profile: Profile,
    examples: Sequence[tuple[str, int]] = (("PQM-APA-01", 5000), ("PQM-BKK-02", 3200)),
    now: datetime | None = None,
) -> str:
    lines = [
        "# Weight Factor Import Template",
        f"# Profile: {profile.name}",
        f"# Generated: {_generated(now)}",
        "# Instructions: Update customer_count values. Weight factors will auto-calculate.",
        "# Format: meter_id (e.g., PQM-APA-01), customer_count (integer >= 0)",
        "",
        "meter_id,customer_count",
    ]
    lines.extend(f"{code},{count}" for code, count in examples)
    return "\n".join(lines) + "\n"


def write_import_template(
    profile: Profile,
    path: str | Path,
    examples: Sequence[tuple[str, int]] | None = None,
    now: datetime | None = None,
) -> None:
    if examples is None:
        text = render_import_template(profile, now=now)
    else:
        text = render_import_template(profile, examples, now)
    atomic_write_text(path, text)
    log.info("Wrote import template → %s", path)
