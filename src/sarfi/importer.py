"""Profile Importer — bulk customer-count corrections from delimited text.

Text format
───────────
    # comment lines and blank lines are ignored anywhere
    meter_id,customer_count          <- header, column order free
    PQM-APA-01,5000
    PQM-BKK-02,3200

Cells are comma-split and whitespace-trimmed; no quoting rules apply.
Row numbers in the result are 1-based over data rows only.

Error policy
────────────
    missing profile, missing header / column  → raised, nothing processed
    unknown meter code, bad customer_count    → row failure, batch continues
    store rejects one upsert                  → row failure, batch continues

A meter code repeated within one batch is upserted twice; the later row
wins.  After the batch, if any row succeeded, the whole profile is
recalculated once.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from src.contracts.errors import ImportFormatError, PersistenceError, ValidationError
from src.contracts.results import ImportResult, ImportRowError
from src.sarfi.weights import WeightRecalculator
from src.storage.base import WeightStore

log = logging.getLogger(__name__)

METER_COLUMN = "meter_id"
COUNT_COLUMN = "customer_count"

MSG_METER_NOT_FOUND = "meter not found"
MSG_BAD_COUNT = "customer_count must be a non-negative integer"

_DIGITS = re.compile(r"^\d+$")


@dataclass(slots=True)
class ImportRow:
    """One data row as read from the import, before validation."""

    row_number: int
    meter_code: str
    customer_count: Any


# ── Parsing ──────────────────────────────────────────────────────────────────


def _is_skipped(line: str) -> bool:
    return not line.strip() or line.startswith("#")


def parse_import_text(text: str) -> list[ImportRow]:
    """Split import text into data rows.

    Raises:
        ImportFormatError: no header line, or a required column is missing.
    """
    lines = [ln for ln in text.lstrip("\ufeff").splitlines() if not _is_skipped(ln)]
    if not lines:
        raise ImportFormatError("import text has no header row")

    headers = [h.strip() for h in lines[0].split(",")]
    missing = [c for c in (METER_COLUMN, COUNT_COLUMN) if c not in headers]
    if missing:
        raise ImportFormatError(
            f"import header must contain {METER_COLUMN} and {COUNT_COLUMN} "
            f"(missing: {', '.join(missing)})"
        )
    meter_idx = headers.index(METER_COLUMN)
    count_idx = headers.index(COUNT_COLUMN)

    rows: list[ImportRow] = []
    for row_number, line in enumerate(lines[1:], 1):
        values = [v.strip() for v in line.split(",")]
        rows.append(
            ImportRow(
                row_number=row_number,
                meter_code=values[meter_idx] if meter_idx < len(values) else "",
                customer_count=values[count_idx] if count_idx < len(values) else "",
            )
        )
    log.debug("Parsed import: %d data rows, columns=%s", len(rows), headers)
    return rows


def parse_customer_count(raw: Any) -> int:
    """Validate a customer count cell.

    Accepts ints, integral floats and digit-only strings.

    Raises:
        ValidationError: negative, fractional, empty or non-numeric.
    """
    if isinstance(raw, bool):
        raise ValidationError(MSG_BAD_COUNT)
    if isinstance(raw, int):
        value = raw
    elif isinstance(raw, float) and raw.is_integer():
        value = int(raw)
    elif isinstance(raw, str) and _DIGITS.match(raw.strip()):
        value = int(raw.strip())
    else:
        raise ValidationError(MSG_BAD_COUNT)
    if value < 0:
        raise ValidationError(MSG_BAD_COUNT)
    return value


# ── Importer ─────────────────────────────────────────────────────────────────


class ProfileImporter:
    """Validates and upserts customer counts, then recalculates the profile."""

    def __init__(self, store: WeightStore, recalculator: WeightRecalculator) -> None:
        self.store = store
        self.recalculator = recalculator

    def import_text(self, profile_id: str, text: str) -> ImportResult:
        """Import the delimited *text* into *profile_id*.

        Raises:
            NotFoundError: the profile does not exist.
            ImportFormatError: the header is missing or incomplete.
        """
        with self.recalculator.lanes.hold(profile_id):
            self.store.get_profile(profile_id)
            rows = parse_import_text(text)
            return self._run(profile_id, rows)

    def import_rows(
        self,
        profile_id: str,
        rows: Iterable[tuple[str, Any]],
    ) -> ImportResult:
        """Import already-split ``(meter_code, customer_count)`` pairs.

        Raises:
            NotFoundError: the profile does not exist.
        """
        parsed = [
            ImportRow(row_number=i, meter_code=str(code).strip(), customer_count=count)
            for i, (code, count) in enumerate(rows, 1)
        ]
        return self._run(profile_id, parsed)

    # ── internals ────────────────────────────────────────────────────────

    def _run(self, profile_id: str, rows: list[ImportRow]) -> ImportResult:
        result = ImportResult()

        with self.recalculator.lanes.hold(profile_id):
            self.store.get_profile(profile_id)
            for row in rows:
                message = self._apply_row(profile_id, row)
                if message is None:
                    result.success_count += 1
                else:
                    result.failed_count += 1
                    result.errors.append(ImportRowError(row.row_number, row.meter_code, message))
                    log.debug("Import row %d (%s) rejected: %s", row.row_number, row.meter_code, message)

            if result.success_count > 0:
                result.recalculation = self.recalculator.recalculate(profile_id)

        if result.failed_count:
            log.warning(
                "Import into %s: %d rows failed of %d",
                profile_id,
                result.failed_count,
                result.total_rows,
            )
        log.info(
            "Import into %s done: %d succeeded, %d failed",
            profile_id,
            result.success_count,
            result.failed_count,
        )
        return result

    def _apply_row(self, profile_id: str, row: ImportRow) -> str | None:
        """Validate and upsert one row. Returns an error message or None."""
        meter_id = self.store.resolve_meter_code(row.meter_code) if row.meter_code else None
        if meter_id is None:
            return MSG_METER_NOT_FOUND
        try:
            count = parse_customer_count(row.customer_count)
            self.store.upsert_weight(profile_id, meter_id, count)
        except (ValidationError, PersistenceError) as exc:
            return str(exc)
        return None
