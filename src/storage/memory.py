"""In-memory WeightStore.

Used by the CLI (round-tripped through a YAML snapshot, see
:mod:`src.storage.snapshot`) and by the tests.  Records handed out are
copies, so callers can only change the table through the store methods.

Failure injection
─────────────────
    ``fail_weight_ids``   — weight ids whose ``batch_set_weight_factors``
                            write reports failure
    ``fail_upsert_meters`` — meter ids whose ``upsert_weight`` raises
                            PersistenceError
"""

from __future__ import annotations

import itertools
import logging
import threading
from collections.abc import Iterable, Sequence
from dataclasses import replace

from src.contracts.errors import NotFoundError, PersistenceError
from src.contracts.profile import Meter, Profile, WeightEntry
from src.contracts.results import WriteOutcome
from src.storage.base import WeightStore

log = logging.getLogger(__name__)


class MemoryStore(WeightStore):
    """Dict-backed store. Single operations are atomic under one lock."""

    def __init__(
        self,
        profiles: Iterable[Profile] = (),
        meters: Iterable[Meter] = (),
        weights: Iterable[WeightEntry] = (),
    ) -> None:
        self._lock = threading.Lock()
        self._profiles: dict[str, Profile] = {p.id: replace(p) for p in profiles}
        self._meters: dict[str, Meter] = {m.id: replace(m) for m in meters}
        self._weights: dict[str, WeightEntry] = {}
        self._code_index: dict[str, str] = {m.code: m.id for m in self._meters.values()}

        for w in weights:
            if self._find(w.profile_id, w.meter_id) is not None:
                raise ValueError(
                    f"duplicate weight for profile={w.profile_id} meter={w.meter_id}"
                )
            self._weights[w.id] = replace(w)
        # Continue numbering after the highest loaded W-NNNN id
        start = 1 + max(
            (int(i[2:]) for i in self._weights if i.startswith("W-") and i[2:].isdigit()),
            default=0,
        )
        self._seq = itertools.count(start)

        self.fail_weight_ids: set[str] = set()
        self.fail_upsert_meters: set[str] = set()

    # ── internal helpers ─────────────────────────────────────────────────

    def _find(self, profile_id: str, meter_id: str) -> WeightEntry | None:
        for w in self._weights.values():
            if w.profile_id == profile_id and w.meter_id == meter_id:
                return w
        return None

    def _next_weight_id(self) -> str:
        return f"W-{next(self._seq):04d}"

    # ── profiles ─────────────────────────────────────────────────────────

    def get_profile(self, profile_id: str) -> Profile:
        with self._lock:
            profile = self._profiles.get(profile_id)
            if profile is None:
                raise NotFoundError("profile", profile_id)
            return replace(profile)

    def list_profiles(self) -> list[Profile]:
        with self._lock:
            profiles = [replace(p) for p in self._profiles.values()]
        profiles.sort(key=lambda p: p.year, reverse=True)
        return profiles

    def save_profile(self, profile: Profile) -> Profile:
        with self._lock:
            self._profiles[profile.id] = replace(profile)
        return replace(profile)

    def delete_profile(self, profile_id: str) -> None:
        with self._lock:
            if self._profiles.pop(profile_id, None) is None:
                raise NotFoundError("profile", profile_id)
            owned = [wid for wid, w in self._weights.items() if w.profile_id == profile_id]
            for wid in owned:
                del self._weights[wid]
        log.info("Deleted profile %s (%d weight entries)", profile_id, len(owned))

    # ── meters ───────────────────────────────────────────────────────────

    def add_meter(self, meter: Meter) -> Meter:
        with self._lock:
            self._meters[meter.id] = replace(meter)
            self._code_index[meter.code] = meter.id
        return replace(meter)

    def list_meters(self) -> list[Meter]:
        with self._lock:
            return [replace(m) for m in self._meters.values()]

    def get_meter(self, meter_id: str) -> Meter | None:
        with self._lock:
            meter = self._meters.get(meter_id)
            return replace(meter) if meter else None

    def resolve_meter_code(self, code: str) -> str | None:
        with self._lock:
            return self._code_index.get(code)

    # ── weights ──────────────────────────────────────────────────────────

    def list_weights(self, profile_id: str) -> list[WeightEntry]:
        with self._lock:
            return [replace(w) for w in self._weights.values() if w.profile_id == profile_id]

    def all_weights(self) -> list[WeightEntry]:
        with self._lock:
            return [replace(w) for w in self._weights.values()]

    def get_weight(self, weight_id: str) -> WeightEntry:
        with self._lock:
            w = self._weights.get(weight_id)
            if w is None:
                raise NotFoundError("weight", weight_id)
            return replace(w)

    def find_weight(self, profile_id: str, meter_id: str) -> WeightEntry | None:
        with self._lock:
            w = self._find(profile_id, meter_id)
            return replace(w) if w else None

    def upsert_weight(
        self,
        profile_id: str,
        meter_id: str,
        customer_count: int,
        notes: str | None = None,
    ) -> WeightEntry:
        if meter_id in self.fail_upsert_meters:
            raise PersistenceError(f"write rejected for meter {meter_id}")
        with self._lock:
            existing = self._find(profile_id, meter_id)
            if existing is None:
                entry = WeightEntry(
                    id=self._next_weight_id(),
                    profile_id=profile_id,
                    meter_id=meter_id,
                    customer_count=customer_count,
                    weight_factor=0.0,
                    notes=notes,
                )
                self._weights[entry.id] = entry
                log.debug("Inserted weight %s (%s/%s)", entry.id, profile_id, meter_id)
                return replace(entry)
            existing.customer_count = customer_count
            if notes is not None:
                existing.notes = notes
            log.debug("Updated weight %s customer_count=%d", existing.id, customer_count)
            return replace(existing)

    def batch_set_weight_factors(
        self,
        profile_id: str,
        factors: Sequence[tuple[str, float]],
    ) -> list[WriteOutcome]:
        outcomes: list[WriteOutcome] = []
        with self._lock:
            for weight_id, factor in factors:
                w = self._weights.get(weight_id)
                if w is None or w.profile_id != profile_id:
                    outcomes.append(WriteOutcome(weight_id, False, "weight not found"))
                    continue
                if weight_id in self.fail_weight_ids:
                    outcomes.append(WriteOutcome(weight_id, False, "write rejected"))
                    continue
                w.weight_factor = factor
                outcomes.append(WriteOutcome(weight_id, True))
        return outcomes

    def delete_weight(self, weight_id: str) -> None:
        with self._lock:
            if self._weights.pop(weight_id, None) is None:
                raise NotFoundError("weight", weight_id)
        log.debug("Deleted weight %s", weight_id)
