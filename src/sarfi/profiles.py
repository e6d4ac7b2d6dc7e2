"""Profile management — profile CRUD and single-entry weight edits.

Every operation that changes a customer count (edit, add, remove, batch
update) finishes with a full recalculation of the profile, run in the
same lane as the edit itself.  Profiles and entries are (re-)read inside
the lane, so an edit that waited behind a delete sees the deletion.
"""

from __future__ import annotations

import itertools
import logging
from collections.abc import Iterable
from dataclasses import replace
from typing import Any

from src.contracts.errors import NotFoundError, PersistenceError, SarfiError, ValidationError
from src.contracts.profile import Profile, WeightEntry
from src.contracts.results import RecalcResult
from src.sarfi.importer import parse_customer_count
from src.sarfi.weights import WeightRecalculator
from src.storage.base import WeightStore

log = logging.getLogger(__name__)

_EDITABLE_PROFILE_FIELDS = {"name", "year", "is_active", "description"}


class ProfileManager:
    """Operator-facing operations on profiles and their weight tables."""

    def __init__(self, store: WeightStore, recalculator: WeightRecalculator) -> None:
        self.store = store
        self.recalculator = recalculator
        self._seq = itertools.count(1)

    # ── profiles ─────────────────────────────────────────────────────────

    def list_profiles(self, year: int | None = None) -> list[Profile]:
        """Profiles newest year first, optionally restricted to *year*."""
        profiles = self.store.list_profiles()
        if year is not None:
            profiles = [p for p in profiles if p.year == year]
        return profiles

    def active_profile(self, year: int) -> Profile | None:
        for p in self.store.list_profiles():
            if p.year == year and p.is_active:
                return p
        return None

    def create_profile(
        self,
        name: str,
        year: int,
        description: str = "",
        is_active: bool = False,
        profile_id: str | None = None,
    ) -> Profile:
        if profile_id is None:
            existing = {p.id for p in self.store.list_profiles()}
            profile_id = f"P-{year}-{next(self._seq):03d}"
            while profile_id in existing:
                profile_id = f"P-{year}-{next(self._seq):03d}"
        profile = Profile(
            id=profile_id,
            name=name,
            year=year,
            is_active=is_active,
            description=description,
        )
        self.store.save_profile(profile)
        log.info("Created profile %s '%s' (%d)", profile.id, name, year)
        return profile

    def update_profile(self, profile_id: str, **changes: Any) -> Profile:
        """Change name / year / is_active / description of a profile.

        Raises:
            NotFoundError: the profile does not exist.
            ValueError: an unknown field was passed.
        """
        unknown = set(changes) - _EDITABLE_PROFILE_FIELDS
        if unknown:
            raise ValueError(f"cannot update profile fields: {', '.join(sorted(unknown))}")
        profile = replace(self.store.get_profile(profile_id), **changes)
        return self.store.save_profile(profile)

    def delete_profile(self, profile_id: str) -> None:
        """Delete a profile together with its weight table."""
        with self.recalculator.lanes.hold(profile_id):
            self.store.delete_profile(profile_id)

    # ── single-entry edits ───────────────────────────────────────────────

    def update_customer_count(self, weight_id: str, customer_count: Any) -> RecalcResult:
        """Set one entry's customer count and recalculate its profile.

        Raises:
            NotFoundError: the weight entry does not exist.
            ValidationError: *customer_count* is not a non-negative integer.
        """
        count = parse_customer_count(customer_count)
        profile_id = self.store.get_weight(weight_id).profile_id
        with self.recalculator.lanes.hold(profile_id):
            # re-read: the entry may have been removed while waiting
            entry = self.store.get_weight(weight_id)
            self.store.upsert_weight(entry.profile_id, entry.meter_id, count)
            log.info("Weight %s customer_count %d → %d", weight_id, entry.customer_count, count)
            return self.recalculator.recalculate(entry.profile_id)

    def add_meter_to_profile(
        self,
        profile_id: str,
        meter_id: str,
        customer_count: Any,
        notes: str | None = None,
    ) -> WeightEntry:
        """Add a meter to a profile and recalculate.

        Raises:
            NotFoundError: the profile or meter does not exist.
            ValidationError: bad customer count.
            SarfiError: the meter is already part of the profile.
        """
        count = parse_customer_count(customer_count)
        if self.store.get_meter(meter_id) is None:
            raise NotFoundError("meter", meter_id)

        with self.recalculator.lanes.hold(profile_id):
            self.store.get_profile(profile_id)
            if self.store.find_weight(profile_id, meter_id) is not None:
                raise SarfiError(f"meter {meter_id} is already in profile {profile_id}")
            entry = self.store.upsert_weight(profile_id, meter_id, count, notes)
            self.recalculator.recalculate(profile_id)
            return self.store.get_weight(entry.id)

    def remove_meter_from_profile(self, weight_id: str) -> RecalcResult:
        """Delete one weight entry and recalculate what remains."""
        profile_id = self.store.get_weight(weight_id).profile_id
        with self.recalculator.lanes.hold(profile_id):
            entry = self.store.get_weight(weight_id)
            self.store.delete_weight(weight_id)
            log.info("Removed meter %s from profile %s", entry.meter_id, entry.profile_id)
            return self.recalculator.recalculate(entry.profile_id)

    def batch_update_customer_counts(
        self,
        profile_id: str,
        updates: Iterable[tuple[str, Any]],
    ) -> tuple[int, int, list[dict[str, str]]]:
        """Update counts of meters already in the profile.

        Meters that are not part of the profile are failures; they are not
        inserted (use the importer for upserts).

        Returns:
            (success, failed, errors) where each error is
            ``{"meter_id": ..., "message": ...}``.
        """
        success = 0
        failed = 0
        errors: list[dict[str, str]] = []

        with self.recalculator.lanes.hold(profile_id):
            self.store.get_profile(profile_id)
            for meter_id, raw_count in updates:
                try:
                    count = parse_customer_count(raw_count)
                    if self.store.find_weight(profile_id, meter_id) is None:
                        raise NotFoundError("weight", f"{profile_id}/{meter_id}")
                    self.store.upsert_weight(profile_id, meter_id, count)
                except (ValidationError, NotFoundError, PersistenceError) as exc:
                    errors.append({"meter_id": meter_id, "message": str(exc)})
                    failed += 1
                    continue
                success += 1

            if success > 0:
                self.recalculator.recalculate(profile_id)

        log.info("Batch update %s: %d succeeded, %d failed", profile_id, success, failed)
        return success, failed, errors
