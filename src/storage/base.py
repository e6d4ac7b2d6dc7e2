"""Collaborator interfaces consumed by the SARFI engine.

``WeightStore`` owns profiles, meters and weight tables.  ``EventSource``
serves voltage-dip events.  Both return typed records from
:mod:`src.contracts`; raw rows never cross this boundary.
"""

from __future__ import annotations

import abc
from collections.abc import Iterable, Sequence

from src.contracts.event import DipEvent
from src.contracts.profile import Meter, Profile, WeightEntry
from src.contracts.results import WriteOutcome


class WeightStore(abc.ABC):
    """Persistence collaborator for profiles and their weight tables."""

    # ── profiles ──

    @abc.abstractmethod
    def get_profile(self, profile_id: str) -> Profile:
        """Return the profile or raise NotFoundError."""
        ...

    @abc.abstractmethod
    def list_profiles(self) -> list[Profile]:
        """All profiles, newest year first."""
        ...

    @abc.abstractmethod
    def save_profile(self, profile: Profile) -> Profile:
        """Insert or replace a profile by id."""
        ...

    @abc.abstractmethod
    def delete_profile(self, profile_id: str) -> None:
        """Delete a profile and every weight entry it owns."""
        ...

    # ── meters ──

    @abc.abstractmethod
    def get_meter(self, meter_id: str) -> Meter | None: ...

    @abc.abstractmethod
    def resolve_meter_code(self, code: str) -> str | None:
        """Map a human-readable meter code to the internal meter id."""
        ...

    # ── weights ──

    @abc.abstractmethod
    def list_weights(self, profile_id: str) -> list[WeightEntry]:
        """Entries of one profile in insertion order."""
        ...

    @abc.abstractmethod
    def get_weight(self, weight_id: str) -> WeightEntry:
        """Return one entry or raise NotFoundError."""
        ...

    @abc.abstractmethod
    def find_weight(self, profile_id: str, meter_id: str) -> WeightEntry | None: ...

    @abc.abstractmethod
    def upsert_weight(
        self,
        profile_id: str,
        meter_id: str,
        customer_count: int,
        notes: str | None = None,
    ) -> WeightEntry:
        """Insert keyed by (profile, meter) or overwrite ``customer_count``.

        Raises PersistenceError when the write fails.
        """
        ...

    @abc.abstractmethod
    def batch_set_weight_factors(
        self,
        profile_id: str,
        factors: Sequence[tuple[str, float]],
    ) -> list[WriteOutcome]:
        """Write ``(weight_id, weight_factor)`` pairs; one outcome per pair."""
        ...

    @abc.abstractmethod
    def delete_weight(self, weight_id: str) -> None: ...


class EventSource(abc.ABC):
    """Source of voltage-dip events."""

    @abc.abstractmethod
    def query_dip_events(
        self,
        meter_ids: Iterable[str],
        voltage_level: str | None = None,
        exclude_special: bool = False,
    ) -> list[DipEvent]:
        """Dip events of *meter_ids*, optionally filtered.

        ``voltage_level`` of None or ``"All"`` disables the level filter.
        """
        ...
