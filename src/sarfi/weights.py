"""Weight Recalculator — customer counts → normalized weight factors.

Formula
───────
    weight_factor_i = customer_count_i / SUM(customer_count over the profile)

The denominator is profile-wide, so any change to one entry's customer
count invalidates every factor of that profile.  Recalculation therefore
always covers the whole profile, in three strictly ordered phases run
inside the profile's lane:

    1. fetch   — read every entry of the profile
    2. compute — derive all new factors in memory
    3. persist — one batched write of (weight_id, weight_factor) pairs

Zero total
──────────
    If the profile's customers sum to 0 every factor becomes 0.  This is a
    valid state (logged as a warning), not an error.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from src.contracts.profile import WeightEntry
from src.contracts.results import RecalcResult
from src.storage.base import WeightStore
from src.storage.lanes import ProfileLanes

log = logging.getLogger(__name__)


def compute_weight_factors(entries: Sequence[WeightEntry]) -> tuple[int, list[tuple[str, float]]]:
    """Return ``(total_customers, [(weight_id, weight_factor), ...])``.

    Pure function; the order of the pairs follows *entries*.
    """
    total = sum(e.customer_count for e in entries)
    if total == 0:
        return 0, [(e.id, 0.0) for e in entries]
    return total, [(e.id, e.customer_count / total) for e in entries]


class WeightRecalculator:
    """Recalculates and persists the weight factors of one profile at a time."""

    def __init__(self, store: WeightStore, lanes: ProfileLanes | None = None) -> None:
        self.store = store
        self.lanes = lanes if lanes is not None else ProfileLanes()

    def recalculate(self, profile_id: str) -> RecalcResult:
        """Recompute every weight factor of *profile_id*.

        Raises:
            NotFoundError: the profile does not exist.

        Returns:
            RecalcResult; entries the store failed to write are listed in
            ``failures`` and the rest stay committed.
        """
        with self.lanes.hold(profile_id):
            self.store.get_profile(profile_id)
            entries = self.store.list_weights(profile_id)
            result = RecalcResult(profile_id=profile_id)
            if not entries:
                log.warning("No weights found for profile %s — nothing to recalculate", profile_id)
                return result

            total, factors = compute_weight_factors(entries)
            result.total_customers = total
            if total == 0:
                log.warning(
                    "Total customer count is 0 for profile %s — all %d weight factors set to 0",
                    profile_id,
                    len(entries),
                )

            outcomes = self.store.batch_set_weight_factors(profile_id, factors)

        result.failures = [o for o in outcomes if not o.ok]
        result.updated = len(outcomes) - len(result.failures)
        if result.failures:
            log.error(
                "Profile %s: %d of %d weight factors failed to persist (%s)",
                profile_id,
                len(result.failures),
                len(outcomes),
                ", ".join(o.weight_id for o in result.failures),
            )
        log.info(
            "Recalculated weight factors for profile %s: %d meters, %d customers",
            profile_id,
            result.updated,
            total,
        )
        return result
