"""Per-profile execution lanes.

A profile's weight factors share one denominator, so two writers touching
the same profile must not interleave.  Each profile id gets its own
re-entrant lock; different profiles never contend.

A lane lives only while some thread holds it or waits for it.  The last
thread to leave removes it, so the registry never grows with profiles
that are idle or deleted.
"""

from __future__ import annotations

import contextlib
import logging
import threading
from collections.abc import Iterator

log = logging.getLogger(__name__)


class _Lane:
    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = threading.RLock()
        self.users = 0


class ProfileLanes:
    """Registry of re-entrant locks keyed by profile id."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._lanes: dict[str, _Lane] = {}

    def _enter(self, profile_id: str) -> _Lane:
        with self._guard:
            lane = self._lanes.get(profile_id)
            if lane is None:
                lane = self._lanes[profile_id] = _Lane()
            lane.users += 1
            return lane

    def _leave(self, profile_id: str, lane: _Lane) -> None:
        with self._guard:
            lane.users -= 1
            if lane.users == 0:
                del self._lanes[profile_id]

    @contextlib.contextmanager
    def hold(self, profile_id: str) -> Iterator[None]:
        """Run the ``with`` body as the only writer of *profile_id*.

        Re-entrant: an import holding the lane may call the recalculator,
        which takes the same lane again on the same thread.
        """
        lane = self._enter(profile_id)
        try:
            lane.lock.acquire()
            log.debug("Lane acquired: %s", profile_id)
            try:
                yield
            finally:
                lane.lock.release()
                log.debug("Lane released: %s", profile_id)
        finally:
            self._leave(profile_id, lane)

    def active(self) -> int:
        """Number of profiles currently held or waited for."""
        with self._guard:
            return len(self._lanes)
