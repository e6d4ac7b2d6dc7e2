"""Tests for src.storage.lanes — per-profile serialization."""

from __future__ import annotations

import threading
import time

import pytest

from src.contracts.errors import NotFoundError
from src.sarfi.engine import SarfiEngine
from src.sarfi.importer import ProfileImporter
from src.sarfi.weights import WeightRecalculator
from src.storage.lanes import ProfileLanes


def start_blocked(target, *args):
    """Run *target* in a thread and collect its result or exception."""
    outcome: dict = {}

    def run():
        try:
            outcome["result"] = target(*args)
        except Exception as exc:
            outcome["error"] = exc

    t = threading.Thread(target=run)
    t.start()
    # give the thread time to reach the held lane
    time.sleep(0.1)
    return t, outcome


# ═══════════════════════════════════════════════════════════════════════════
#  ProfileLanes
# ═══════════════════════════════════════════════════════════════════════════


class TestProfileLanes:
    def test_reentrant(self):
        lanes = ProfileLanes()
        with lanes.hold("P-1"):
            with lanes.hold("P-1"):
                assert lanes.active() == 1
        assert lanes.active() == 0

    def test_lane_dropped_after_error(self):
        lanes = ProfileLanes()
        with pytest.raises(RuntimeError):
            with lanes.hold("P-1"):
                raise RuntimeError("boom")
        assert lanes.active() == 0
        # the lane is usable again
        with lanes.hold("P-1"):
            pass

    def test_same_profile_is_serialized(self):
        lanes = ProfileLanes()
        active = []
        overlaps = []

        def worker():
            with lanes.hold("P-1"):
                active.append(1)
                if len(active) > 1:
                    overlaps.append(True)
                time.sleep(0.01)
                active.pop()

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert overlaps == []
        assert lanes.active() == 0

    def test_different_profiles_do_not_block(self):
        lanes = ProfileLanes()
        entered = threading.Event()

        def other():
            with lanes.hold("P-2"):
                entered.set()

        with lanes.hold("P-1"):
            t = threading.Thread(target=other)
            t.start()
            assert entered.wait(timeout=2)
            t.join()
            assert lanes.active() == 1
        assert lanes.active() == 0


# ═══════════════════════════════════════════════════════════════════════════
#  Shared registry
# ═══════════════════════════════════════════════════════════════════════════


class TestSharedLanes:
    def test_engine_shares_one_registry(self, store):
        engine = SarfiEngine(store)
        assert engine.recalculator.lanes is engine.lanes
        assert engine.importer.recalculator.lanes is engine.lanes
        assert engine.profiles.recalculator.lanes is engine.lanes

    def test_unused_registry_is_kept(self, store):
        lanes = ProfileLanes()
        assert WeightRecalculator(store, lanes).lanes is lanes

    def test_recalculators_sharing_lanes_are_serialized(self, store):
        lanes = ProfileLanes()
        first = WeightRecalculator(store, lanes)
        second = WeightRecalculator(store, lanes)

        with lanes.hold("P-2025"):
            t, outcome = start_blocked(second.recalculate, "P-2025")
            assert t.is_alive()
            assert outcome == {}
            first.recalculate("P-2025")
        t.join(timeout=2)
        assert outcome["result"].updated == 2

    def test_engine_lane_blocks_import(self, engine):
        with engine.lanes.hold("P-2025"):
            t, outcome = start_blocked(
                engine.import_text, "P-2025", "meter_id,customer_count\nPQM-APA-01,1\n"
            )
            assert t.is_alive()
        t.join(timeout=2)
        assert outcome["result"].success_count == 1


# ═══════════════════════════════════════════════════════════════════════════
#  Edits waiting behind a lane
# ═══════════════════════════════════════════════════════════════════════════


class TestQueuedEdits:
    def test_update_after_remove_does_not_resurrect_meter(self, engine):
        with engine.lanes.hold("P-2025"):
            t, outcome = start_blocked(engine.profiles.update_customer_count, "W-0001", 500)
            engine.profiles.remove_meter_from_profile("W-0001")
        t.join(timeout=2)

        assert isinstance(outcome["error"], NotFoundError)
        weights = engine.store.list_weights("P-2025")
        assert [(w.id, w.meter_id, w.customer_count) for w in weights] == [("W-0002", "m-002", 1000)]
        assert weights[0].weight_factor == 1.0

    def test_add_meter_after_profile_delete(self, engine):
        with engine.lanes.hold("P-2025"):
            t, outcome = start_blocked(engine.profiles.add_meter_to_profile, "P-2025", "m-003", 10)
            engine.profiles.delete_profile("P-2025")
        t.join(timeout=2)

        assert isinstance(outcome["error"], NotFoundError)
        assert engine.store.all_weights() == []

    def test_import_after_profile_delete(self, engine):
        with engine.lanes.hold("P-2025"):
            t, outcome = start_blocked(
                engine.import_text, "P-2025", "meter_id,customer_count\nPQM-CPK-03,10\n"
            )
            engine.profiles.delete_profile("P-2025")
        t.join(timeout=2)

        assert isinstance(outcome["error"], NotFoundError)
        assert engine.store.all_weights() == []


class TestConcurrentWriters:
    def test_concurrent_imports_leave_consistent_factors(self, store):
        recalc = WeightRecalculator(store)
        importer = ProfileImporter(store, recalc)

        def run(count):
            text = f"meter_id,customer_count\nPQM-APA-01,{count}\nPQM-CPK-03,{count * 2}\n"
            importer.import_text("P-2025", text)

        threads = [threading.Thread(target=run, args=(n,)) for n in range(1, 11)]
        threads += [threading.Thread(target=recalc.recalculate, args=("P-2025",)) for _ in range(5)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        weights = store.list_weights("P-2025")
        total = sum(w.customer_count for w in weights)
        for w in weights:
            assert abs(w.weight_factor - w.customer_count / total) <= 1e-12
        assert abs(sum(w.weight_factor for w in weights) - 1.0) <= 1e-9
