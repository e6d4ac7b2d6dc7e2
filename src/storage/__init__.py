"""Storage collaborators: weight store, event source, per-profile lanes."""

from src.storage.base import EventSource, WeightStore
from src.storage.events import MemoryEventSource, filter_dip_events, load_dip_events
from src.storage.lanes import ProfileLanes
from src.storage.memory import MemoryStore
from src.storage.snapshot import load_store, save_store

__all__ = [
    "EventSource",
    "MemoryEventSource",
    "MemoryStore",
    "ProfileLanes",
    "WeightStore",
    "filter_dip_events",
    "load_dip_events",
    "load_store",
    "save_store",
]
