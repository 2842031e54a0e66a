"""
Persistence for Swipe Nexus.
"""

from swipe_nexus.storage.store import KeyValueStore, MemoryStore
from swipe_nexus.storage.database import SqlKeyValueStore
from swipe_nexus.storage.progress import (
    LevelProgress,
    PlayerSettings,
    ProgressRecorder,
    ProgressStore,
)

__all__ = [
    "KeyValueStore",
    "MemoryStore",
    "SqlKeyValueStore",
    "LevelProgress",
    "PlayerSettings",
    "ProgressRecorder",
    "ProgressStore",
]
