"""
Adapters layer - storage collaborators for the scheduling core.
"""

from .json_store import JsonScheduleStore
from .memory_store import InMemoryScheduleStore

__all__ = ["InMemoryScheduleStore", "JsonScheduleStore"]
