"""
Tests for the in-memory schedule store.
"""

import pendulum
import pytest

from lessonslots.adapters.memory_store import InMemoryScheduleStore
from lessonslots.domain.exceptions import FormatError
from lessonslots.domain.models import BlockedRange, TimeRange


def _at(text: str):
    return pendulum.parse(text, tz="UTC")


def _block(start: str, end: str, owner_id: str = "t1") -> BlockedRange:
    return BlockedRange(owner_id=owner_id, start=_at(start), end=_at(end))


class TestListBlockedRanges:
    """Tests for window filtering of blocked ranges."""

    def test_returns_overlapping_blocks_of_owner(self):
        store = InMemoryScheduleStore(blocked_ranges=[
            _block("2026-01-12 08:00", "2026-01-12 10:00"),
            _block("2026-01-12 10:00", "2026-01-12 12:00", owner_id="t2"),
            _block("2026-01-12 11:00", "2026-01-12 13:00"),
        ])
        window = TimeRange(start=_at("2026-01-12 09:30"), end=_at("2026-01-12 11:30"))

        blocks = store.list_blocked_ranges("t1", window)

        assert [block.start for block in blocks] == [_at("2026-01-12 08:00"), _at("2026-01-12 11:00")]

    def test_touching_block_is_excluded(self):
        store = InMemoryScheduleStore(blocked_ranges=[_block("2026-01-12 08:00", "2026-01-12 10:00")])
        window = TimeRange(start=_at("2026-01-12 10:00"), end=_at("2026-01-12 11:00"))

        assert store.list_blocked_ranges("t1", window) == []


class TestListLessons:
    """Tests for lesson listing."""

    def test_rejects_unknown_role(self):
        store = InMemoryScheduleStore()
        window = TimeRange(start=_at("2026-01-12 00:00"), end=_at("2026-01-13 00:00"))

        with pytest.raises(FormatError):
            store.list_lessons("t1", window, role="admin")
