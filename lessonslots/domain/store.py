"""
Read-only view of the availability store consumed by the scheduling core.
"""

from __future__ import annotations

from typing import List, Optional, Protocol

from .models import BlockedRange, BookingPolicy, ExistingBooking, TimeRange, WeeklyRule


class AvailabilityStoreProtocol(Protocol):
    """
    Protocol describing the store behaviour needed by the core.

    Range arguments are hints for the store's own query; the core repeats
    every overlap and containment test in-process on whatever it receives.
    """

    def list_weekly_rules(self, owner_id: str) -> List[WeeklyRule]:
        """Return all weekly rules of the owner, active or not."""

    def list_blocked_ranges(self, owner_id: str, window: TimeRange) -> List[BlockedRange]:
        """Return blocked ranges that may touch the window."""

    def get_booking_policy(self, owner_id: str) -> Optional[BookingPolicy]:
        """Return the owner's policy, or None when none is stored."""

    def list_active_bookings(self, owner_id: str, window: TimeRange) -> List[ExistingBooking]:
        """Return bookings of the owner that may touch the window."""
