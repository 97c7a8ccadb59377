"""
Domain-specific exception hierarchy for the lesson scheduling core.
"""

from __future__ import annotations

from typing import Iterable, List


class SchedulingError(Exception):
    """Base class for all application-level errors."""


class FormatError(SchedulingError, ValueError):
    """Raised for malformed times, dates, intervals or durations."""


class NotFoundError(SchedulingError, LookupError):
    """Raised by the store when an owner or user does not exist."""


class StoreError(SchedulingError):
    """Raised when schedule data cannot be loaded or parsed."""


class ValidationError(SchedulingError):
    """Raised when a booking request fails admission control."""

    def __init__(self, errors: Iterable[str]):
        self.errors: List[str] = list(errors)
        super().__init__("; ".join(self.errors) or "Booking request is invalid")
