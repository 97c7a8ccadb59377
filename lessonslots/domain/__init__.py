"""
Domain layer - availability rules, slot enumeration and booking checks.
"""

from .booking_validator import BookingValidator
from .conflict_checker import ConflictChecker
from .exceptions import FormatError, NotFoundError, SchedulingError, StoreError, ValidationError
from .ical_exporter import CalendarExporter
from .models import (
    AvailabilityResult,
    BlockedRange,
    BookingPolicy,
    BookingValidation,
    CalendarLesson,
    CandidateSlot,
    ExistingBooking,
    LessonStatus,
    Participant,
    SlotSummary,
    TimeRange,
    WeeklyRule,
)
from .slot_generator import SlotGenerator, group_slots_by_date, summarize_slots

__all__ = [
    "AvailabilityResult",
    "BlockedRange",
    "BookingPolicy",
    "BookingValidation",
    "BookingValidator",
    "CalendarExporter",
    "CalendarLesson",
    "CandidateSlot",
    "ConflictChecker",
    "ExistingBooking",
    "FormatError",
    "LessonStatus",
    "NotFoundError",
    "Participant",
    "SchedulingError",
    "SlotGenerator",
    "SlotSummary",
    "StoreError",
    "TimeRange",
    "ValidationError",
    "WeeklyRule",
    "group_slots_by_date",
    "summarize_slots",
]
