"""
Domain models for availability, bookings and slot verdicts.

All entities are read projections handed to the core by the store
collaborator; the core never mutates them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, List, Optional

from pendulum import DateTime

from .exceptions import FormatError
from .time_utils import (
    MINUTES_PER_DAY,
    day_name,
    day_of_week,
    ensure_aware,
    intervals_overlap,
    minute_of_day,
    time_to_minutes,
)

DEFAULT_BUFFER_MINUTES = 15
DEFAULT_MIN_ADVANCE_HOURS = 24
DEFAULT_MAX_ADVANCE_DAYS = 90
DEFAULT_ALLOWED_DURATIONS = (30, 60, 90, 120)
DEFAULT_CANCELLATION_HOURS = 24


@dataclass(frozen=True)
class TimeRange:
    """
    Represents an immutable [start, end) range of instants.

    Invariant: start must be before end.
    """
    start: DateTime
    end: DateTime

    def __post_init__(self):
        object.__setattr__(self, "start", ensure_aware(self.start))
        object.__setattr__(self, "end", ensure_aware(self.end))
        if self.start >= self.end:
            raise FormatError(f"Start time {self.start} must be before end time {self.end}")

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return int((self.end - self.start).total_seconds() // 60)

    def overlaps(self, other: "TimeRange") -> bool:
        """Check if this range overlaps with another."""
        return intervals_overlap(self.start, self.end, other.start, other.end)

    def contains(self, other: "TimeRange") -> bool:
        """Check if the other range lies entirely inside this one."""
        return self.start <= other.start and self.end >= other.end

    def __str__(self) -> str:
        return f"{self.start.format('YYYY-MM-DD HH:mm')} - {self.end.format('HH:mm')}"


class LessonStatus(str, Enum):
    """Lifecycle states of a lesson record."""
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    EXPIRED = "EXPIRED"


# Only these statuses block a teacher's time.
ACTIVE_STATUSES: FrozenSet[LessonStatus] = frozenset({LessonStatus.PENDING, LessonStatus.CONFIRMED})

EXPORTABLE_STATUSES: FrozenSet[LessonStatus] = frozenset(
    {LessonStatus.PENDING, LessonStatus.CONFIRMED, LessonStatus.COMPLETED}
)


@dataclass(frozen=True)
class WeeklyRule:
    """
    A recurring weekly availability window in the owner's local time.

    ``day_of_week`` uses 0=Sunday. ``start_time``/``end_time`` are "HH:MM".
    """
    owner_id: str
    day_of_week: int
    start_time: str
    end_time: str
    is_active: bool = True
    timezone: str = "UTC"

    def __post_init__(self):
        if not 0 <= self.day_of_week <= 6:
            raise FormatError(f"day_of_week must be between 0 and 6, got {self.day_of_week}")
        if self.start_minutes >= self.end_minutes:
            raise FormatError(
                f"Rule start {self.start_time} must be before end {self.end_time}"
            )

    @property
    def start_minutes(self) -> int:
        return time_to_minutes(self.start_time)

    @property
    def end_minutes(self) -> int:
        return time_to_minutes(self.end_time)

    def covers(self, start: DateTime, end: DateTime) -> bool:
        """
        Check whether [start, end) falls inside this rule's window.

        Both instants are viewed in the rule's timezone. The end is measured
        from the start's local midnight, so an interval running past
        midnight never fits a same-day window.
        """
        local_start = ensure_aware(start).in_timezone(self.timezone)
        local_end = ensure_aware(end).in_timezone(self.timezone)

        if day_of_week(local_start) != self.day_of_week:
            return False

        start_minute = minute_of_day(local_start)
        end_minute = minute_of_day(local_end)
        day_offset = local_end.date().toordinal() - local_start.date().toordinal()
        end_minute += day_offset * MINUTES_PER_DAY

        return self.start_minutes <= start_minute and self.end_minutes >= end_minute

    def __str__(self) -> str:
        return f"{day_name(self.day_of_week)} {self.start_time}-{self.end_time} ({self.timezone})"


@dataclass(frozen=True)
class BlockedRange:
    """
    An explicit period in which the owner cannot be booked.

    ``recurrence_rule`` is stored verbatim and never expanded.
    """
    owner_id: str
    start: DateTime
    end: DateTime
    reason: Optional[str] = None
    recurring: bool = False
    recurrence_rule: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "start", ensure_aware(self.start))
        object.__setattr__(self, "end", ensure_aware(self.end))
        if self.start >= self.end:
            raise FormatError(f"Blocked start {self.start} must be before end {self.end}")

    @property
    def time_range(self) -> TimeRange:
        return TimeRange(start=self.start, end=self.end)

    def contains(self, start: DateTime, end: DateTime) -> bool:
        """True if the candidate lies entirely inside the block."""
        return self.time_range.contains(TimeRange(start=start, end=end))


@dataclass(frozen=True)
class BookingPolicy:
    """Owner-configurable booking rules."""
    owner_id: str
    buffer_minutes: int = DEFAULT_BUFFER_MINUTES
    min_advance_hours: int = DEFAULT_MIN_ADVANCE_HOURS
    max_advance_days: int = DEFAULT_MAX_ADVANCE_DAYS
    allowed_durations: FrozenSet[int] = frozenset(DEFAULT_ALLOWED_DURATIONS)
    auto_accept: bool = False
    cancellation_hours: int = DEFAULT_CANCELLATION_HOURS

    def __post_init__(self):
        object.__setattr__(self, "allowed_durations", frozenset(self.allowed_durations))
        if self.buffer_minutes < 0:
            raise FormatError(f"buffer_minutes must be >= 0, got {self.buffer_minutes}")
        if self.min_advance_hours < 1:
            raise FormatError(f"min_advance_hours must be >= 1, got {self.min_advance_hours}")
        if self.max_advance_days < 1:
            raise FormatError(f"max_advance_days must be >= 1, got {self.max_advance_days}")
        if any(duration <= 0 for duration in self.allowed_durations):
            raise FormatError("allowed_durations must contain positive minute values")

    def allows_duration(self, duration_minutes: int) -> bool:
        return duration_minutes in self.allowed_durations

    def sorted_durations(self) -> List[int]:
        return sorted(self.allowed_durations)


@dataclass(frozen=True)
class BusinessHours:
    """Fixed sanity bound on the hour-of-day a lesson may start."""
    start_hour: int = 6
    end_hour: int = 23

    def allows_hour(self, hour: int) -> bool:
        return not (hour < self.start_hour or hour > self.end_hour)

    def describe(self) -> str:
        return f"between {_format_hour(self.start_hour)} and {_format_hour(self.end_hour)}"


def _format_hour(hour: int) -> str:
    if hour == 0:
        return "12 AM"
    if hour == 12:
        return "12 PM"
    return f"{hour % 12} {'AM' if hour < 12 else 'PM'}"


@dataclass(frozen=True)
class ExistingBooking:
    """Read projection of a lesson occupying the owner's time."""
    owner_id: str
    start: DateTime
    end: DateTime
    status: LessonStatus
    lesson_id: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    def overlaps(self, start: DateTime, end: DateTime) -> bool:
        return intervals_overlap(self.start, self.end, start, end)


class ViolationCode(str, Enum):
    """Identifies which constraint rejected a candidate interval."""
    IN_PAST = "in_past"
    LESSON_CONFLICT = "lesson_conflict"
    BLOCKED = "blocked"
    OUTSIDE_SCHEDULE = "outside_schedule"
    ADVANCE_NOTICE = "advance_notice"
    BOOKING_HORIZON = "booking_horizon"
    DURATION_NOT_ALLOWED = "duration_not_allowed"
    OUTSIDE_BUSINESS_HOURS = "outside_business_hours"


@dataclass(frozen=True)
class Violation:
    """A single failed constraint and its human-readable reason."""
    code: ViolationCode
    message: str


@dataclass(frozen=True)
class AvailabilityResult:
    """Verdict of the conflict checker for one interval."""
    available: bool
    reason: Optional[str] = None
    code: Optional[ViolationCode] = None

    @classmethod
    def ok(cls) -> "AvailabilityResult":
        return cls(available=True)

    @classmethod
    def rejected(cls, violation: Violation) -> "AvailabilityResult":
        return cls(available=False, reason=violation.message, code=violation.code)


@dataclass(frozen=True)
class CandidateSlot:
    """A generated slot annotated with its availability verdict."""
    start: DateTime
    end: DateTime
    available: bool
    unavailable_reason: Optional[str] = None

    @property
    def duration_minutes(self) -> int:
        return int((self.end - self.start).total_seconds() // 60)

    def to_dict(self) -> dict:
        return {
            "start": self.start.to_iso8601_string(),
            "end": self.end.to_iso8601_string(),
            "available": self.available,
            "unavailable_reason": self.unavailable_reason,
        }


@dataclass(frozen=True)
class SlotSummary:
    """Counts over a slot listing and the earliest open slot."""
    total: int
    available: int
    next_available: Optional[CandidateSlot] = None

    @property
    def booked(self) -> int:
        return self.total - self.available

    def to_dict(self) -> dict:
        next_slot = None
        if self.next_available is not None:
            start = self.next_available.start
            next_slot = {
                "date": start.format("YYYY-MM-DD"),
                "time": start.format("h:mm A"),
                "day_of_week": day_name(day_of_week(start)),
                "start": start.to_iso8601_string(),
            }
        return {
            "total_slots": self.total,
            "available_slots": self.available,
            "booked_slots": self.booked,
            "next_available": next_slot,
        }


@dataclass
class BookingValidation:
    """Outcome of booking admission control."""
    errors: List[str] = field(default_factory=list)
    violations: List[Violation] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    def add(self, violation: Violation) -> None:
        self.violations.append(violation)
        self.errors.append(violation.message)


@dataclass(frozen=True)
class Participant:
    """Name and e-mail of a lesson participant."""
    name: str
    email: str


@dataclass(frozen=True)
class CalendarLesson:
    """Input for calendar export."""
    id: str
    title: str
    start: DateTime
    duration_minutes: int
    organizer: Participant
    attendee: Participant

    @property
    def end(self) -> DateTime:
        return self.start.add(minutes=self.duration_minutes)


@dataclass(frozen=True)
class UserProfile:
    """Owner or student as known to the store."""
    id: str
    name: str
    email: str
    timezone: str = "UTC"

    def as_participant(self) -> Participant:
        return Participant(name=self.name, email=self.email)


@dataclass(frozen=True)
class LessonRecord:
    """A persisted lesson as held by the store collaborator."""
    id: str
    teacher_id: str
    student_id: str
    title: str
    start: DateTime
    duration_minutes: int
    status: LessonStatus = LessonStatus.PENDING
    skill: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "start", ensure_aware(self.start))
        object.__setattr__(self, "status", LessonStatus(self.status))
        if self.duration_minutes <= 0:
            raise FormatError(f"Lesson duration must be positive, got {self.duration_minutes}")

    @property
    def end(self) -> DateTime:
        return self.start.add(minutes=self.duration_minutes)

    @property
    def display_title(self) -> str:
        return f"{self.skill}: {self.title}" if self.skill else self.title

    def as_booking(self) -> ExistingBooking:
        return ExistingBooking(
            owner_id=self.teacher_id,
            start=self.start,
            end=self.end,
            status=self.status,
            lesson_id=self.id,
        )
