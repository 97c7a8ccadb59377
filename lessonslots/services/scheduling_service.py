"""
Application service exposing the scheduling core to a host layer.

The service wires a store adapter to the domain components, resolves owners
(unknown owners raise ``NotFoundError`` here, never inside the core) and
fills in configured defaults. HTTP handlers or the CLI call into it.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from datetime import date, datetime
from typing import Callable, List, Optional, Protocol, Sequence, Union

import pendulum
from pendulum import DateTime

from ..config import AppConfig
from ..domain.booking_validator import BookingValidator
from ..domain.conflict_checker import ConflictChecker
from ..domain.ical_exporter import CalendarExporter
from ..domain.models import (
    AvailabilityResult,
    BookingPolicy,
    BookingValidation,
    CalendarLesson,
    CandidateSlot,
    LessonRecord,
    SlotSummary,
    TimeRange,
    UserProfile,
)
from ..domain.slot_generator import SlotGenerator, group_slots_by_date, summarize_slots
from ..domain.store import AvailabilityStoreProtocol
from ..domain.time_utils import ensure_aware

logger = logging.getLogger(__name__)

DateLike = Union[date, datetime]


class ScheduleStoreProtocol(AvailabilityStoreProtocol, Protocol):
    """Store behaviour needed by the service on top of the core's reads."""

    def get_user(self, user_id: str) -> UserProfile:
        """Return the user or raise NotFoundError."""

    def list_lessons(
        self,
        user_id: str,
        window: TimeRange,
        role: Optional[str] = None,
    ) -> List[LessonRecord]:
        """Return exportable lessons of the user starting inside the window."""


class SchedulingService:
    """
    Facade over slot generation, availability checks, booking validation and
    calendar export.
    """

    def __init__(
        self,
        store: ScheduleStoreProtocol,
        config: Optional[AppConfig] = None,
        clock: Callable[[], DateTime] = pendulum.now,
    ) -> None:
        self._store = store
        self._config = config or AppConfig()
        self._clock = clock

        self.checker = ConflictChecker(
            store,
            default_policy=self._config.policy_defaults.to_policy,
            business_hours=self._config.business_hours.to_business_hours(),
            default_timezone=self._config.timezone,
            clock=clock,
        )
        self.generator = SlotGenerator(store, self.checker)
        self.validator = BookingValidator(self.checker)
        self.exporter = CalendarExporter(
            prodid=self._config.calendar.prodid,
            uid_domain=self._config.calendar.uid_domain,
            clock=clock,
        )

    def get_user(self, user_id: str) -> UserProfile:
        """Raises NotFoundError for unknown owners and students."""
        return self._store.get_user(user_id)

    def owner_timezone(self, owner_id: str) -> str:
        return self.checker.owner_timezone(self._store.list_weekly_rules(owner_id))

    def effective_policy(self, owner_id: str) -> BookingPolicy:
        """The owner's stored policy, or the configured defaults."""
        self.get_user(owner_id)
        return self.checker.resolve_policy(owner_id)

    def generate_slots(
        self,
        owner_id: str,
        start_date: Optional[DateLike] = None,
        end_date: Optional[DateLike] = None,
        duration_minutes: Optional[int] = None,
    ) -> List[CandidateSlot]:
        """
        List candidate slots for an owner.

        Defaults: today, today + ``slot_window_days``, ``duration_minutes``
        from config.
        """
        self.get_user(owner_id)
        defaults = self._config.defaults

        if start_date is None:
            start_date = self._clock().in_timezone(self.owner_timezone(owner_id))
        if end_date is None:
            end_date = _shift_days(start_date, defaults.slot_window_days)
        if duration_minutes is None:
            duration_minutes = defaults.duration_minutes

        return self.generator.generate_slots(owner_id, start_date, end_date, duration_minutes)

    def generate_slots_by_date(self, *args, **kwargs) -> "OrderedDict[str, List[CandidateSlot]]":
        """``generate_slots`` grouped by local start date."""
        return group_slots_by_date(self.generate_slots(*args, **kwargs))

    def slot_summary(self, *args, **kwargs) -> SlotSummary:
        """Total, available and booked counts plus the earliest open slot."""
        return summarize_slots(self.generate_slots(*args, **kwargs))

    def next_available(self, *args, **kwargs) -> Optional[CandidateSlot]:
        """The earliest open slot, or None when everything is taken."""
        return self.slot_summary(*args, **kwargs).next_available

    def check_available(self, owner_id: str, start: DateTime, end: DateTime) -> AvailabilityResult:
        self.get_user(owner_id)
        return self.checker.check_available(owner_id, start, end)

    def validate_booking(self, owner_id: str, start: DateTime, duration_minutes: int) -> BookingValidation:
        self.get_user(owner_id)
        return self.validator.validate_booking(owner_id, start, duration_minutes)

    def require_valid_booking(self, owner_id: str, start: DateTime, duration_minutes: int) -> BookingValidation:
        """
        Admission gate for lesson creation.

        Raises:
            ValidationError: Listing every violated constraint
        """
        self.get_user(owner_id)
        return self.validator.ensure_valid(owner_id, start, duration_minutes)

    def export_icalendar(self, lessons: Sequence[CalendarLesson], stamp: Optional[DateTime] = None) -> str:
        return self.exporter.export_icalendar(lessons, stamp=stamp)

    def export_user_calendar(
        self,
        user_id: str,
        role: Optional[str] = None,
        start: Optional[DateTime] = None,
        end: Optional[DateTime] = None,
        stamp: Optional[DateTime] = None,
    ) -> str:
        """
        Export a user's pending, confirmed and completed lessons.

        ``role`` limits the export to lessons the user teaches ("teacher") or
        attends ("student"). The window defaults to now .. now +
        ``export_window_days``.
        """
        self.get_user(user_id)
        now = self._clock()
        start = ensure_aware(start) if start is not None else now
        end = ensure_aware(end) if end is not None else now.add(days=self._config.defaults.export_window_days)

        lessons = self._store.list_lessons(user_id, TimeRange(start=start, end=end), role=role)
        calendar_lessons = [self._to_calendar_lesson(lesson) for lesson in lessons]
        logger.info("Exporting %d lessons for %s", len(calendar_lessons), user_id)
        return self.exporter.export_icalendar(calendar_lessons, stamp=stamp)

    def _to_calendar_lesson(self, lesson: LessonRecord) -> CalendarLesson:
        teacher = self._store.get_user(lesson.teacher_id)
        student = self._store.get_user(lesson.student_id)
        return CalendarLesson(
            id=lesson.id,
            title=lesson.display_title,
            start=lesson.start,
            duration_minutes=lesson.duration_minutes,
            organizer=teacher.as_participant(),
            attendee=student.as_participant(),
        )


def _shift_days(value: DateLike, days: int) -> DateLike:
    if isinstance(value, datetime):
        return ensure_aware(value).add(days=days)
    return pendulum.Date(value.year, value.month, value.day).add(days=days)
