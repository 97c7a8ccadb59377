"""
In-memory schedule store.

Plays the storage collaborator for the scheduling core: holds users, weekly
rules, blocked ranges, booking policies and lessons as plain domain objects.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from ..domain.exceptions import FormatError, NotFoundError
from ..domain.models import (
    ACTIVE_STATUSES,
    EXPORTABLE_STATUSES,
    BlockedRange,
    BookingPolicy,
    ExistingBooking,
    LessonRecord,
    TimeRange,
    UserProfile,
    WeeklyRule,
)

ROLES = ("teacher", "student")


class InMemoryScheduleStore:
    """Dictionary/list backed store, used directly in tests and by the JSON store."""

    def __init__(
        self,
        users: Iterable[UserProfile] = (),
        weekly_rules: Iterable[WeeklyRule] = (),
        blocked_ranges: Iterable[BlockedRange] = (),
        policies: Iterable[BookingPolicy] = (),
        lessons: Iterable[LessonRecord] = (),
    ) -> None:
        self.users: Dict[str, UserProfile] = {user.id: user for user in users}
        self.weekly_rules: List[WeeklyRule] = list(weekly_rules)
        self.blocked_ranges: List[BlockedRange] = list(blocked_ranges)
        self.policies: Dict[str, BookingPolicy] = {policy.owner_id: policy for policy in policies}
        self.lessons: List[LessonRecord] = list(lessons)

    def get_user(self, user_id: str) -> UserProfile:
        """
        Look up a user.

        Raises:
            NotFoundError: If the user is unknown
        """
        try:
            return self.users[user_id]
        except KeyError:
            raise NotFoundError(f"User '{user_id}' not found") from None

    def list_weekly_rules(self, owner_id: str) -> List[WeeklyRule]:
        return [rule for rule in self.weekly_rules if rule.owner_id == owner_id]

    def list_blocked_ranges(self, owner_id: str, window: TimeRange) -> List[BlockedRange]:
        return [
            block for block in self.blocked_ranges
            if block.owner_id == owner_id and window.overlaps(block.time_range)
        ]

    def get_booking_policy(self, owner_id: str) -> Optional[BookingPolicy]:
        return self.policies.get(owner_id)

    def list_active_bookings(self, owner_id: str, window: TimeRange) -> List[ExistingBooking]:
        bookings = []
        for lesson in self.lessons:
            if lesson.teacher_id != owner_id or lesson.status not in ACTIVE_STATUSES:
                continue
            booking = lesson.as_booking()
            if booking.overlaps(window.start, window.end):
                bookings.append(booking)
        return bookings

    def list_lessons(
        self,
        user_id: str,
        window: TimeRange,
        role: Optional[str] = None,
    ) -> List[LessonRecord]:
        """
        Lessons starting inside the window where the user teaches or learns.

        Only pending, confirmed and completed lessons are returned, ordered
        by start time.
        """
        if role is not None and role not in ROLES:
            raise FormatError(f"Role must be one of {', '.join(ROLES)}, got '{role}'")

        selected = []
        for lesson in self.lessons:
            if lesson.status not in EXPORTABLE_STATUSES:
                continue
            if not window.start <= lesson.start <= window.end:
                continue
            is_teacher = lesson.teacher_id == user_id
            is_student = lesson.student_id == user_id
            if role == "teacher" and not is_teacher:
                continue
            if role == "student" and not is_student:
                continue
            if role is None and not (is_teacher or is_student):
                continue
            selected.append(lesson)

        return sorted(selected, key=lambda lesson: lesson.start)
