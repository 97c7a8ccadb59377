"""
Per-interval availability verdicts for a teacher.

The checks run in a fixed precedence order and the first failure wins:

1. an active (pending/confirmed) lesson overlaps the interval
2. a blocked range fully contains the interval
3. no active weekly rule contains the interval
4. the start is closer than the policy's minimum advance notice
5. the start is further out than the policy's booking horizon
6. the duration is not one of the policy's allowed durations
7. the start hour lies outside business hours

All comparisons happen in-process on plain data fetched from the store.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterator, List, Optional

import pendulum
from pendulum import DateTime

from .exceptions import FormatError
from .models import (
    AvailabilityResult,
    BookingPolicy,
    BusinessHours,
    TimeRange,
    Violation,
    ViolationCode,
    WeeklyRule,
)
from .store import AvailabilityStoreProtocol

logger = logging.getLogger(__name__)

Clock = Callable[[], DateTime]

LESSON_CONFLICT_MESSAGE = "Teacher has another lesson at this time"
BLOCKED_DEFAULT_MESSAGE = "Teacher is unavailable at this time"
OUTSIDE_SCHEDULE_MESSAGE = "Outside teacher's regular availability"


class ConflictChecker:
    """
    Decides whether a teacher can take a lesson in a given interval.

    The checker holds no state between calls. ``clock`` supplies "now" and
    exists so callers and tests can pin time.
    """

    def __init__(
        self,
        store: AvailabilityStoreProtocol,
        *,
        default_policy: Optional[Callable[[str], BookingPolicy]] = None,
        business_hours: Optional[BusinessHours] = None,
        default_timezone: str = "UTC",
        clock: Clock = pendulum.now,
    ) -> None:
        self._store = store
        self._default_policy = default_policy or (lambda owner_id: BookingPolicy(owner_id=owner_id))
        self.business_hours = business_hours or BusinessHours()
        self.default_timezone = default_timezone
        self._clock = clock

    def now(self) -> DateTime:
        return self._clock()

    def resolve_policy(self, owner_id: str) -> BookingPolicy:
        """Return the stored policy or the documented defaults."""
        policy = self._store.get_booking_policy(owner_id)
        if policy is None:
            logger.debug("No booking policy stored for %s, using defaults", owner_id)
            return self._default_policy(owner_id)
        return policy

    def owner_timezone(self, rules: List[WeeklyRule]) -> str:
        """Timezone of the owner's first active rule, else the default."""
        for rule in rules:
            if rule.is_active:
                return rule.timezone
        return self.default_timezone

    def check_available(self, owner_id: str, start: DateTime, end: DateTime) -> AvailabilityResult:
        """
        Return the verdict for [start, end), short-circuiting on the first
        failed check.

        Raises:
            FormatError: If start is not before end
        """
        window = TimeRange(start=start, end=end)

        for violation in self._iter_violations(owner_id, window):
            logger.debug("%s unavailable for %s: %s", owner_id, window, violation.message)
            return AvailabilityResult.rejected(violation)

        return AvailabilityResult.ok()

    def collect_violations(self, owner_id: str, start: DateTime, end: DateTime) -> List[Violation]:
        """Run every check and return all failures in precedence order."""
        return list(self._iter_violations(owner_id, TimeRange(start=start, end=end)))

    def schedule_violations(self, owner_id: str, start: DateTime, end: DateTime) -> Iterator[Violation]:
        """Lazily yield failures of checks 1-5 (lessons, blocks, rules, notice, horizon)."""
        return self._iter_schedule_violations(owner_id, TimeRange(start=start, end=end))

    def policy_violations(self, owner_id: str, start: DateTime, end: DateTime) -> Iterator[Violation]:
        """Lazily yield failures of checks 6-7 (duration, business hours)."""
        return self._iter_policy_violations(owner_id, TimeRange(start=start, end=end))

    def _iter_violations(self, owner_id: str, window: TimeRange) -> Iterator[Violation]:
        yield from self._iter_schedule_violations(owner_id, window)
        yield from self._iter_policy_violations(owner_id, window)

    def _iter_schedule_violations(self, owner_id: str, window: TimeRange) -> Iterator[Violation]:
        # Store reads happen lazily so a short-circuiting caller skips them.
        bookings = self._store.list_active_bookings(owner_id, window)
        if any(booking.is_active and booking.overlaps(window.start, window.end) for booking in bookings):
            yield Violation(ViolationCode.LESSON_CONFLICT, LESSON_CONFLICT_MESSAGE)

        blocks = self._store.list_blocked_ranges(owner_id, window)
        for block in blocks:
            if block.recurring:
                logger.debug(
                    "Recurrence rule %r on blocked range %s-%s is not expanded",
                    block.recurrence_rule, block.start, block.end,
                )
            if block.contains(window.start, window.end):
                yield Violation(ViolationCode.BLOCKED, block.reason or BLOCKED_DEFAULT_MESSAGE)
                break

        rules = self._store.list_weekly_rules(owner_id)
        if not any(rule.is_active and rule.covers(window.start, window.end) for rule in rules):
            yield Violation(ViolationCode.OUTSIDE_SCHEDULE, OUTSIDE_SCHEDULE_MESSAGE)

        policy = self.resolve_policy(owner_id)
        hours_until = (window.start - self.now()).total_seconds() / 3600

        if hours_until < policy.min_advance_hours:
            yield Violation(
                ViolationCode.ADVANCE_NOTICE,
                f"Need at least {policy.min_advance_hours} hours advance notice",
            )

        if hours_until / 24 > policy.max_advance_days:
            yield Violation(
                ViolationCode.BOOKING_HORIZON,
                f"Can only book up to {policy.max_advance_days} days in advance",
            )

    def _iter_policy_violations(self, owner_id: str, window: TimeRange) -> Iterator[Violation]:
        policy = self.resolve_policy(owner_id)
        duration = window.duration_minutes()
        if not policy.allows_duration(duration):
            allowed = ", ".join(str(value) for value in policy.sorted_durations())
            yield Violation(
                ViolationCode.DURATION_NOT_ALLOWED,
                f"Duration must be one of: {allowed} minutes",
            )

        rules = self._store.list_weekly_rules(owner_id)
        local_start = window.start.in_timezone(self.owner_timezone(rules))
        if not self.business_hours.allows_hour(local_start.hour):
            yield Violation(
                ViolationCode.OUTSIDE_BUSINESS_HOURS,
                f"Please select a time {self.business_hours.describe()}",
            )


def require_positive_duration(duration_minutes: int) -> int:
    """Reject zero or negative lesson durations."""
    if isinstance(duration_minutes, bool) or not isinstance(duration_minutes, int):
        raise FormatError(f"Duration must be a whole number of minutes, got {duration_minutes!r}")
    if duration_minutes <= 0:
        raise FormatError(f"Duration must be positive, got {duration_minutes}")
    return duration_minutes
