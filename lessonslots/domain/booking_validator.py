"""
Admission control for new lesson bookings.

Reports the first failing schedule check (lesson, block, weekly rule, notice,
horizon) plus the independent duration and business-hours checks. Persisting
the lesson is the caller's job; the caller must also re-check for a racing
booking inside its own transaction, since time passes between validation and
insert.
"""

from __future__ import annotations

import logging

from pendulum import DateTime

from .conflict_checker import ConflictChecker, require_positive_duration
from .exceptions import ValidationError
from .models import BookingValidation, Violation, ViolationCode
from .time_utils import ensure_aware

logger = logging.getLogger(__name__)

PAST_BOOKING_MESSAGE = "Cannot book lessons in the past"


class BookingValidator:
    """Validates a proposed lesson against all booking constraints."""

    def __init__(self, checker: ConflictChecker):
        self._checker = checker

    def validate_booking(self, owner_id: str, start: DateTime, duration_minutes: int) -> BookingValidation:
        """
        Collect the violated constraints for the proposed lesson.

        Only the first schedule violation is reported. A start in the past
        already implies insufficient notice, so the advance-notice violation
        is not reported in that case.
        """
        require_positive_duration(duration_minutes)
        start = ensure_aware(start)
        end = start.add(minutes=duration_minutes)

        result = BookingValidation()
        in_past = start < self._checker.now()
        if in_past:
            result.add(Violation(ViolationCode.IN_PAST, PAST_BOOKING_MESSAGE))

        for violation in self._checker.schedule_violations(owner_id, start, end):
            if in_past and violation.code is ViolationCode.ADVANCE_NOTICE:
                continue
            result.add(violation)
            break

        for violation in self._checker.policy_violations(owner_id, start, end):
            result.add(violation)

        if result.valid:
            logger.debug("Booking for %s at %s (%d min) accepted", owner_id, start, duration_minutes)
        else:
            logger.info(
                "Booking for %s at %s (%d min) rejected: %s",
                owner_id, start, duration_minutes, "; ".join(result.errors),
            )
        return result

    def ensure_valid(self, owner_id: str, start: DateTime, duration_minutes: int) -> BookingValidation:
        """
        Like ``validate_booking`` but raise when the booking is invalid.

        Raises:
            ValidationError: Carrying the full list of errors
        """
        result = self.validate_booking(owner_id, start, duration_minutes)
        if not result.valid:
            raise ValidationError(result.errors)
        return result
