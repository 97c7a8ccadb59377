"""
Core business logic for enumerating bookable time slots.

Pure domain logic: weekly rules and the booking policy come from the store,
every per-slot verdict comes from the ``ConflictChecker``.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from datetime import date, datetime, timedelta
from typing import Dict, List, Sequence, Tuple, Union

import pendulum
from pendulum import DateTime

from .conflict_checker import ConflictChecker, require_positive_duration
from .exceptions import FormatError
from .models import CandidateSlot, SlotSummary, WeeklyRule
from .store import AvailabilityStoreProtocol
from .time_utils import day_of_week

logger = logging.getLogger(__name__)

DateLike = Union[date, datetime]


class SlotGenerator:
    """
    Enumerates fixed-length candidate slots from a teacher's weekly rules.

    Algorithm:
    1. Fetch active weekly rules and the booking policy once
    2. Walk each local calendar day from start_date to end_date inclusive
    3. For each rule on that day, step from the rule start (or the previous
       rule's next step, if later) in increments of duration + buffer while
       the slot still ends inside the rule
    4. Drop slots that start before now
    5. Tag every remaining slot with the conflict checker's verdict
    """

    def __init__(self, store: AvailabilityStoreProtocol, checker: ConflictChecker):
        self._store = store
        self._checker = checker

    def generate_slots(
        self,
        owner_id: str,
        start_date: DateLike,
        end_date: DateLike,
        duration_minutes: int,
    ) -> List[CandidateSlot]:
        """
        Generate annotated candidate slots for the owner.

        Args:
            owner_id: Teacher whose schedule is enumerated
            start_date: First day (a date, or an instant whose local day is used)
            end_date: Last day, inclusive
            duration_minutes: Length of every slot

        Returns:
            Slots ordered by start time; empty if the owner has no active rules

        Raises:
            FormatError: On a non-positive duration or an inverted date range
        """
        require_positive_duration(duration_minutes)

        rules = [rule for rule in self._store.list_weekly_rules(owner_id) if rule.is_active]
        if not rules:
            logger.info("Owner %s has no active weekly rules", owner_id)
            return []

        policy = self._checker.resolve_policy(owner_id)
        slot_interval = duration_minutes + policy.buffer_minutes

        timezone = self._checker.owner_timezone(rules)
        first_day = _local_date(start_date, timezone)
        last_day = _local_date(end_date, timezone)
        if last_day < first_day:
            raise FormatError(f"End date {last_day} is before start date {first_day}")

        rules_by_day = self._group_rules_by_day(rules)
        now = self._checker.now()
        slots: List[CandidateSlot] = []

        current = first_day
        while current <= last_day:
            day_slots: List[CandidateSlot] = []
            next_minute = 0

            for rule in rules_by_day.get(day_of_week(current), []):
                rule_slots, next_minute = self._slots_for_rule(
                    owner_id, rule, current, duration_minutes, slot_interval, now, next_minute
                )
                day_slots.extend(rule_slots)

            day_slots.sort(key=lambda slot: slot.start)
            slots.extend(day_slots)
            current += timedelta(days=1)

        logger.info(
            "Generated %d slots (%d available) for %s between %s and %s",
            len(slots),
            sum(1 for slot in slots if slot.available),
            owner_id,
            first_day,
            last_day,
        )
        return slots

    def _slots_for_rule(
        self,
        owner_id: str,
        rule: WeeklyRule,
        day: date,
        duration_minutes: int,
        slot_interval: int,
        now: DateTime,
        earliest_minute: int,
    ) -> Tuple[List[CandidateSlot], int]:
        """
        Step through one rule's window on one day.

        Stepping starts no earlier than ``earliest_minute`` so slots of
        touching rules keep the buffer. Returns the slots and the earliest
        start for the next rule.
        """
        slots: List[CandidateSlot] = []
        end_minutes = rule.end_minutes

        minute = max(rule.start_minutes, earliest_minute)
        while minute + duration_minutes <= end_minutes:
            slot_start = pendulum.datetime(
                day.year, day.month, day.day, minute // 60, minute % 60, tz=rule.timezone
            )
            slot_end = slot_start.add(minutes=duration_minutes)
            minute += slot_interval

            if slot_start < now:
                continue

            verdict = self._checker.check_available(owner_id, slot_start, slot_end)
            slots.append(
                CandidateSlot(
                    start=slot_start,
                    end=slot_end,
                    available=verdict.available,
                    unavailable_reason=verdict.reason,
                )
            )

        return slots, minute

    @staticmethod
    def _group_rules_by_day(rules: Sequence[WeeklyRule]) -> Dict[int, List[WeeklyRule]]:
        grouped: Dict[int, List[WeeklyRule]] = {}
        for rule in sorted(rules, key=lambda r: (r.day_of_week, r.start_minutes)):
            grouped.setdefault(rule.day_of_week, []).append(rule)
        return grouped


def group_slots_by_date(slots: Sequence[CandidateSlot]) -> "OrderedDict[str, List[CandidateSlot]]":
    """Group slots by their local start date ("YYYY-MM-DD"), keeping order."""
    grouped: "OrderedDict[str, List[CandidateSlot]]" = OrderedDict()
    for slot in slots:
        grouped.setdefault(slot.start.format("YYYY-MM-DD"), []).append(slot)
    return grouped


def summarize_slots(slots: Sequence[CandidateSlot]) -> SlotSummary:
    """Count open slots and pick the earliest one."""
    open_slots = [slot for slot in slots if slot.available]
    return SlotSummary(
        total=len(slots),
        available=len(open_slots),
        next_available=min(open_slots, key=lambda slot: slot.start, default=None),
    )


def _local_date(value: DateLike, timezone: str) -> date:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            raise FormatError(f"Datetime {value} has no timezone")
        return pendulum.instance(value).in_timezone(timezone).date()
    if isinstance(value, date):
        return value
    raise FormatError(f"Expected a date or datetime, got {type(value).__name__}")
