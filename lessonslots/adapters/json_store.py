"""
Schedule store backed by a JSON document.

Expected layout::

    {
      "users": [{"id": "t1", "name": "...", "email": "...", "timezone": "Asia/Kolkata"}],
      "weekly_rules": [{"owner_id": "t1", "day_of_week": 1, "start_time": "09:00", "end_time": "17:00"}],
      "blocked_ranges": [{"owner_id": "t1", "start": "...", "end": "...", "reason": "..."}],
      "booking_policies": [{"owner_id": "t1", "buffer_minutes": 15, "allowed_durations": [60]}],
      "lessons": [{"id": "l1", "teacher_id": "t1", "student_id": "s1", "title": "...",
                   "start": "...", "duration_minutes": 60, "status": "CONFIRMED"}]
    }

Records that fail to parse are skipped with a warning; a file that is not
valid JSON raises ``StoreError``.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, TypeVar

from ..domain.exceptions import FormatError, StoreError
from ..domain.models import BlockedRange, BookingPolicy, LessonRecord, LessonStatus, UserProfile, WeeklyRule
from ..domain.time_utils import parse_instant
from .memory_store import InMemoryScheduleStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


class JsonScheduleStore(InMemoryScheduleStore):
    """In-memory store populated from a JSON file."""

    def __init__(self, data: Dict[str, Any], default_timezone: str = "UTC"):
        self.default_timezone = default_timezone

        users = _parse_records(data, "users", self._parse_user)
        user_timezones = {user.id: user.timezone for user in users}

        super().__init__(
            users=users,
            weekly_rules=_parse_records(
                data, "weekly_rules", lambda raw: self._parse_rule(raw, user_timezones)
            ),
            blocked_ranges=_parse_records(data, "blocked_ranges", self._parse_block),
            policies=_parse_records(data, "booking_policies", self._parse_policy),
            lessons=_parse_records(data, "lessons", self._parse_lesson),
        )

    @classmethod
    def from_file(cls, data_file: Path, default_timezone: str = "UTC") -> "JsonScheduleStore":
        """
        Load schedule data from a JSON file.

        Raises:
            StoreError: If the file is missing or not a JSON object
        """
        if not data_file.exists():
            raise StoreError(f"Schedule data file not found: {data_file}")

        try:
            with open(data_file, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as exc:
            raise StoreError(f"Invalid JSON in {data_file}: {exc}") from exc

        if not isinstance(data, dict):
            raise StoreError("Schedule data file must contain an object at the root level.")

        logger.debug("Loaded schedule data from %s", data_file)
        return cls(data, default_timezone=default_timezone)

    def _parse_user(self, raw: Dict[str, Any]) -> UserProfile:
        return UserProfile(
            id=str(raw["id"]),
            name=raw["name"],
            email=raw["email"],
            timezone=raw.get("timezone") or self.default_timezone,
        )

    def _parse_rule(self, raw: Dict[str, Any], user_timezones: Dict[str, str]) -> WeeklyRule:
        owner_id = str(raw["owner_id"])
        return WeeklyRule(
            owner_id=owner_id,
            day_of_week=int(raw["day_of_week"]),
            start_time=raw["start_time"],
            end_time=raw["end_time"],
            is_active=bool(raw.get("is_active", True)),
            timezone=raw.get("timezone") or user_timezones.get(owner_id, self.default_timezone),
        )

    def _parse_block(self, raw: Dict[str, Any]) -> BlockedRange:
        return BlockedRange(
            owner_id=str(raw["owner_id"]),
            start=parse_instant(raw["start"], tz=self.default_timezone),
            end=parse_instant(raw["end"], tz=self.default_timezone),
            reason=raw.get("reason"),
            recurring=bool(raw.get("recurring", False)),
            recurrence_rule=raw.get("recurrence_rule"),
        )

    def _parse_policy(self, raw: Dict[str, Any]) -> BookingPolicy:
        values = {key: raw[key] for key in (
            "buffer_minutes",
            "min_advance_hours",
            "max_advance_days",
            "allowed_durations",
            "auto_accept",
            "cancellation_hours",
        ) if key in raw}
        return BookingPolicy(owner_id=str(raw["owner_id"]), **values)

    def _parse_lesson(self, raw: Dict[str, Any]) -> LessonRecord:
        return LessonRecord(
            id=str(raw["id"]),
            teacher_id=str(raw["teacher_id"]),
            student_id=str(raw["student_id"]),
            title=raw["title"],
            start=parse_instant(raw["start"], tz=self.default_timezone),
            duration_minutes=int(raw["duration_minutes"]),
            status=LessonStatus(raw.get("status", LessonStatus.PENDING.value)),
            skill=raw.get("skill"),
        )


def _parse_records(data: Dict[str, Any], key: str, parser: Callable[[Dict[str, Any]], T]) -> List[T]:
    raw_records = data.get(key) or []
    if not isinstance(raw_records, list):
        raise StoreError(f"'{key}' must be a list")

    parsed: List[T] = []
    for index, raw in enumerate(raw_records):
        try:
            if not isinstance(raw, dict):
                raise TypeError("record is not an object")
            parsed.append(parser(raw))
        except (KeyError, TypeError, ValueError, FormatError) as exc:
            logger.warning("Skipping invalid %s record #%d: %s", key, index, exc)
    return parsed
