"""
iCalendar (RFC 5545) export of lessons for external calendar apps.
"""

from __future__ import annotations

from typing import Callable, Iterable, List, Optional

import pendulum
from pendulum import DateTime

from .models import CalendarLesson, Participant
from .time_utils import ensure_aware

CRLF = "\r\n"
MAX_LINE_OCTETS = 75

DEFAULT_PRODID = "-//Skill Exchange Platform//EN"
DEFAULT_UID_DOMAIN = "skillexchange.com"


def format_utc(instant: DateTime) -> str:
    """Format an instant as an iCalendar UTC date-time, e.g. 20260118T093000Z."""
    return ensure_aware(instant).in_timezone("UTC").format("YYYYMMDD[T]HHmmss[Z]")


def escape_text(value: str) -> str:
    """Escape a TEXT property value."""
    return (
        value.replace("\\", "\\\\")
        .replace(";", "\\;")
        .replace(",", "\\,")
        .replace("\r\n", "\\n")
        .replace("\n", "\\n")
    )


def _param_value(value: str) -> str:
    # Parameter values may not contain DQUOTE; quote when they hold separators.
    value = value.replace('"', "'")
    if any(char in value for char in ':;,'):
        return f'"{value}"'
    return value


def fold_line(line: str) -> str:
    """
    Fold a content line so no physical line exceeds 75 octets.

    Continuation lines start with a single space. Multi-byte characters are
    never split.
    """
    if len(line.encode("utf-8")) <= MAX_LINE_OCTETS:
        return line

    parts: List[str] = []
    current = ""
    current_octets = 0
    limit = MAX_LINE_OCTETS

    for char in line:
        size = len(char.encode("utf-8"))
        if current_octets + size > limit:
            parts.append(current)
            current = " "
            current_octets = 1
        current += char
        current_octets += size

    parts.append(current)
    return CRLF.join(parts)


class CalendarExporter:
    """Serializes lessons into a VCALENDAR document."""

    def __init__(
        self,
        *,
        prodid: str = DEFAULT_PRODID,
        uid_domain: str = DEFAULT_UID_DOMAIN,
        clock: Callable[[], DateTime] = pendulum.now,
    ) -> None:
        self.prodid = prodid
        self.uid_domain = uid_domain
        self._clock = clock

    def export_icalendar(self, lessons: Iterable[CalendarLesson], stamp: Optional[DateTime] = None) -> str:
        """
        Render the lessons as iCalendar text.

        Every event carries STATUS:CONFIRMED whatever the lesson's state.
        Identical lessons and stamp always yield identical output.
        """
        dtstamp = format_utc(stamp if stamp is not None else self._clock())

        lines = [
            "BEGIN:VCALENDAR",
            "VERSION:2.0",
            f"PRODID:{self.prodid}",
            "CALSCALE:GREGORIAN",
        ]

        for lesson in lessons:
            lines.extend(self._event_lines(lesson, dtstamp))

        lines.append("END:VCALENDAR")
        return CRLF.join(fold_line(line) for line in lines) + CRLF

    def _event_lines(self, lesson: CalendarLesson, dtstamp: str) -> List[str]:
        return [
            "BEGIN:VEVENT",
            f"UID:{lesson.id}@{self.uid_domain}",
            f"DTSTAMP:{dtstamp}",
            f"DTSTART:{format_utc(lesson.start)}",
            f"DTEND:{format_utc(lesson.end)}",
            f"SUMMARY:{escape_text(lesson.title)}",
            f"DESCRIPTION:{escape_text(f'Lesson with {lesson.organizer.name}')}",
            _address_line("ORGANIZER", lesson.organizer),
            _address_line("ATTENDEE", lesson.attendee),
            "STATUS:CONFIRMED",
            "END:VEVENT",
        ]


def _address_line(name: str, participant: Participant) -> str:
    return f"{name};CN={_param_value(participant.name)}:mailto:{participant.email}"
