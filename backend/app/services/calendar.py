"""Day-name canonicalization and period-time arithmetic.

Days arrive from several human sources (English, Bulgarian, abbreviations, odd casing).
Everything past the boundary uses ``DayOfWeek``; raw strings are never compared deeper in.

Interval membership is closed-closed: a moment equal to a period's start or end is inside it.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from datetime import date, datetime, time
from enum import Enum

from app.core.exceptions import ConfigurationError, UnrecognizedDayError

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class DayOfWeek(str, Enum):
    monday = "Monday"
    tuesday = "Tuesday"
    wednesday = "Wednesday"
    thursday = "Thursday"
    friday = "Friday"
    saturday = "Saturday"
    sunday = "Sunday"

    @classmethod
    def from_date(cls, value: date) -> "DayOfWeek":
        return WEEKDAY_ORDER[value.weekday()]


WEEKDAY_ORDER: tuple[DayOfWeek, ...] = tuple(DayOfWeek)

BULGARIAN_DAY_NAMES: dict[DayOfWeek, str] = {
    DayOfWeek.monday: "Понеделник",
    DayOfWeek.tuesday: "Вторник",
    DayOfWeek.wednesday: "Сряда",
    DayOfWeek.thursday: "Четвъртък",
    DayOfWeek.friday: "Петък",
    DayOfWeek.saturday: "Събота",
    DayOfWeek.sunday: "Неделя",
}

DAY_SHORT_MAP: dict[str, DayOfWeek] = {
    "Mon": DayOfWeek.monday,
    "Tue": DayOfWeek.tuesday,
    "Wed": DayOfWeek.wednesday,
    "Thu": DayOfWeek.thursday,
    "Fri": DayOfWeek.friday,
    "Sat": DayOfWeek.saturday,
    "Sun": DayOfWeek.sunday,
}

DEFAULT_DAY_ALIASES: dict[str, DayOfWeek] = {
    **{name: day for day, name in BULGARIAN_DAY_NAMES.items()},
    **DAY_SHORT_MAP,
}


def _fold(value: str) -> str:
    return " ".join(value.split()).casefold()


def _coerce_day(value: DayOfWeek | str) -> DayOfWeek:
    if isinstance(value, DayOfWeek):
        return value
    try:
        return DayOfWeek(value)
    except ValueError as exc:
        raise ConfigurationError(f"Unknown canonical day in configuration: {value!r}") from exc


class DayNormalizer:
    """Bidirectional day-name table built from configuration.

    Inbound, any canonical English name or configured alias (case and surrounding
    whitespace ignored) maps to exactly one ``DayOfWeek``. Outbound, ``display_name``
    renders a day with the configured display spelling.
    """

    def __init__(
        self,
        aliases: Mapping[str, DayOfWeek | str],
        display_names: Mapping[DayOfWeek | str, str] | None = None,
    ) -> None:
        lookup: dict[str, DayOfWeek] = {_fold(day.value): day for day in DayOfWeek}
        for spelling, target in aliases.items():
            day = _coerce_day(target)
            key = _fold(spelling)
            if not key:
                raise ConfigurationError("Day alias must not be blank")
            existing = lookup.get(key)
            if existing is not None and existing is not day:
                raise ConfigurationError(
                    f"Day alias {spelling!r} maps to {day.value} but already denotes {existing.value}"
                )
            lookup[key] = day
        self._lookup = lookup

        names = display_names if display_names is not None else {day: day.value for day in DayOfWeek}
        display: dict[DayOfWeek, str] = {}
        for day, label in names.items():
            display[_coerce_day(day)] = label
        missing = [day.value for day in DayOfWeek if day not in display]
        if missing:
            raise ConfigurationError(f"Display day names missing for: {', '.join(missing)}")
        for day, label in display.items():
            # Display spellings must read back to the same day.
            if self._lookup.get(_fold(label), day) is not day:
                raise ConfigurationError(f"Display name {label!r} for {day.value} denotes another day")
            self._lookup.setdefault(_fold(label), day)
        self._display = display

    def canonical_day(self, name: str | DayOfWeek) -> DayOfWeek:
        if isinstance(name, DayOfWeek):
            return name
        day = self._lookup.get(_fold(name or ""))
        if day is None:
            raise UnrecognizedDayError(name)
        return day

    def display_name(self, day: DayOfWeek | str) -> str:
        return self._display[self.canonical_day(day)]

    def spellings(self) -> dict[str, DayOfWeek]:
        return dict(self._lookup)


def parse_time_of_day(value: str | time) -> time:
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0, tzinfo=None)
    if not TIME_PATTERN.match(value):
        raise ValueError("Time must be in HH:MM 24-hour format")
    hours, minutes = value.split(":")
    return time(int(hours), int(minutes))


def format_time_of_day(value: time) -> str:
    return f"{value.hour:02d}:{value.minute:02d}"


def minutes_of_day(value: time) -> int:
    return value.hour * 60 + value.minute


def seconds_of_day(value: time | datetime) -> int:
    return value.hour * 3600 + value.minute * 60 + value.second


def overlaps(a_start: int, a_end: int, b_start: int, b_end: int) -> bool:
    """Closed-closed intersection test; touching endpoints count as overlapping."""
    return max(a_start, b_start) <= min(a_end, b_end)


def contains(start: int, end: int, point: int) -> bool:
    return overlaps(start, end, point, point)
