from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import time

from app.core.exceptions import ConfigurationError, TimetableValidationError
from app.services.calendar import (
    DayNormalizer,
    DayOfWeek,
    format_time_of_day,
    minutes_of_day,
    overlaps,
    parse_time_of_day,
)


@dataclass(frozen=True)
class PeriodDefinition:
    ordinal: int
    start: time
    end: time

    @property
    def start_minute(self) -> int:
        return minutes_of_day(self.start)

    @property
    def end_minute(self) -> int:
        return minutes_of_day(self.end)

    def as_dict(self) -> dict:
        return {
            "period": self.ordinal,
            "startTime": format_time_of_day(self.start),
            "endTime": format_time_of_day(self.end),
        }

    @classmethod
    def from_dict(cls, data: Mapping) -> "PeriodDefinition":
        return cls(
            ordinal=int(data["period"]),
            start=parse_time_of_day(data["startTime"]),
            end=parse_time_of_day(data["endTime"]),
        )


@dataclass(frozen=True)
class TimetableEntry:
    day: DayOfWeek
    period: int
    class_id: str
    subject_id: str
    teacher_id: str | None
    start: time
    end: time

    @property
    def slot(self) -> tuple[DayOfWeek, int]:
        return self.day, self.period

    @property
    def is_free_period(self) -> bool:
        return not self.teacher_id

    def as_dict(self) -> dict:
        return {
            "day": self.day.value,
            "period": self.period,
            "classId": self.class_id,
            "subjectId": self.subject_id,
            "teacherId": self.teacher_id,
            "startTime": format_time_of_day(self.start),
            "endTime": format_time_of_day(self.end),
        }

    @classmethod
    def from_dict(cls, data: Mapping) -> "TimetableEntry":
        return cls(
            day=DayOfWeek(data["day"]),
            period=int(data["period"]),
            class_id=data["classId"],
            subject_id=data["subjectId"],
            teacher_id=data.get("teacherId") or None,
            start=parse_time_of_day(data["startTime"]),
            end=parse_time_of_day(data["endTime"]),
        )


@dataclass(frozen=True)
class ClassTimetable:
    class_id: str
    entries: tuple[TimetableEntry, ...]
    periods: tuple[PeriodDefinition, ...]
    version: int = 0

    def entry_at(self, day: DayOfWeek, period: int) -> TimetableEntry | None:
        for entry in self.entries:
            if entry.day is day and entry.period == period:
                return entry
        return None


@dataclass(frozen=True)
class TeacherTimetable:
    teacher_id: str
    entries: tuple[TimetableEntry, ...] = ()
    periods: tuple[PeriodDefinition, ...] = ()
    version: int = 0


@dataclass(frozen=True)
class EngineConfig:
    """Immutable configuration shared by the engine components."""

    periods: tuple[PeriodDefinition, ...]
    days: DayNormalizer

    def __post_init__(self) -> None:
        if not self.periods:
            raise ConfigurationError("Default period schedule must define at least one period")
        try:
            validate_periods(self.periods)
        except TimetableValidationError as exc:
            raise ConfigurationError(f"Invalid default period schedule: {exc.message}") from exc


def validate_periods(periods: Sequence[PeriodDefinition]) -> None:
    seen: set[int] = set()
    for period in periods:
        if period.ordinal < 1:
            raise TimetableValidationError("Period ordinal must be >= 1", details={"period": period.ordinal})
        if period.ordinal in seen:
            raise TimetableValidationError("Duplicate period ordinal", details={"period": period.ordinal})
        seen.add(period.ordinal)
        if period.start_minute >= period.end_minute:
            raise TimetableValidationError(
                "Period start must be before its end",
                details={"period": period.ordinal},
            )

    ordered = sorted(periods, key=lambda item: item.start_minute)
    for first, second in zip(ordered, ordered[1:]):
        if overlaps(first.start_minute, first.end_minute, second.start_minute, second.end_minute):
            raise TimetableValidationError(
                "Periods overlap in time",
                details={"periods": [first.ordinal, second.ordinal]},
            )


def build_class_timetable(
    class_id: str,
    raw_entries: Iterable[Mapping],
    raw_periods: Iterable[Mapping] | None,
    config: EngineConfig,
    *,
    version: int = 0,
) -> ClassTimetable:
    """Normalize a human-authored class schedule into a ``ClassTimetable``.

    Raw entries carry ``day`` (any configured spelling), ``period``, ``subjectId`` and an
    optional ``teacherId``. Start and end times are copied from the period definitions;
    a timetable without its own periods uses the configured default schedule.
    """
    periods = tuple(PeriodDefinition.from_dict(item) for item in (raw_periods or []))
    if periods:
        validate_periods(periods)
    else:
        periods = config.periods
    by_ordinal = {period.ordinal: period for period in periods}

    entries: list[TimetableEntry] = []
    seen: set[tuple[DayOfWeek, int]] = set()
    for raw in raw_entries:
        day = config.days.canonical_day(raw["day"])
        ordinal = int(raw["period"])
        definition = by_ordinal.get(ordinal)
        if definition is None:
            raise TimetableValidationError(
                f"Period {ordinal} is not defined for class {class_id}",
                details={"day": day.value, "period": ordinal},
            )
        if (day, ordinal) in seen:
            raise TimetableValidationError(
                f"Class {class_id} has more than one entry on {day.value} period {ordinal}",
                details={"day": day.value, "period": ordinal},
            )
        seen.add((day, ordinal))
        entries.append(
            TimetableEntry(
                day=day,
                period=ordinal,
                class_id=class_id,
                subject_id=raw["subjectId"],
                teacher_id=raw.get("teacherId") or None,
                start=definition.start,
                end=definition.end,
            )
        )
    return ClassTimetable(class_id=class_id, entries=tuple(entries), periods=periods, version=version)

