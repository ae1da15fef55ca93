from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, datetime, time
import logging
from zoneinfo import ZoneInfo

from app.services.calendar import DayOfWeek, contains, seconds_of_day
from app.services.timetable_model import ClassTimetable, EngineConfig, TeacherTimetable, TimetableEntry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Session:
    teacher_id: str
    class_id: str
    subject_id: str
    day: DayOfWeek
    period: int
    start: time
    end: time
    session_date: date


class SessionResolver:
    """Stateless lookups of what is being taught, recomputed on every call."""

    def __init__(self, config: EngineConfig, timezone: str | None = None) -> None:
        self.config = config
        self.zone = ZoneInfo(timezone) if timezone else None

    def local_moment(self, now: datetime) -> datetime:
        # Naive timestamps are school wall-clock already.
        if now.tzinfo is None or self.zone is None:
            return now.replace(tzinfo=None)
        return now.astimezone(self.zone).replace(tzinfo=None)

    def current_session(
        self,
        teacher_timetables: Sequence[TeacherTimetable],
        teacher_id: str,
        now: datetime,
    ) -> Session | None:
        moment = self.local_moment(now)
        day = DayOfWeek.from_date(moment.date())
        second = seconds_of_day(moment)

        matches: list[TimetableEntry] = [
            entry
            for entry in self._teacher_entries(teacher_timetables, teacher_id)
            if entry.day is day and contains(seconds_of_day(entry.start), seconds_of_day(entry.end), second)
        ]
        if not matches:
            return None
        if len(matches) > 1:
            logger.warning(
                "Teacher %s has %d sessions matching %s %s; using the first stored one",
                teacher_id,
                len(matches),
                day.value,
                moment.time().isoformat(timespec="seconds"),
            )
        return self._to_session(matches[0], teacher_id, moment.date())

    def sessions_on(
        self,
        teacher_timetables: Sequence[TeacherTimetable],
        teacher_id: str,
        on: date,
    ) -> list[Session]:
        day = DayOfWeek.from_date(on)
        entries = [entry for entry in self._teacher_entries(teacher_timetables, teacher_id) if entry.day is day]
        return [self._to_session(entry, teacher_id, on) for entry in sorted(entries, key=lambda item: item.period)]

    def slot_is_scheduled(
        self,
        class_timetables: Sequence[ClassTimetable],
        teacher_timetables: Sequence[TeacherTimetable],
        class_id: str,
        subject_id: str,
        day: DayOfWeek | str,
        period: int,
    ) -> bool:
        """True when the slot is found in the class timetable or in any teacher view.

        Teacher views are checked too because projection may lag a class timetable write;
        a slot present in either view is treated as scheduled.
        """
        day = self.config.days.canonical_day(day)

        def matches(entry: TimetableEntry) -> bool:
            return (
                entry.class_id == class_id
                and entry.subject_id == subject_id
                and entry.day is day
                and entry.period == period
            )

        for timetable in class_timetables:
            if timetable.class_id == class_id and any(matches(entry) for entry in timetable.entries):
                return True
        for view in teacher_timetables:
            if any(matches(entry) for entry in view.entries):
                logger.debug(
                    "Slot %s/%s %s period %d found only in teacher view %s",
                    class_id,
                    subject_id,
                    day.value,
                    period,
                    view.teacher_id,
                )
                return True
        return False

    @staticmethod
    def _teacher_entries(teacher_timetables: Sequence[TeacherTimetable], teacher_id: str) -> list[TimetableEntry]:
        return [
            entry
            for view in teacher_timetables
            if view.teacher_id == teacher_id
            for entry in view.entries
            if entry.teacher_id == teacher_id
        ]

    @staticmethod
    def _to_session(entry: TimetableEntry, teacher_id: str, on: date) -> Session:
        return Session(
            teacher_id=teacher_id,
            class_id=entry.class_id,
            subject_id=entry.subject_id,
            day=entry.day,
            period=entry.period,
            start=entry.start,
            end=entry.end,
            session_date=on,
        )
