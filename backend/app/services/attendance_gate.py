"""Gatekeeping for attendance submissions.

One record exists per ``AttendanceSlotKey``. A submission for a key that already has a
record updates it: submitted statuses overwrite those of the same students, other students
keep theirs, ``created_at`` is preserved and ``updated_at`` moves forward.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
import logging
from typing import TYPE_CHECKING

from app.core.exceptions import SlotNotScheduledError
from app.services.calendar import DayOfWeek
from app.services.session_resolver import SessionResolver

if TYPE_CHECKING:
    from app.services.stores import AttendanceStore, TimetableStore

logger = logging.getLogger(__name__)


class AttendanceStatus(str, Enum):
    present = "present"
    absent = "absent"
    late = "late"
    excused = "excused"

    @property
    def justified(self) -> bool:
        return self is AttendanceStatus.excused


@dataclass(frozen=True)
class AttendanceSlotKey:
    school_id: str
    class_id: str
    subject_id: str
    date: date
    period: int

    @property
    def day(self) -> DayOfWeek:
        return DayOfWeek.from_date(self.date)

    def as_dict(self) -> dict:
        return {
            "school_id": self.school_id,
            "class_id": self.class_id,
            "subject_id": self.subject_id,
            "date": self.date.isoformat(),
            "day": self.day.value,
            "period": self.period,
        }


@dataclass(frozen=True)
class AttendanceRecord:
    key: AttendanceSlotKey
    statuses: Mapping[str, AttendanceStatus]
    teacher_id: str
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class GateDecision:
    key: AttendanceSlotKey
    scheduled: bool
    existing: AttendanceRecord | None = None
    expected: list[dict] = field(default_factory=list)

    @property
    def is_update(self) -> bool:
        return self.existing is not None


class AttendanceSessionGate:
    def __init__(
        self,
        timetables: "TimetableStore",
        attendance: "AttendanceStore",
        resolver: SessionResolver,
    ) -> None:
        self.timetables = timetables
        self.attendance = attendance
        self.resolver = resolver

    def prepare_submission(self, key: AttendanceSlotKey, actor_teacher_id: str) -> GateDecision:
        class_timetable = self.timetables.get_class_timetable(key.class_id)
        class_timetables = [class_timetable] if class_timetable is not None else []
        teacher_views = self.timetables.list_teacher_timetables()

        day = key.day
        expected = [
            {"period": entry.period, "subject_id": entry.subject_id, "teacher_id": entry.teacher_id}
            for entry in sorted(
                (item for item in (class_timetable.entries if class_timetable else ()) if item.day is day),
                key=lambda item: item.period,
            )
        ]
        scheduled = self.resolver.slot_is_scheduled(
            class_timetables,
            teacher_views,
            key.class_id,
            key.subject_id,
            day,
            key.period,
        )
        if not scheduled:
            logger.info(
                "Rejected attendance by %s for unscheduled slot %s/%s %s period %d",
                actor_teacher_id,
                key.class_id,
                key.subject_id,
                day.value,
                key.period,
            )
            return GateDecision(key=key, scheduled=False, expected=expected)

        existing = self.attendance.get_attendance_record(key)
        return GateDecision(key=key, scheduled=True, existing=existing, expected=expected)


def merge_submission(
    decision: GateDecision,
    actor_teacher_id: str,
    statuses: Mapping[str, AttendanceStatus | str],
    now: datetime,
) -> AttendanceRecord:
    if not decision.scheduled:
        raise SlotNotScheduledError(requested=decision.key.as_dict(), expected=decision.expected)

    submitted = {student_id: AttendanceStatus(status) for student_id, status in statuses.items()}
    existing = decision.existing
    if existing is None:
        return AttendanceRecord(
            key=decision.key,
            statuses=submitted,
            teacher_id=actor_teacher_id,
            created_at=now,
            updated_at=now,
        )
    return AttendanceRecord(
        key=decision.key,
        statuses={**existing.statuses, **submitted},
        teacher_id=actor_teacher_id,
        created_at=existing.created_at,
        updated_at=max(now, existing.updated_at),
    )


def changed_absences(
    previous: AttendanceRecord | None,
    stored: AttendanceRecord,
) -> dict[str, AttendanceStatus]:
    """Students whose stored status became absent, late or excused in this commit."""
    before = previous.statuses if previous is not None else {}
    return {
        student_id: status
        for student_id, status in stored.statuses.items()
        if status is not AttendanceStatus.present and before.get(student_id) is not status
    }
