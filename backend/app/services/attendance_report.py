from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date

from app.services.attendance_gate import AttendanceRecord, AttendanceStatus


@dataclass
class SubjectAttendance:
    total_periods: int = 0
    absent_periods: int = 0
    late_periods: int = 0
    excused_periods: int = 0

    @property
    def absence_rate(self) -> float:
        return _percent(self.absent_periods, self.total_periods)

    def as_dict(self) -> dict:
        return {
            "total_periods": self.total_periods,
            "absent_periods": self.absent_periods,
            "late_periods": self.late_periods,
            "excused_periods": self.excused_periods,
            "absence_rate": self.absence_rate,
        }


@dataclass
class AttendanceReport:
    student_id: str
    start: date
    end: date
    total_days: int = 0
    absent_days: int = 0
    late_days: int = 0
    excused_days: int = 0
    by_subject: dict[str, SubjectAttendance] = field(default_factory=dict)

    @property
    def absence_rate(self) -> float:
        return _percent(self.absent_days, self.total_days)

    @property
    def tardy_rate(self) -> float:
        return _percent(self.late_days, self.total_days)


def _percent(part: int, whole: int) -> float:
    return round(part / whole * 100, 2) if whole else 0.0


def generate_attendance_report(
    records: Iterable[AttendanceRecord],
    student_id: str,
    start: date,
    end: date,
) -> AttendanceReport:
    """Summarize one student's attendance between ``start`` and ``end`` inclusive.

    Day counts are distinct calendar days; a day with two absences counts once.
    Subject figures count periods.
    """
    days: dict[AttendanceStatus | None, set[date]] = {
        None: set(),
        AttendanceStatus.absent: set(),
        AttendanceStatus.late: set(),
        AttendanceStatus.excused: set(),
    }
    by_subject: dict[str, SubjectAttendance] = {}

    for record in records:
        session_date = record.key.date
        status = record.statuses.get(student_id)
        if status is None or not start <= session_date <= end:
            continue
        days[None].add(session_date)
        if status in days:
            days[status].add(session_date)

        stats = by_subject.setdefault(record.key.subject_id, SubjectAttendance())
        stats.total_periods += 1
        if status is AttendanceStatus.absent:
            stats.absent_periods += 1
        elif status is AttendanceStatus.late:
            stats.late_periods += 1
        elif status is AttendanceStatus.excused:
            stats.excused_periods += 1

    return AttendanceReport(
        student_id=student_id,
        start=start,
        end=end,
        total_days=len(days[None]),
        absent_days=len(days[AttendanceStatus.absent]),
        late_days=len(days[AttendanceStatus.late]),
        excused_days=len(days[AttendanceStatus.excused]),
        by_subject=dict(sorted(by_subject.items())),
    )


@dataclass
class ClassAttendance:
    students: set[str] = field(default_factory=set)
    total_records: int = 0
    absent_count: int = 0
    late_count: int = 0
    excused_count: int = 0
    present_count: int = 0

    @property
    def total_students(self) -> int:
        return len(self.students)

    @property
    def absence_rate(self) -> float:
        return _percent(self.absent_count, self.total_records)

    def add(self, student_id: str, status: AttendanceStatus) -> None:
        self.students.add(student_id)
        self.total_records += 1
        if status is AttendanceStatus.absent:
            self.absent_count += 1
        elif status is AttendanceStatus.late:
            self.late_count += 1
        elif status is AttendanceStatus.excused:
            self.excused_count += 1
        else:
            self.present_count += 1


@dataclass
class SchoolAttendanceStats(ClassAttendance):
    start: date | None = None
    end: date | None = None
    by_class: dict[str, ClassAttendance] = field(default_factory=dict)

    @property
    def tardy_rate(self) -> float:
        return _percent(self.late_count, self.total_records)


def generate_school_attendance_stats(
    records: Iterable[AttendanceRecord],
    start: date,
    end: date,
) -> SchoolAttendanceStats:
    """Aggregate every student status recorded between ``start`` and ``end`` inclusive.

    Each (student, period) status counts as one record, so rates are per period attended.
    """
    stats = SchoolAttendanceStats(start=start, end=end)
    by_class: dict[str, ClassAttendance] = {}
    for record in records:
        if not start <= record.key.date <= end:
            continue
        class_stats = by_class.setdefault(record.key.class_id, ClassAttendance())
        for student_id, status in record.statuses.items():
            stats.add(student_id, status)
            class_stats.add(student_id, status)
    stats.by_class = dict(sorted(by_class.items()))
    return stats
