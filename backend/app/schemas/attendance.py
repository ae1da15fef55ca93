import datetime as dt

from pydantic import BaseModel, Field

from app.services.attendance_gate import AttendanceRecord, AttendanceStatus
from app.services.attendance_report import AttendanceReport, ClassAttendance, SchoolAttendanceStats
from app.services.calendar import DayNormalizer


class AttendanceSubmission(BaseModel):
    class_id: str = Field(min_length=1, max_length=36)
    subject_id: str = Field(min_length=1, max_length=36)
    date: dt.date
    period: int = Field(ge=1, le=24)
    statuses: dict[str, AttendanceStatus] = Field(min_length=1)


class AttendanceRecordOut(BaseModel):
    school_id: str
    class_id: str
    subject_id: str
    date: dt.date
    day: str
    day_label: str
    period: int
    statuses: dict[str, AttendanceStatus]
    teacher_id: str
    created_at: dt.datetime
    updated_at: dt.datetime

    @classmethod
    def from_record(cls, record: AttendanceRecord, days: DayNormalizer) -> "AttendanceRecordOut":
        key = record.key
        return cls(
            school_id=key.school_id,
            class_id=key.class_id,
            subject_id=key.subject_id,
            date=key.date,
            day=key.day.value,
            day_label=days.display_name(key.day),
            period=key.period,
            statuses=dict(record.statuses),
            teacher_id=record.teacher_id,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )


class AttendanceSubmissionOut(BaseModel):
    created: bool
    record: AttendanceRecordOut
    notified_students: list[str] = Field(default_factory=list)


class SubjectAttendanceOut(BaseModel):
    total_periods: int
    absent_periods: int
    late_periods: int
    excused_periods: int
    absence_rate: float


class AttendanceReportOut(BaseModel):
    student_id: str
    start_date: dt.date
    end_date: dt.date
    total_days: int
    absent_days: int
    late_days: int
    excused_days: int
    absence_rate: float
    tardy_rate: float
    by_subject: dict[str, SubjectAttendanceOut]

    @classmethod
    def from_report(cls, report: AttendanceReport) -> "AttendanceReportOut":
        return cls(
            student_id=report.student_id,
            start_date=report.start,
            end_date=report.end,
            total_days=report.total_days,
            absent_days=report.absent_days,
            late_days=report.late_days,
            excused_days=report.excused_days,
            absence_rate=report.absence_rate,
            tardy_rate=report.tardy_rate,
            by_subject={subject_id: stats.as_dict() for subject_id, stats in report.by_subject.items()},
        )


class ClassAttendanceOut(BaseModel):
    total_students: int
    total_records: int
    absent_count: int
    late_count: int
    excused_count: int
    present_count: int
    absence_rate: float

    @classmethod
    def from_stats(cls, stats: ClassAttendance) -> "ClassAttendanceOut":
        return cls(
            total_students=stats.total_students,
            total_records=stats.total_records,
            absent_count=stats.absent_count,
            late_count=stats.late_count,
            excused_count=stats.excused_count,
            present_count=stats.present_count,
            absence_rate=stats.absence_rate,
        )


class SchoolAttendanceStatsOut(ClassAttendanceOut):
    start_date: dt.date
    end_date: dt.date
    tardy_rate: float
    by_class: dict[str, ClassAttendanceOut]

    @classmethod
    def from_school_stats(cls, stats: SchoolAttendanceStats) -> "SchoolAttendanceStatsOut":
        return cls(
            **ClassAttendanceOut.from_stats(stats).model_dump(),
            start_date=stats.start,
            end_date=stats.end,
            tardy_rate=stats.tardy_rate,
            by_class={class_id: ClassAttendanceOut.from_stats(item) for class_id, item in stats.by_class.items()},
        )
