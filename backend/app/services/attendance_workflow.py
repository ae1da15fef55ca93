from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timezone
import logging

from sqlalchemy.orm import Session as DbSession

from app.services.attendance_gate import (
    AttendanceRecord,
    AttendanceSessionGate,
    AttendanceSlotKey,
    AttendanceStatus,
    changed_absences,
    merge_submission,
)
from app.services.attendance_report import (
    AttendanceReport,
    SchoolAttendanceStats,
    generate_attendance_report,
    generate_school_attendance_stats,
)
from app.services.attendance_store import SqlAttendanceStore
from app.services.calendar import DayOfWeek
from app.services.notifications import DatabaseNotificationSink, SqlGuardianDirectory, notify_attendance_change
from app.services.session_resolver import Session, SessionResolver
from app.services.stores import GuardianDirectory, NotificationSink
from app.services.timetable_store import SqlTimetableStore

logger = logging.getLogger(__name__)


@dataclass
class SubmissionOutcome:
    record: AttendanceRecord
    created: bool
    notified: dict[str, AttendanceStatus] = field(default_factory=dict)


def _utc_moment(now: datetime, resolver: SessionResolver) -> datetime:
    # Naive timestamps are school wall-clock, as in SessionResolver.local_moment.
    if now.tzinfo is None:
        now = now.replace(tzinfo=resolver.zone or timezone.utc)
    return now.astimezone(timezone.utc)


def submit_attendance(
    db: DbSession,
    key: AttendanceSlotKey,
    actor_teacher_id: str,
    statuses: Mapping[str, AttendanceStatus | str],
    resolver: SessionResolver,
    *,
    now: datetime | None = None,
    sink: NotificationSink | None = None,
    guardians: GuardianDirectory | None = None,
    max_attempts: int = 3,
) -> SubmissionOutcome:
    """Record attendance for one slot, creating the record or updating the existing one.

    Notifications for students who became absent, late or excused are written in the same
    transaction, so they exist exactly when the attendance change is committed.
    """
    now = _utc_moment(now, resolver) if now is not None else datetime.now(timezone.utc)
    attendance = SqlAttendanceStore(db, key.school_id, max_attempts=max_attempts)
    gate = AttendanceSessionGate(SqlTimetableStore(db, key.school_id), attendance, resolver)
    sink = sink or DatabaseNotificationSink(db)
    guardians = guardians or SqlGuardianDirectory(db)

    decision = gate.prepare_submission(key, actor_teacher_id)
    merged = merge_submission(decision, actor_teacher_id, statuses, now)
    # Only submitted students are written; others keep whatever is stored at commit time.
    submitted = replace(merged, statuses={student_id: merged.statuses[student_id] for student_id in statuses})

    try:
        stored = attendance.upsert_attendance_record(submitted)
        changed = {
            student_id: status
            for student_id, status in changed_absences(decision.existing, stored).items()
            if student_id in statuses
        }
        for student_id, status in changed.items():
            notify_attendance_change(sink, guardians, key=key, student_id=student_id, status=status)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(
        "Attendance %s for %s/%s %s period %d by %s (%d student(s), %d notified)",
        "updated" if decision.is_update else "recorded",
        key.class_id,
        key.subject_id,
        key.date.isoformat(),
        key.period,
        actor_teacher_id,
        len(statuses),
        len(changed),
    )
    return SubmissionOutcome(record=stored, created=not decision.is_update, notified=changed)


def get_attendance(db: DbSession, key: AttendanceSlotKey) -> AttendanceRecord | None:
    return SqlAttendanceStore(db, key.school_id).get_attendance_record(key)


def current_session_for_teacher(
    db: DbSession,
    school_id: str,
    teacher_id: str,
    now: datetime,
    resolver: SessionResolver,
) -> Session | None:
    views = SqlTimetableStore(db, school_id).list_teacher_timetables()
    return resolver.current_session(views, teacher_id, now)


def teacher_day_schedule(
    db: DbSession,
    school_id: str,
    teacher_id: str,
    on: date,
    resolver: SessionResolver,
) -> list[Session]:
    views = SqlTimetableStore(db, school_id).list_teacher_timetables()
    return resolver.sessions_on(views, teacher_id, on)


def check_slot(
    db: DbSession,
    school_id: str,
    class_id: str,
    subject_id: str,
    day: DayOfWeek | str,
    period: int,
    resolver: SessionResolver,
) -> bool:
    store = SqlTimetableStore(db, school_id)
    class_timetable = store.get_class_timetable(class_id)
    return resolver.slot_is_scheduled(
        [class_timetable] if class_timetable is not None else [],
        store.list_teacher_timetables(),
        class_id,
        subject_id,
        day,
        period,
    )


def student_attendance_report(
    db: DbSession,
    school_id: str,
    student_id: str,
    start: date,
    end: date,
) -> AttendanceReport:
    records = SqlAttendanceStore(db, school_id).list_attendance_records(start, end)
    return generate_attendance_report(records, student_id, start, end)


def school_attendance_stats(db: DbSession, school_id: str, start: date, end: date) -> SchoolAttendanceStats:
    records = SqlAttendanceStore(db, school_id).list_attendance_records(start, end)
    return generate_school_attendance_stats(records, start, end)
