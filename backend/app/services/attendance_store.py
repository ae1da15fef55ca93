from __future__ import annotations

from datetime import date, datetime, timezone
import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.exceptions import ConcurrentEditError
from app.models.attendance import AttendanceRecordRow
from app.services.attendance_gate import AttendanceRecord, AttendanceSlotKey, AttendanceStatus

logger = logging.getLogger(__name__)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _record_from_row(row: AttendanceRecordRow) -> AttendanceRecord:
    return AttendanceRecord(
        key=AttendanceSlotKey(
            school_id=row.school_id,
            class_id=row.class_id,
            subject_id=row.subject_id,
            date=row.session_date,
            period=row.period,
        ),
        statuses={student_id: AttendanceStatus(status) for student_id, status in (row.statuses or {}).items()},
        teacher_id=row.teacher_id,
        created_at=_as_utc(row.created_at),
        updated_at=_as_utc(row.updated_at),
    )


def _dump_statuses(statuses) -> dict[str, str]:
    return {student_id: AttendanceStatus(status).value for student_id, status in statuses.items()}


class SqlAttendanceStore:
    """Attendance records of one school, addressed only by their slot key."""

    def __init__(self, db: Session, school_id: str, *, max_attempts: int = 3) -> None:
        self.db = db
        self.school_id = school_id
        self.max_attempts = max(1, max_attempts)

    def _select_row(self, key: AttendanceSlotKey) -> AttendanceRecordRow | None:
        return self.db.execute(
            select(AttendanceRecordRow).where(
                AttendanceRecordRow.school_id == self.school_id,
                AttendanceRecordRow.class_id == key.class_id,
                AttendanceRecordRow.subject_id == key.subject_id,
                AttendanceRecordRow.session_date == key.date,
                AttendanceRecordRow.period == key.period,
            )
        ).scalar_one_or_none()

    def get_attendance_record(self, key: AttendanceSlotKey) -> AttendanceRecord | None:
        row = self._select_row(key)
        return _record_from_row(row) if row is not None else None

    def upsert_attendance_record(self, record: AttendanceRecord) -> AttendanceRecord:
        """Insert the record, or merge its statuses into the row already stored for its key.

        A unique-constraint race on insert is retried as an update, so concurrent first
        submissions for one slot still end up as a single row.
        """
        key = record.key
        for attempt in range(1, self.max_attempts + 1):
            row = self._select_row(key)
            if row is not None:
                row.statuses = {**(row.statuses or {}), **_dump_statuses(record.statuses)}
                row.teacher_id = record.teacher_id
                row.updated_at = max(_as_utc(row.updated_at), _as_utc(record.updated_at))
                self.db.flush()
                return _record_from_row(row)

            row = AttendanceRecordRow(
                school_id=self.school_id,
                class_id=key.class_id,
                subject_id=key.subject_id,
                session_date=key.date,
                period=key.period,
                statuses=_dump_statuses(record.statuses),
                teacher_id=record.teacher_id,
                created_at=_as_utc(record.created_at),
                updated_at=_as_utc(record.updated_at),
            )
            try:
                with self.db.begin_nested():
                    self.db.add(row)
            except IntegrityError:
                logger.warning(
                    "Attendance for %s/%s %s period %d created concurrently (attempt %d); retrying as update",
                    key.class_id,
                    key.subject_id,
                    key.date.isoformat(),
                    key.period,
                    attempt,
                )
                continue
            return _record_from_row(row)

        raise ConcurrentEditError("Attendance record", f"{key.class_id}/{key.subject_id}/{key.date}/{key.period}", None)

    def list_attendance_records(self, start: date, end: date) -> list[AttendanceRecord]:
        rows = self.db.execute(
            select(AttendanceRecordRow)
            .where(
                AttendanceRecordRow.school_id == self.school_id,
                AttendanceRecordRow.session_date >= start,
                AttendanceRecordRow.session_date <= end,
            )
            .order_by(AttendanceRecordRow.session_date, AttendanceRecordRow.period)
        ).scalars()
        return [_record_from_row(row) for row in rows]
