"""Storage and delivery collaborators used by the timetable and attendance workflows."""

from __future__ import annotations

from datetime import date
from typing import Protocol

from app.services.attendance_gate import AttendanceRecord, AttendanceSlotKey
from app.services.timetable_model import ClassTimetable, TeacherTimetable


class TimetableStore(Protocol):
    def get_class_timetable(self, class_id: str) -> ClassTimetable | None: ...

    def list_class_timetables(self) -> list[ClassTimetable]: ...

    def upsert_class_timetable(self, timetable: ClassTimetable, *, expected_version: int | None) -> ClassTimetable: ...

    def delete_class_timetable(self, class_id: str, *, expected_version: int | None = None) -> bool: ...

    def get_teacher_timetable(self, teacher_id: str) -> TeacherTimetable | None: ...

    def list_teacher_timetables(self) -> list[TeacherTimetable]: ...

    def upsert_teacher_timetable(self, timetable: TeacherTimetable) -> TeacherTimetable: ...


class AttendanceStore(Protocol):
    def get_attendance_record(self, key: AttendanceSlotKey) -> AttendanceRecord | None: ...

    def upsert_attendance_record(self, record: AttendanceRecord) -> AttendanceRecord: ...

    def list_attendance_records(self, start: date, end: date) -> list[AttendanceRecord]: ...


class NotificationSink(Protocol):
    def notify(self, user_id: str, kind: str, payload: dict) -> None: ...


class GuardianDirectory(Protocol):
    def guardians_of(self, student_id: str) -> list[str]: ...
