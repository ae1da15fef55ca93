from datetime import date, datetime, timedelta, timezone

import pytest

from app.core.exceptions import SlotNotScheduledError
from app.services.attendance_gate import (
    AttendanceRecord,
    AttendanceSessionGate,
    AttendanceSlotKey,
    AttendanceStatus,
    changed_absences,
    merge_submission,
)
from app.services.projection import project_teacher_views
from app.services.session_resolver import SessionResolver
from app.services.timetable_model import build_class_timetable

NOW = datetime(2026, 10, 19, 9, 30, tzinfo=timezone.utc)


class MemoryTimetables:
    def __init__(self, class_timetables, teacher_views):
        self.classes = {item.class_id: item for item in class_timetables}
        self.views = list(teacher_views)

    def get_class_timetable(self, class_id):
        return self.classes.get(class_id)

    def list_teacher_timetables(self):
        return self.views


class MemoryAttendance:
    def __init__(self):
        self.records = {}

    def get_attendance_record(self, key):
        return self.records.get(key)


@pytest.fixture
def gate(config):
    class_a = build_class_timetable(
        "A",
        [
            {"day": "Monday", "period": 3, "subjectId": "S", "teacherId": "T"},
            {"day": "Monday", "period": 1, "subjectId": "M", "teacherId": "T2"},
        ],
        None,
        config,
    )
    views = project_teacher_views(class_a, {}).values()
    return AttendanceSessionGate(MemoryTimetables([class_a], views), MemoryAttendance(), SessionResolver(config))


def _key(day=date(2026, 10, 19), period=3, subject="S"):
    return AttendanceSlotKey(school_id="sch", class_id="A", subject_id=subject, date=day, period=period)


def test_scheduled_slot_without_record_is_a_create(gate):
    decision = gate.prepare_submission(_key(), "T")

    assert decision.scheduled
    assert not decision.is_update
    record = merge_submission(decision, "T", {"st-1": "absent"}, NOW)
    assert record.statuses == {"st-1": AttendanceStatus.absent}
    assert record.created_at == record.updated_at == NOW


def test_unscheduled_slot_is_refused_with_expected_periods(gate):
    key = _key(day=date(2026, 10, 20))
    decision = gate.prepare_submission(key, "T")

    assert not decision.scheduled
    with pytest.raises(SlotNotScheduledError) as exc_info:
        merge_submission(decision, "T", {"st-1": "present"}, NOW)
    details = exc_info.value.details
    assert details["requested"]["day"] == "Tuesday"
    assert details["expected"] == []


def test_wrong_subject_lists_the_days_schedule(gate):
    decision = gate.prepare_submission(_key(subject="history"), "T")

    assert not decision.scheduled
    assert [item["period"] for item in decision.expected] == [1, 3]


def test_existing_record_is_merged(gate):
    key = _key()
    created = NOW - timedelta(minutes=20)
    gate.attendance.records[key] = AttendanceRecord(
        key=key,
        statuses={"st-1": AttendanceStatus.absent, "st-2": AttendanceStatus.present},
        teacher_id="T",
        created_at=created,
        updated_at=created,
    )

    decision = gate.prepare_submission(key, "T")
    record = merge_submission(decision, "T", {"st-1": AttendanceStatus.late}, NOW)

    assert decision.is_update
    assert record.statuses == {"st-1": AttendanceStatus.late, "st-2": AttendanceStatus.present}
    assert record.created_at == created
    assert record.updated_at == NOW


def test_changed_absences_only_reports_new_non_present_statuses():
    key = _key()
    previous = AttendanceRecord(
        key=key,
        statuses={"a": AttendanceStatus.absent, "b": AttendanceStatus.present},
        teacher_id="T",
        created_at=NOW,
        updated_at=NOW,
    )
    stored = AttendanceRecord(
        key=key,
        statuses={"a": AttendanceStatus.absent, "b": AttendanceStatus.excused, "c": AttendanceStatus.present},
        teacher_id="T",
        created_at=NOW,
        updated_at=NOW,
    )

    assert changed_absences(previous, stored) == {"b": AttendanceStatus.excused}
    assert changed_absences(None, stored) == {"a": AttendanceStatus.absent, "b": AttendanceStatus.excused}
    assert AttendanceStatus.excused.justified
    assert not AttendanceStatus.absent.justified
