from app.core.exceptions import (
    AppError,
    ConcurrentEditError,
    ProjectionPartialFailureError,
    ScheduleConflictError,
    SlotNotScheduledError,
)
from app.services.conflict_service import ConflictReport


def test_app_error_defaults():
    err = AppError("Generic error")
    assert err.status_code == 500
    assert err.details == {}


def test_schedule_conflict_error_carries_the_report():
    err = ScheduleConflictError(ConflictReport())
    assert err.status_code == 409
    assert err.details == {"class_conflicts": [], "teacher_conflicts": []}
    assert isinstance(err, AppError)


def test_slot_not_scheduled_explains_requested_and_expected():
    requested = {"class_id": "A", "subject_id": "S", "day": "Tuesday", "period": 3}
    err = SlotNotScheduledError(requested=requested, expected=[{"period": 1, "subject_id": "S", "teacher_id": "T"}])
    assert err.status_code == 422
    assert "class A, subject S on Tuesday period 3" in err.message
    assert err.details["expected"][0]["period"] == 1


def test_projection_failure_lists_only_failed_teachers():
    err = ProjectionPartialFailureError("A", {"T2": "boom"}, ["T1"])
    assert err.status_code == 207
    assert err.details == {"class_id": "A", "failed": {"T2": "boom"}, "succeeded": ["T1"]}
    assert ProjectionPartialFailureError(None, {"T": "x"}, []).message.endswith("1 teacher(s)")


def test_concurrent_edit_error():
    err = ConcurrentEditError("Class timetable", "A", 3)
    assert err.status_code == 409
    assert err.details == {"resource_id": "A", "expected_version": 3}
