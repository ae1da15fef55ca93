import pytest

from app.services.calendar import DayOfWeek
from app.services.conflict_service import ConflictService, detect_conflicts
from app.services.timetable_model import build_class_timetable


@pytest.fixture
def class_a(config):
    return build_class_timetable(
        "A",
        [
            {"day": "Monday", "period": 3, "subjectId": "S", "teacherId": "T"},
            {"day": "Monday", "period": 4, "subjectId": "free", "teacherId": None},
        ],
        None,
        config,
    )


def test_teacher_double_booking_across_classes(config, class_a):
    proposed = build_class_timetable(
        "B", [{"day": "Monday", "period": 3, "subjectId": "S2", "teacherId": "T"}], None, config
    )

    report = detect_conflicts([class_a], proposed)

    assert report.class_conflicts == []
    assert len(report.teacher_conflicts) == 1
    conflict = report.teacher_conflicts[0]
    assert (conflict.teacher_id, conflict.day, conflict.period) == ("T", DayOfWeek.monday, 3)
    assert conflict.class_id == "A"
    assert conflict.existing_subject_id == "S"
    assert conflict.proposed_subject_id == "S2"


def test_class_double_booking_is_reported(config, class_a):
    other_copy = build_class_timetable(
        "A", [{"day": "Monday", "period": 3, "subjectId": "X", "teacherId": "T2"}], None, config
    )

    report = ConflictService([class_a]).detect_conflicts(other_copy)

    assert [item.conflict_type for item in report.class_conflicts] == ["class_conflict"]
    assert report.teacher_conflicts == []


def test_replaced_timetable_is_excluded(config, class_a):
    edited = build_class_timetable(
        "A", [{"day": "Monday", "period": 3, "subjectId": "S", "teacherId": "T"}], None, config
    )

    report = detect_conflicts([class_a], edited, exclude_id="A")

    assert not report.has_conflicts


def test_free_periods_never_conflict_on_teacher(config, class_a):
    proposed = build_class_timetable(
        "B", [{"day": "Monday", "period": 4, "subjectId": "free", "teacherId": None}], None, config
    )

    assert not detect_conflicts([class_a], proposed).has_conflicts


def test_every_conflict_is_collected(config, class_a):
    class_c = build_class_timetable(
        "C", [{"day": "Tuesday", "period": 1, "subjectId": "bio", "teacherId": "T"}], None, config
    )
    proposed = build_class_timetable(
        "B",
        [
            {"day": "Monday", "period": 3, "subjectId": "S2", "teacherId": "T"},
            {"day": "Вторник", "period": 1, "subjectId": "chem", "teacherId": "T"},
        ],
        None,
        config,
    )

    report = detect_conflicts([class_a, class_c], proposed)

    assert {(item.class_id, item.day, item.period) for item in report.teacher_conflicts} == {
        ("A", DayOfWeek.monday, 3),
        ("C", DayOfWeek.tuesday, 1),
    }
    assert report.as_dict()["teacher_conflicts"][0]["day"] in {"Monday", "Tuesday"}


def test_conflict_free_commit_stays_conflict_free(config, class_a):
    proposed = build_class_timetable(
        "B", [{"day": "Monday", "period": 3, "subjectId": "S2", "teacherId": "T3"}], None, config
    )
    assert not detect_conflicts([class_a], proposed, exclude_id="B").has_conflicts

    committed = [class_a, proposed]
    assert not detect_conflicts(committed, proposed, exclude_id="B").has_conflicts
