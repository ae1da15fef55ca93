from datetime import time

import pytest

from app.core.config import Settings, build_engine_config
from app.core.exceptions import ConfigurationError, TimetableValidationError, UnrecognizedDayError
from app.services.calendar import DayOfWeek
from app.services.timetable_model import PeriodDefinition, TimetableEntry, build_class_timetable


def test_default_schedule_has_eight_periods(config):
    assert [period.ordinal for period in config.periods] == list(range(1, 9))
    assert config.periods[2] == PeriodDefinition(3, time(9, 10), time(9, 50))


def test_entries_take_times_from_the_default_schedule(config):
    timetable = build_class_timetable(
        "7a",
        [{"day": "Понеделник", "period": 3, "subjectId": "math", "teacherId": "t-1"}],
        None,
        config,
    )
    entry = timetable.entries[0]
    assert entry.day is DayOfWeek.monday
    assert (entry.start, entry.end) == (time(9, 10), time(9, 50))
    assert entry.class_id == "7a"
    assert timetable.periods == config.periods


def test_blank_teacher_marks_a_free_period(config):
    timetable = build_class_timetable(
        "7a", [{"day": "Monday", "period": 1, "subjectId": "free", "teacherId": ""}], None, config
    )
    assert timetable.entries[0].is_free_period


def test_own_periods_override_the_default(config):
    timetable = build_class_timetable(
        "7a",
        [{"day": "Tue", "period": 1, "subjectId": "art", "teacherId": "t-2"}],
        [{"period": 1, "startTime": "08:00", "endTime": "08:45"}],
        config,
    )
    assert timetable.entries[0].end == time(8, 45)


def test_duplicate_slot_is_rejected(config):
    with pytest.raises(TimetableValidationError) as exc_info:
        build_class_timetable(
            "7a",
            [
                {"day": "Monday", "period": 2, "subjectId": "math", "teacherId": "t-1"},
                {"day": "понеделник", "period": 2, "subjectId": "bio", "teacherId": "t-2"},
            ],
            None,
            config,
        )
    assert exc_info.value.details == {"day": "Monday", "period": 2}


def test_unknown_period_is_rejected(config):
    with pytest.raises(TimetableValidationError, match="Period 9"):
        build_class_timetable("7a", [{"day": "Monday", "period": 9, "subjectId": "math"}], None, config)


def test_unknown_day_propagates(config):
    with pytest.raises(UnrecognizedDayError):
        build_class_timetable("7a", [{"day": "Someday", "period": 1, "subjectId": "math"}], None, config)


@pytest.mark.parametrize(
    "periods,message",
    [
        ([{"period": 1, "startTime": "09:00", "endTime": "09:00"}], "start must be before"),
        (
            [
                {"period": 1, "startTime": "08:00", "endTime": "08:45"},
                {"period": 1, "startTime": "09:00", "endTime": "09:45"},
            ],
            "Duplicate period ordinal",
        ),
        (
            [
                {"period": 1, "startTime": "08:00", "endTime": "08:45"},
                {"period": 2, "startTime": "08:45", "endTime": "09:30"},
            ],
            "overlap",
        ),
    ],
)
def test_invalid_period_lists_are_rejected(config, periods, message):
    with pytest.raises(TimetableValidationError, match=message):
        build_class_timetable("7a", [], periods, config)


def test_overlapping_default_schedule_is_a_configuration_error():
    settings = Settings(
        default_periods=[
            {"period": 1, "startTime": "08:00", "endTime": "08:45"},
            {"period": 2, "startTime": "08:30", "endTime": "09:15"},
        ]
    )
    with pytest.raises(ConfigurationError, match="Invalid default period schedule"):
        build_engine_config(settings)


def test_entry_serialization_is_stable():
    entry = TimetableEntry(DayOfWeek.friday, 4, "7a", "math", None, time(10, 10), time(10, 50))
    data = entry.as_dict()
    assert data == {
        "day": "Friday",
        "period": 4,
        "classId": "7a",
        "subjectId": "math",
        "teacherId": None,
        "startTime": "10:10",
        "endTime": "10:50",
    }
    assert TimetableEntry.from_dict(data) == entry
