from datetime import date, time

import pytest

from app.core.exceptions import ConfigurationError, UnrecognizedDayError
from app.services.calendar import (
    DEFAULT_DAY_ALIASES,
    BULGARIAN_DAY_NAMES,
    DayNormalizer,
    DayOfWeek,
    contains,
    minutes_of_day,
    overlaps,
    parse_time_of_day,
)


@pytest.fixture
def days():
    return DayNormalizer(DEFAULT_DAY_ALIASES, BULGARIAN_DAY_NAMES)


@pytest.mark.parametrize(
    "spelling,expected",
    [
        ("Monday", DayOfWeek.monday),
        ("monday", DayOfWeek.monday),
        ("  FRIDAY ", DayOfWeek.friday),
        ("Понеделник", DayOfWeek.monday),
        ("сряда", DayOfWeek.wednesday),
        ("Thu", DayOfWeek.thursday),
        ("Неделя", DayOfWeek.sunday),
    ],
)
def test_canonical_day_accepts_every_configured_spelling(days, spelling, expected):
    assert days.canonical_day(spelling) is expected


def test_canonical_day_is_idempotent(days):
    for spelling in days.spellings():
        once = days.canonical_day(spelling)
        assert days.canonical_day(once) is once
        assert days.canonical_day(once.value) is once


def test_distinct_days_never_share_a_canonical_value(days):
    by_day: dict[DayOfWeek, set[str]] = {}
    for spelling, day in days.spellings().items():
        by_day.setdefault(day, set()).add(spelling)
    assert set(by_day) == set(DayOfWeek)
    for day, spellings in by_day.items():
        assert {days.canonical_day(item) for item in spellings} == {day}


@pytest.mark.parametrize("value", ["", "Funday", "Mo", "Понеделникк"])
def test_unknown_day_is_rejected(days, value):
    with pytest.raises(UnrecognizedDayError) as exc_info:
        days.canonical_day(value)
    assert exc_info.value.status_code == 422
    assert exc_info.value.details == {"day": value}


def test_display_name_round_trips(days):
    for day in DayOfWeek:
        label = days.display_name(day)
        assert label == BULGARIAN_DAY_NAMES[day]
        assert days.canonical_day(label) is day


def test_conflicting_alias_is_a_configuration_error():
    with pytest.raises(ConfigurationError):
        DayNormalizer({"Mon": DayOfWeek.monday, "mon": DayOfWeek.tuesday})


def test_alias_to_unknown_day_is_a_configuration_error():
    with pytest.raises(ConfigurationError):
        DayNormalizer({"Lun": "Lunes"})


def test_incomplete_display_table_is_a_configuration_error():
    with pytest.raises(ConfigurationError, match="Display day names missing"):
        DayNormalizer({}, {DayOfWeek.monday: "Mon"})


def test_day_of_week_from_date():
    assert DayOfWeek.from_date(date(2026, 10, 19)) is DayOfWeek.monday
    assert DayOfWeek.from_date(date(2026, 10, 18)) is DayOfWeek.sunday


def test_time_arithmetic():
    assert minutes_of_day(time(9, 10)) == 550
    assert parse_time_of_day("07:30") == time(7, 30)
    with pytest.raises(ValueError):
        parse_time_of_day("7:30")


def test_intervals_are_closed_on_both_ends():
    assert overlaps(550, 590, 590, 600)
    assert not overlaps(550, 589, 590, 600)
    assert contains(550, 590, 550)
    assert contains(550, 590, 590)
    assert not contains(550, 590, 591)
