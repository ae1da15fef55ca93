from app.services.calendar import DayOfWeek
from app.services.projection import TeacherViewProjector, group_by_teacher, project_teacher_views
from app.services.timetable_model import TeacherTimetable, build_class_timetable


def _class(config, class_id, entries, periods=None):
    return build_class_timetable(class_id, entries, periods, config)


def _assert_no_orphans(views, class_timetables):
    sources = {
        (entry.day, entry.period, entry.class_id, entry.subject_id, entry.teacher_id)
        for timetable in class_timetables
        for entry in timetable.entries
    }
    for teacher_id, view in views.items():
        for entry in view.entries:
            assert entry.teacher_id == teacher_id
            assert (entry.day, entry.period, entry.class_id, entry.subject_id, teacher_id) in sources


def test_group_by_teacher_skips_free_periods(config):
    timetable = _class(
        config,
        "A",
        [
            {"day": "Monday", "period": 1, "subjectId": "S", "teacherId": "T"},
            {"day": "Monday", "period": 2, "subjectId": "free"},
        ],
    )
    assert list(group_by_teacher(timetable.entries)) == ["T"]


def test_first_projection_creates_views(config):
    timetable = _class(
        config,
        "A",
        [
            {"day": "Monday", "period": 1, "subjectId": "S", "teacherId": "T1"},
            {"day": "Monday", "period": 2, "subjectId": "S2", "teacherId": "T2"},
        ],
    )

    views = project_teacher_views(timetable, {})

    assert set(views) == {"T1", "T2"}
    assert views["T1"].periods == timetable.periods
    assert views["T1"].version == 0
    _assert_no_orphans(views, [timetable])


def test_reassigned_slot_leaves_no_stale_entry(config):
    before = _class(config, "A", [{"day": "Monday", "period": 3, "subjectId": "S", "teacherId": "T1"}])
    views = project_teacher_views(before, {})

    after = _class(config, "A", [{"day": "Monday", "period": 3, "subjectId": "S", "teacherId": "T2"}])
    touched = project_teacher_views(after, views)
    views = {**views, **touched}

    assert views["T1"].entries == ()
    assert [entry.teacher_id for entry in views["T2"].entries] == ["T2"]
    _assert_no_orphans(views, [after])


def test_removed_slot_is_dropped_and_other_classes_survive(config):
    class_a = _class(
        config,
        "A",
        [
            {"day": "Monday", "period": 1, "subjectId": "S", "teacherId": "T"},
            {"day": "Tuesday", "period": 2, "subjectId": "S", "teacherId": "T"},
        ],
    )
    class_b = _class(config, "B", [{"day": "Wednesday", "period": 5, "subjectId": "S", "teacherId": "T"}])
    views = project_teacher_views(class_a, {})
    views = {**views, **project_teacher_views(class_b, views)}

    edited_a = _class(config, "A", [{"day": "Monday", "period": 1, "subjectId": "S", "teacherId": "T"}])
    views = {**views, **project_teacher_views(edited_a, views)}

    slots = sorted((entry.class_id, entry.day.value, entry.period) for entry in views["T"].entries)
    assert slots == [("A", "Monday", 1), ("B", "Wednesday", 5)]
    _assert_no_orphans(views, [edited_a, class_b])


def test_untouched_teachers_are_not_returned(config):
    class_a = _class(config, "A", [{"day": "Monday", "period": 1, "subjectId": "S", "teacherId": "T1"}])
    other = TeacherTimetable(teacher_id="T9", entries=(), periods=config.periods, version=4)

    touched = project_teacher_views(class_a, {"T9": other})

    assert set(touched) == {"T1"}


def test_existing_version_is_carried(config):
    class_a = _class(config, "A", [{"day": "Monday", "period": 1, "subjectId": "S", "teacherId": "T"}])
    view = TeacherTimetable(teacher_id="T", entries=(), periods=config.periods, version=7)

    assert project_teacher_views(class_a, {"T": view})["T"].version == 7


def test_last_period_scheme_wins(config, caplog):
    class_a = _class(config, "A", [{"day": "Monday", "period": 1, "subjectId": "S", "teacherId": "T"}])
    custom = [{"period": 1, "startTime": "08:00", "endTime": "08:45"}]
    class_b = _class(config, "B", [{"day": "Friday", "period": 1, "subjectId": "S", "teacherId": "T"}], custom)
    views = project_teacher_views(class_a, {})

    with caplog.at_level("WARNING", logger="app.services.projection"):
        views = {**views, **project_teacher_views(class_b, views)}

    assert views["T"].periods == class_b.periods
    assert "Period scheme of teacher T replaced" in caplog.text


def test_removal_and_rebuild(config):
    class_a = _class(config, "A", [{"day": "Monday", "period": 1, "subjectId": "S", "teacherId": "T"}])
    class_b = _class(config, "B", [{"day": "Monday", "period": 2, "subjectId": "S", "teacherId": "T"}])
    projector = TeacherViewProjector()
    views = projector.project(class_a, {})
    views = {**views, **projector.project(class_b, views)}

    removed = projector.project_removal("A", views)
    assert [(entry.class_id, entry.day) for entry in removed["T"].entries] == [("B", DayOfWeek.monday)]

    stale = {"T": views["T"], "gone": TeacherTimetable(teacher_id="gone", entries=views["T"].entries, version=2)}
    rebuilt = projector.rebuild([class_b], stale)
    assert rebuilt["gone"].entries == ()
    assert rebuilt["gone"].version == 2
    assert [entry.class_id for entry in rebuilt["T"].entries] == ["B"]
