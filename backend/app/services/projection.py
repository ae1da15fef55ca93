"""Teacher timetables as a projection of class timetables.

Reconciliation rules applied to every existing teacher view when a class timetable is written:

* entries of that class which the new class timetable no longer assigns to the teacher are dropped,
* entries in a slot the teacher is now assigned to by that class are superseded,
* the class's current entries for the teacher are appended after the surviving ones.

Teachers that receive entries take the class's period list; when two classes disagree on the
period scheme the last class written wins, and that is logged.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
import logging

from app.services.timetable_model import ClassTimetable, TeacherTimetable, TimetableEntry

logger = logging.getLogger(__name__)


@dataclass
class ProjectionReport:
    class_id: str | None
    succeeded: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed

    def as_dict(self) -> dict:
        return {"class_id": self.class_id, "succeeded": list(self.succeeded), "failed": dict(self.failed)}


def group_by_teacher(entries: Iterable[TimetableEntry]) -> dict[str, list[TimetableEntry]]:
    grouped: dict[str, list[TimetableEntry]] = defaultdict(list)
    for entry in entries:
        if entry.is_free_period:
            continue
        grouped[entry.teacher_id].append(entry)
    return dict(grouped)


class TeacherViewProjector:
    def project(
        self,
        class_timetable: ClassTimetable,
        existing_views: Mapping[str, TeacherTimetable],
    ) -> dict[str, TeacherTimetable]:
        """Return the recomputed view of every teacher touched by ``class_timetable``.

        Views that neither gain nor lose entries are left out of the result.
        """
        class_id = class_timetable.class_id
        new_by_teacher = group_by_teacher(class_timetable.entries)
        touched: dict[str, TeacherTimetable] = {}

        for teacher_id in dict.fromkeys([*new_by_teacher, *existing_views]):
            current = existing_views.get(teacher_id) or TeacherTimetable(teacher_id=teacher_id)
            new_entries = new_by_teacher.get(teacher_id, [])
            new_slots = {entry.slot for entry in new_entries}

            surviving = [
                entry for entry in current.entries if entry.class_id != class_id and entry.slot not in new_slots
            ]
            if not new_entries and len(surviving) == len(current.entries):
                continue

            periods = current.periods
            if new_entries:
                if current.periods and current.periods != class_timetable.periods:
                    logger.warning(
                        "Period scheme of teacher %s replaced by the one of class %s",
                        teacher_id,
                        class_id,
                    )
                periods = class_timetable.periods

            touched[teacher_id] = replace(current, entries=tuple(surviving + new_entries), periods=periods)

        logger.debug("Projection of class %s touches %d teacher view(s)", class_id, len(touched))
        return touched

    def project_removal(
        self,
        class_id: str,
        existing_views: Mapping[str, TeacherTimetable],
    ) -> dict[str, TeacherTimetable]:
        touched: dict[str, TeacherTimetable] = {}
        for teacher_id, view in existing_views.items():
            remaining = tuple(entry for entry in view.entries if entry.class_id != class_id)
            if len(remaining) != len(view.entries):
                touched[teacher_id] = replace(view, entries=remaining)
        return touched

    def rebuild(
        self,
        class_timetables: Iterable[ClassTimetable],
        existing_views: Mapping[str, TeacherTimetable] | None = None,
    ) -> dict[str, TeacherTimetable]:
        """Recompute every teacher view from scratch, keeping stored versions for the write precondition."""
        existing_views = existing_views or {}
        rebuilt: dict[str, TeacherTimetable] = {
            teacher_id: replace(view, entries=(), periods=()) for teacher_id, view in existing_views.items()
        }
        for timetable in class_timetables:
            rebuilt.update(self.project(timetable, rebuilt))
        return rebuilt


def project_teacher_views(
    class_timetable: ClassTimetable,
    existing_views: Mapping[str, TeacherTimetable],
) -> dict[str, TeacherTimetable]:
    return TeacherViewProjector().project(class_timetable, existing_views)
