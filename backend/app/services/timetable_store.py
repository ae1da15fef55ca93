from __future__ import annotations

from dataclasses import replace
import logging

from sqlalchemy import delete, insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.exceptions import ConcurrentEditError
from app.models.class_timetable import ClassTimetableRecord
from app.models.teacher_timetable import TeacherTimetableRecord
from app.services.timetable_model import ClassTimetable, PeriodDefinition, TeacherTimetable, TimetableEntry

logger = logging.getLogger(__name__)


def _dump(entries, periods) -> dict:
    return {
        "entries": [entry.as_dict() for entry in entries],
        "periods": [period.as_dict() for period in periods],
    }


def _class_from_row(row: ClassTimetableRecord) -> ClassTimetable:
    return ClassTimetable(
        class_id=row.class_id,
        entries=tuple(TimetableEntry.from_dict(item) for item in row.entries or []),
        periods=tuple(PeriodDefinition.from_dict(item) for item in row.periods or []),
        version=row.version,
    )


def _teacher_from_row(row: TeacherTimetableRecord) -> TeacherTimetable:
    return TeacherTimetable(
        teacher_id=row.teacher_id,
        entries=tuple(TimetableEntry.from_dict(item) for item in row.entries or []),
        periods=tuple(PeriodDefinition.from_dict(item) for item in row.periods or []),
        version=row.version,
    )


class SqlTimetableStore:
    """Class and teacher timetables of one school.

    Writes carry a version precondition: version 0 means "must not exist yet", any other
    value must equal the stored version. A failed precondition raises ``ConcurrentEditError``.
    """

    def __init__(self, db: Session, school_id: str) -> None:
        self.db = db
        self.school_id = school_id

    def get_class_timetable(self, class_id: str) -> ClassTimetable | None:
        row = self.db.get(ClassTimetableRecord, (self.school_id, class_id))
        return _class_from_row(row) if row is not None else None

    def list_class_timetables(self) -> list[ClassTimetable]:
        rows = self.db.execute(
            select(ClassTimetableRecord)
            .where(ClassTimetableRecord.school_id == self.school_id)
            .order_by(ClassTimetableRecord.class_id)
        ).scalars()
        return [_class_from_row(row) for row in rows]

    def upsert_class_timetable(self, timetable: ClassTimetable, *, expected_version: int | None) -> ClassTimetable:
        if expected_version is None:
            expected_version = self._current_version(ClassTimetableRecord, ClassTimetableRecord.class_id, timetable.class_id)
        values = _dump(timetable.entries, timetable.periods)

        if expected_version == 0:
            self._insert(
                ClassTimetableRecord,
                {"school_id": self.school_id, "class_id": timetable.class_id, "version": 1, **values},
                "Class timetable",
                timetable.class_id,
            )
            return replace(timetable, version=1)

        result = self.db.execute(
            update(ClassTimetableRecord)
            .where(
                ClassTimetableRecord.school_id == self.school_id,
                ClassTimetableRecord.class_id == timetable.class_id,
                ClassTimetableRecord.version == expected_version,
            )
            .values(version=expected_version + 1, **values)
            .execution_options(synchronize_session="evaluate")
        )
        if result.rowcount != 1:
            raise ConcurrentEditError("Class timetable", timetable.class_id, expected_version)
        return replace(timetable, version=expected_version + 1)

    def delete_class_timetable(self, class_id: str, *, expected_version: int | None = None) -> bool:
        statement = delete(ClassTimetableRecord).where(
            ClassTimetableRecord.school_id == self.school_id,
            ClassTimetableRecord.class_id == class_id,
        )
        if expected_version is not None:
            statement = statement.where(ClassTimetableRecord.version == expected_version)
        result = self.db.execute(statement.execution_options(synchronize_session="evaluate"))
        if result.rowcount == 0 and expected_version is not None and self.get_class_timetable(class_id) is not None:
            raise ConcurrentEditError("Class timetable", class_id, expected_version)
        return result.rowcount > 0

    def get_teacher_timetable(self, teacher_id: str) -> TeacherTimetable | None:
        row = self.db.get(TeacherTimetableRecord, (self.school_id, teacher_id))
        return _teacher_from_row(row) if row is not None else None

    def list_teacher_timetables(self) -> list[TeacherTimetable]:
        rows = self.db.execute(
            select(TeacherTimetableRecord)
            .where(TeacherTimetableRecord.school_id == self.school_id)
            .order_by(TeacherTimetableRecord.teacher_id)
        ).scalars()
        return [_teacher_from_row(row) for row in rows]

    def upsert_teacher_timetable(self, timetable: TeacherTimetable) -> TeacherTimetable:
        values = _dump(timetable.entries, timetable.periods)
        if timetable.version == 0:
            self._insert(
                TeacherTimetableRecord,
                {"school_id": self.school_id, "teacher_id": timetable.teacher_id, "version": 1, **values},
                "Teacher timetable",
                timetable.teacher_id,
            )
            return replace(timetable, version=1)

        result = self.db.execute(
            update(TeacherTimetableRecord)
            .where(
                TeacherTimetableRecord.school_id == self.school_id,
                TeacherTimetableRecord.teacher_id == timetable.teacher_id,
                TeacherTimetableRecord.version == timetable.version,
            )
            .values(version=timetable.version + 1, **values)
            .execution_options(synchronize_session="evaluate")
        )
        if result.rowcount != 1:
            raise ConcurrentEditError("Teacher timetable", timetable.teacher_id, timetable.version)
        return replace(timetable, version=timetable.version + 1)

    def _current_version(self, model, key_column, key: str) -> int:
        version = self.db.execute(
            select(model.version).where(model.school_id == self.school_id, key_column == key)
        ).scalar_one_or_none()
        return version or 0

    def _insert(self, model, values: dict, resource_type: str, resource_id: str) -> None:
        try:
            with self.db.begin_nested():
                self.db.execute(insert(model).values(**values))
        except IntegrityError as exc:
            logger.info("%s %s was created concurrently", resource_type, resource_id)
            raise ConcurrentEditError(resource_type, resource_id, 0) from exc
