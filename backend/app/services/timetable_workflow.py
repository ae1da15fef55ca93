"""Write path for class timetables: conflict check, guarded commit, teacher-view projection.

The class timetable is the authoritative record and is committed first. Teacher views are
then written one by one, each in its own savepoint, so one failing teacher never rolls back
the others. Readers tolerate the short lag through ``SessionResolver.slot_is_scheduled``.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import ConcurrentEditError, ResourceNotFoundError, ScheduleConflictError
from app.services.conflict_service import ConflictReport, detect_conflicts
from app.services.projection import ProjectionReport, TeacherViewProjector
from app.services.timetable_model import ClassTimetable, EngineConfig, TeacherTimetable, build_class_timetable
from app.services.timetable_store import SqlTimetableStore

logger = logging.getLogger(__name__)


@dataclass
class SaveOutcome:
    timetable: ClassTimetable
    projection: ProjectionReport
    overridden: ConflictReport = field(default_factory=ConflictReport)


def check_class_timetable(
    db: Session,
    school_id: str,
    class_id: str,
    entries: Iterable[Mapping],
    periods: Iterable[Mapping] | None,
    config: EngineConfig,
) -> ConflictReport:
    store = SqlTimetableStore(db, school_id)
    proposed = build_class_timetable(class_id, entries, periods, config)
    return detect_conflicts(store.list_class_timetables(), proposed, exclude_id=class_id)


def save_class_timetable(
    db: Session,
    school_id: str,
    class_id: str,
    entries: Iterable[Mapping],
    periods: Iterable[Mapping] | None,
    config: EngineConfig,
    *,
    override: bool = False,
    expected_version: int | None = None,
) -> SaveOutcome:
    store = SqlTimetableStore(db, school_id)
    proposed = build_class_timetable(class_id, entries, periods, config)

    existing = store.list_class_timetables()
    report = detect_conflicts(existing, proposed, exclude_id=class_id)
    if report.has_conflicts and not override:
        raise ScheduleConflictError(report)
    if report.has_conflicts:
        logger.warning(
            "Saving class %s over %d class and %d teacher conflict(s) by override",
            class_id,
            len(report.class_conflicts),
            len(report.teacher_conflicts),
        )

    if expected_version is None:
        current = next((item for item in existing if item.class_id == class_id), None)
        expected_version = current.version if current is not None else 0

    try:
        saved = store.upsert_class_timetable(proposed, expected_version=expected_version)
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("Class timetable %s saved at version %d (%d entries)", class_id, saved.version, len(saved.entries))

    projection = persist_projection(db, store, saved)
    return SaveOutcome(timetable=saved, projection=projection, overridden=report if override else ConflictReport())


def persist_projection(
    db: Session,
    store: SqlTimetableStore,
    class_timetable: ClassTimetable,
    *,
    teacher_ids: Iterable[str] | None = None,
) -> ProjectionReport:
    views = {view.teacher_id: view for view in store.list_teacher_timetables()}
    touched = TeacherViewProjector().project(class_timetable, views)
    if teacher_ids is not None:
        wanted = set(teacher_ids)
        touched = {teacher_id: view for teacher_id, view in touched.items() if teacher_id in wanted}
    return _write_views(db, store, class_timetable.class_id, touched)


def delete_class_timetable(
    db: Session,
    school_id: str,
    class_id: str,
    *,
    expected_version: int | None = None,
) -> ProjectionReport:
    store = SqlTimetableStore(db, school_id)
    try:
        removed = store.delete_class_timetable(class_id, expected_version=expected_version)
        if not removed:
            raise ResourceNotFoundError("Class timetable", class_id)
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("Class timetable %s deleted", class_id)

    views = {view.teacher_id: view for view in store.list_teacher_timetables()}
    touched = TeacherViewProjector().project_removal(class_id, views)
    return _write_views(db, store, class_id, touched)


def retry_projection(
    db: Session,
    school_id: str,
    class_id: str,
    teacher_ids: Iterable[str] | None = None,
) -> ProjectionReport:
    """Re-run projection of one class, optionally only for the teachers that failed before."""
    store = SqlTimetableStore(db, school_id)
    class_timetable = store.get_class_timetable(class_id)
    if class_timetable is None:
        raise ResourceNotFoundError("Class timetable", class_id)
    return persist_projection(db, store, class_timetable, teacher_ids=teacher_ids)


def rebuild_teacher_views(db: Session, school_id: str) -> ProjectionReport:
    store = SqlTimetableStore(db, school_id)
    existing = {view.teacher_id: view for view in store.list_teacher_timetables()}
    rebuilt = TeacherViewProjector().rebuild(store.list_class_timetables(), existing)
    changed = {
        teacher_id: view
        for teacher_id, view in rebuilt.items()
        if teacher_id not in existing
        or existing[teacher_id].entries != view.entries
        or existing[teacher_id].periods != view.periods
    }
    logger.info("Rebuilding %d of %d teacher view(s) for school %s", len(changed), len(rebuilt), school_id)
    return _write_views(db, store, None, changed)


def _write_views(
    db: Session,
    store: SqlTimetableStore,
    class_id: str | None,
    views: Mapping[str, TeacherTimetable],
) -> ProjectionReport:
    report = ProjectionReport(class_id=class_id)
    for teacher_id, view in views.items():
        try:
            with db.begin_nested():
                store.upsert_teacher_timetable(view)
        except (ConcurrentEditError, SQLAlchemyError) as exc:
            message = exc.message if isinstance(exc, ConcurrentEditError) else str(exc)
            logger.warning("Teacher view %s not updated for class %s: %s", teacher_id, class_id, message)
            report.failed[teacher_id] = message
            continue
        report.succeeded.append(teacher_id)
    db.commit()

    if report.ok:
        logger.info("Projected class %s onto %d teacher view(s)", class_id, len(report.succeeded))
    return report
