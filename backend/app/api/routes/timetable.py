import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import get_actor_id, get_config, get_db
from app.core.exceptions import ProjectionPartialFailureError, ResourceNotFoundError
from app.schemas.conflict import ConflictReportOut
from app.schemas.timetable import (
    ClassTimetableOut,
    ClassTimetablePayload,
    ProjectionReportOut,
    ProjectionRetryRequest,
    SaveTimetableResponse,
    TeacherTimetableOut,
)
from app.services.projection import ProjectionReport
from app.services.timetable_model import EngineConfig
from app.services.timetable_store import SqlTimetableStore
from app.services.timetable_workflow import (
    delete_class_timetable,
    rebuild_teacher_views,
    retry_projection,
    save_class_timetable,
)

router = APIRouter()
logger = logging.getLogger(__name__)


def _raise_for_projection(report: ProjectionReport) -> None:
    if not report.ok:
        raise ProjectionPartialFailureError(report.class_id, report.failed, report.succeeded)


@router.get("/class-timetables", response_model=list[ClassTimetableOut])
def list_class_timetables(
    school_id: str,
    config: EngineConfig = Depends(get_config),
    db: Session = Depends(get_db),
) -> list[ClassTimetableOut]:
    timetables = SqlTimetableStore(db, school_id).list_class_timetables()
    return [ClassTimetableOut.from_timetable(item, config.days) for item in timetables]


@router.get("/class-timetables/{class_id}", response_model=ClassTimetableOut)
def get_class_timetable(
    school_id: str,
    class_id: str,
    config: EngineConfig = Depends(get_config),
    db: Session = Depends(get_db),
) -> ClassTimetableOut:
    timetable = SqlTimetableStore(db, school_id).get_class_timetable(class_id)
    if timetable is None:
        raise ResourceNotFoundError("Class timetable", class_id)
    return ClassTimetableOut.from_timetable(timetable, config.days)


@router.put("/class-timetables/{class_id}", response_model=SaveTimetableResponse)
def put_class_timetable(
    school_id: str,
    class_id: str,
    payload: ClassTimetablePayload,
    override: bool = Query(default=False),
    actor_id: str = Depends(get_actor_id),
    config: EngineConfig = Depends(get_config),
    db: Session = Depends(get_db),
) -> SaveTimetableResponse:
    outcome = save_class_timetable(
        db,
        school_id,
        class_id,
        [entry.as_raw() for entry in payload.entries],
        [period.as_raw() for period in payload.periods] if payload.periods else None,
        config,
        override=override,
        expected_version=payload.expected_version,
    )
    logger.info("Class timetable %s/%s saved by %s", school_id, class_id, actor_id)
    _raise_for_projection(outcome.projection)
    return SaveTimetableResponse(
        timetable=ClassTimetableOut.from_timetable(outcome.timetable, config.days),
        projection=ProjectionReportOut.from_report(outcome.projection),
        overridden_conflicts=ConflictReportOut.from_report(outcome.overridden, config.days),
    )


@router.delete("/class-timetables/{class_id}", response_model=ProjectionReportOut)
def remove_class_timetable(
    school_id: str,
    class_id: str,
    expected_version: int | None = Query(default=None, alias="expectedVersion", ge=1),
    actor_id: str = Depends(get_actor_id),
    db: Session = Depends(get_db),
) -> ProjectionReportOut:
    report = delete_class_timetable(db, school_id, class_id, expected_version=expected_version)
    logger.info("Class timetable %s/%s deleted by %s", school_id, class_id, actor_id)
    _raise_for_projection(report)
    return ProjectionReportOut.from_report(report)


@router.post("/class-timetables/{class_id}/projection", response_model=ProjectionReportOut)
def retry_class_projection(
    school_id: str,
    class_id: str,
    payload: ProjectionRetryRequest,
    actor_id: str = Depends(get_actor_id),
    db: Session = Depends(get_db),
) -> ProjectionReportOut:
    report = retry_projection(db, school_id, class_id, payload.teacher_ids)
    _raise_for_projection(report)
    return ProjectionReportOut.from_report(report)


@router.get("/teacher-timetables/{teacher_id}", response_model=TeacherTimetableOut)
def get_teacher_timetable(
    school_id: str,
    teacher_id: str,
    config: EngineConfig = Depends(get_config),
    db: Session = Depends(get_db),
) -> TeacherTimetableOut:
    timetable = SqlTimetableStore(db, school_id).get_teacher_timetable(teacher_id)
    if timetable is None:
        raise ResourceNotFoundError("Teacher timetable", teacher_id)
    return TeacherTimetableOut.from_timetable(timetable, config.days)


@router.post("/teacher-timetables/rebuild", response_model=ProjectionReportOut)
def rebuild_teacher_timetables(
    school_id: str,
    actor_id: str = Depends(get_actor_id),
    db: Session = Depends(get_db),
) -> ProjectionReportOut:
    report = rebuild_teacher_views(db, school_id)
    logger.info("Teacher views of school %s rebuilt by %s", school_id, actor_id)
    _raise_for_projection(report)
    return ProjectionReportOut.from_report(report)
