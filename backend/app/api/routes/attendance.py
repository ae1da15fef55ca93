from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.orm import Session

from app.api.deps import get_actor_id, get_db, get_session_resolver
from app.core.config import get_settings
from app.core.exceptions import ResourceNotFoundError
from app.schemas.attendance import (
    AttendanceRecordOut,
    AttendanceReportOut,
    AttendanceSubmission,
    AttendanceSubmissionOut,
    SchoolAttendanceStatsOut,
)
from app.services.attendance_gate import AttendanceSlotKey
from app.services.attendance_workflow import (
    get_attendance,
    school_attendance_stats,
    student_attendance_report,
    submit_attendance,
)
from app.services.session_resolver import SessionResolver

router = APIRouter()


@router.post("/attendance", response_model=AttendanceSubmissionOut)
def post_attendance(
    school_id: str,
    payload: AttendanceSubmission,
    response: Response,
    actor_id: str = Depends(get_actor_id),
    resolver: SessionResolver = Depends(get_session_resolver),
    db: Session = Depends(get_db),
) -> AttendanceSubmissionOut:
    key = AttendanceSlotKey(
        school_id=school_id,
        class_id=payload.class_id,
        subject_id=payload.subject_id,
        date=payload.date,
        period=payload.period,
    )
    outcome = submit_attendance(
        db,
        key,
        actor_id,
        payload.statuses,
        resolver,
        max_attempts=get_settings().attendance_upsert_attempts,
    )
    response.status_code = status.HTTP_201_CREATED if outcome.created else status.HTTP_200_OK
    return AttendanceSubmissionOut(
        created=outcome.created,
        record=AttendanceRecordOut.from_record(outcome.record, resolver.config.days),
        notified_students=sorted(outcome.notified),
    )


@router.get("/attendance", response_model=AttendanceRecordOut)
def get_attendance_record(
    school_id: str,
    class_id: str = Query(alias="classId", min_length=1),
    subject_id: str = Query(alias="subjectId", min_length=1),
    session_date: date = Query(alias="date"),
    period: int = Query(ge=1),
    resolver: SessionResolver = Depends(get_session_resolver),
    db: Session = Depends(get_db),
) -> AttendanceRecordOut:
    key = AttendanceSlotKey(
        school_id=school_id,
        class_id=class_id,
        subject_id=subject_id,
        date=session_date,
        period=period,
    )
    record = get_attendance(db, key)
    if record is None:
        raise ResourceNotFoundError("Attendance record", f"{class_id}/{subject_id}/{session_date}/{period}")
    return AttendanceRecordOut.from_record(record, resolver.config.days)


def _require_ordered_range(start: date, end: date) -> None:
    if start > end:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Report start must not be after its end",
        )


@router.get("/students/{student_id}/attendance-report", response_model=AttendanceReportOut)
def get_attendance_report(
    school_id: str,
    student_id: str,
    start: date,
    end: date,
    db: Session = Depends(get_db),
) -> AttendanceReportOut:
    _require_ordered_range(start, end)
    report = student_attendance_report(db, school_id, student_id, start, end)
    return AttendanceReportOut.from_report(report)


@router.get("/attendance-stats", response_model=SchoolAttendanceStatsOut)
def get_school_attendance_stats(
    school_id: str,
    start: date,
    end: date,
    db: Session = Depends(get_db),
) -> SchoolAttendanceStatsOut:
    _require_ordered_range(start, end)
    stats = school_attendance_stats(db, school_id, start, end)
    return SchoolAttendanceStatsOut.from_school_stats(stats)
