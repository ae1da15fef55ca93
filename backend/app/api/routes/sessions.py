from datetime import date, datetime, timezone

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_session_resolver
from app.schemas.session import CurrentSessionOut, SessionOut, SlotCheckOut
from app.services.attendance_workflow import check_slot, current_session_for_teacher, teacher_day_schedule
from app.services.session_resolver import SessionResolver

router = APIRouter()


@router.get("/teachers/{teacher_id}/current-session", response_model=CurrentSessionOut)
def get_current_session(
    school_id: str,
    teacher_id: str,
    at: datetime | None = Query(default=None),
    resolver: SessionResolver = Depends(get_session_resolver),
    db: Session = Depends(get_db),
) -> CurrentSessionOut:
    now = at or datetime.now(timezone.utc)
    session = current_session_for_teacher(db, school_id, teacher_id, now, resolver)
    if session is None:
        return CurrentSessionOut(in_session=False)
    return CurrentSessionOut(in_session=True, session=SessionOut.from_session(session, resolver.config.days))


@router.get("/teachers/{teacher_id}/sessions", response_model=list[SessionOut])
def list_teacher_sessions(
    school_id: str,
    teacher_id: str,
    on: date,
    resolver: SessionResolver = Depends(get_session_resolver),
    db: Session = Depends(get_db),
) -> list[SessionOut]:
    sessions = teacher_day_schedule(db, school_id, teacher_id, on, resolver)
    return [SessionOut.from_session(item, resolver.config.days) for item in sessions]


@router.get("/slots/check", response_model=SlotCheckOut)
def check_scheduled_slot(
    school_id: str,
    class_id: str = Query(alias="classId", min_length=1),
    subject_id: str = Query(alias="subjectId", min_length=1),
    day: str = Query(min_length=1),
    period: int = Query(ge=1),
    resolver: SessionResolver = Depends(get_session_resolver),
    db: Session = Depends(get_db),
) -> SlotCheckOut:
    canonical = resolver.config.days.canonical_day(day)
    scheduled = check_slot(db, school_id, class_id, subject_id, canonical, period, resolver)
    return SlotCheckOut(
        class_id=class_id,
        subject_id=subject_id,
        day=canonical.value,
        period=period,
        scheduled=scheduled,
    )
