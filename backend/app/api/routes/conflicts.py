from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import get_config, get_db
from app.schemas.conflict import ConflictReportOut
from app.schemas.timetable import ClassTimetablePayload
from app.services.timetable_model import EngineConfig
from app.services.timetable_workflow import check_class_timetable

router = APIRouter()


@router.post("/class-timetables/{class_id}/conflicts", response_model=ConflictReportOut)
def detect_conflicts(
    school_id: str,
    class_id: str,
    payload: ClassTimetablePayload,
    config: EngineConfig = Depends(get_config),
    db: Session = Depends(get_db),
):
    # Dry run: nothing is written, every conflict is listed.
    report = check_class_timetable(
        db,
        school_id,
        class_id,
        [entry.as_raw() for entry in payload.entries],
        [period.as_raw() for period in payload.periods] if payload.periods else None,
        config,
    )
    return ConflictReportOut.from_report(report, config.days)
