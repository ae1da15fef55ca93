from typing import List, Literal, Optional

from pydantic import BaseModel

from app.services.calendar import DayNormalizer
from app.services.conflict_service import Conflict, ConflictReport


class ConflictDetail(BaseModel):
    conflict_type: Literal["class_conflict", "teacher_conflict"]
    day: str
    day_label: str
    period: int
    class_id: str  # class owning the colliding entry
    teacher_id: Optional[str] = None
    existing_subject_id: str
    proposed_subject_id: str

    @classmethod
    def from_conflict(cls, conflict: Conflict, days: DayNormalizer) -> "ConflictDetail":
        return cls(**conflict.as_dict(), day_label=days.display_name(conflict.day))


class ConflictReportOut(BaseModel):
    has_conflicts: bool = False
    class_conflicts: List[ConflictDetail] = []
    teacher_conflicts: List[ConflictDetail] = []

    @classmethod
    def from_report(cls, report: ConflictReport, days: DayNormalizer) -> "ConflictReportOut":
        return cls(
            has_conflicts=report.has_conflicts,
            class_conflicts=[ConflictDetail.from_conflict(item, days) for item in report.class_conflicts],
            teacher_conflicts=[ConflictDetail.from_conflict(item, days) for item in report.teacher_conflicts],
        )
