from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from app.services.calendar import DayOfWeek
from app.services.timetable_model import ClassTimetable, TimetableEntry


@dataclass(frozen=True)
class Conflict:
    conflict_type: str  # "class_conflict" | "teacher_conflict"
    day: DayOfWeek
    period: int
    class_id: str  # class owning the existing entry
    existing_subject_id: str
    proposed_subject_id: str
    teacher_id: Optional[str] = None

    def as_dict(self) -> dict:
        return {
            "conflict_type": self.conflict_type,
            "day": self.day.value,
            "period": self.period,
            "class_id": self.class_id,
            "teacher_id": self.teacher_id,
            "existing_subject_id": self.existing_subject_id,
            "proposed_subject_id": self.proposed_subject_id,
        }


@dataclass
class ConflictReport:
    class_conflicts: List[Conflict] = field(default_factory=list)
    teacher_conflicts: List[Conflict] = field(default_factory=list)

    @property
    def has_conflicts(self) -> bool:
        return bool(self.class_conflicts or self.teacher_conflicts)

    def as_dict(self) -> dict:
        return {
            "class_conflicts": [item.as_dict() for item in self.class_conflicts],
            "teacher_conflicts": [item.as_dict() for item in self.teacher_conflicts],
        }


class ConflictService:
    """Finds class and teacher double-bookings for a proposed class timetable.

    Works on the snapshot it is given and never touches storage. ``exclude_id`` names the
    class timetable being replaced so a timetable never collides with its previous version.
    """

    def __init__(self, existing_schedules: Sequence[ClassTimetable], exclude_id: Optional[str] = None):
        self.existing = [item for item in existing_schedules if exclude_id is None or item.class_id != exclude_id]

    def detect_conflicts(self, proposed: ClassTimetable) -> ConflictReport:
        report = ConflictReport()

        # Bucket existing entries by slot so each proposed entry only scans its own slot.
        by_slot: Dict[Tuple[DayOfWeek, int], List[Tuple[str, TimetableEntry]]] = defaultdict(list)
        for timetable in self.existing:
            for entry in timetable.entries:
                by_slot[entry.slot].append((timetable.class_id, entry))

        for new_entry in proposed.entries:
            for owner_class_id, existing_entry in by_slot.get(new_entry.slot, []):
                if owner_class_id == proposed.class_id:
                    report.class_conflicts.append(
                        Conflict(
                            conflict_type="class_conflict",
                            day=new_entry.day,
                            period=new_entry.period,
                            class_id=owner_class_id,
                            existing_subject_id=existing_entry.subject_id,
                            proposed_subject_id=new_entry.subject_id,
                            teacher_id=existing_entry.teacher_id,
                        )
                    )
                # Free periods never take part in teacher conflicts.
                if new_entry.teacher_id and existing_entry.teacher_id == new_entry.teacher_id:
                    report.teacher_conflicts.append(
                        Conflict(
                            conflict_type="teacher_conflict",
                            day=new_entry.day,
                            period=new_entry.period,
                            class_id=owner_class_id,
                            existing_subject_id=existing_entry.subject_id,
                            proposed_subject_id=new_entry.subject_id,
                            teacher_id=new_entry.teacher_id,
                        )
                    )

        return report


def detect_conflicts(
    existing_schedules: Sequence[ClassTimetable],
    proposed: ClassTimetable,
    exclude_id: Optional[str] = None,
) -> ConflictReport:
    return ConflictService(existing_schedules, exclude_id).detect_conflicts(proposed)
