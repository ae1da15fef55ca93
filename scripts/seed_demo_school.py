"""Seed a demo school with two class timetables and guardian links.

Run:
  PYTHONPATH=backend python scripts/seed_demo_school.py
"""

from __future__ import annotations

import logging
import os

from sqlalchemy import select

from app.core.config import get_engine_config
from app.db.bootstrap import ensure_runtime_schema_compatibility
from app.db.session import SessionLocal
from app.models.guardian import StudentGuardian
from app.services.timetable_workflow import save_class_timetable

logger = logging.getLogger("seed_demo_school")

SCHOOL_ID = os.getenv("DEMO_SCHOOL_ID", "demo-school")

CLASS_TIMETABLES = {
    "7a": [
        {"day": "Понеделник", "period": 1, "subjectId": "bulgarian", "teacherId": "t-ivanova"},
        {"day": "Понеделник", "period": 2, "subjectId": "math", "teacherId": "t-petrov"},
        {"day": "Понеделник", "period": 3, "subjectId": "history", "teacherId": "t-georgiev"},
        {"day": "Вторник", "period": 1, "subjectId": "math", "teacherId": "t-petrov"},
        {"day": "Вторник", "period": 2, "subjectId": "free"},
        {"day": "Сряда", "period": 4, "subjectId": "biology", "teacherId": "t-dimitrova"},
    ],
    "7b": [
        {"day": "Monday", "period": 1, "subjectId": "math", "teacherId": "t-petrov"},
        {"day": "Monday", "period": 2, "subjectId": "bulgarian", "teacherId": "t-ivanova"},
        {"day": "Tue", "period": 3, "subjectId": "history", "teacherId": "t-georgiev"},
        {"day": "Thu", "period": 5, "subjectId": "biology", "teacherId": "t-dimitrova"},
    ],
}

GUARDIANS = {
    "st-7a-01": ["parent-01"],
    "st-7a-02": ["parent-02", "parent-03"],
    "st-7b-01": ["parent-04"],
}


def seed_guardians(db) -> int:
    created = 0
    for student_id, guardian_ids in GUARDIANS.items():
        existing = set(
            db.execute(select(StudentGuardian.guardian_id).where(StudentGuardian.student_id == student_id)).scalars()
        )
        for guardian_id in guardian_ids:
            if guardian_id in existing:
                continue
            db.add(StudentGuardian(student_id=student_id, guardian_id=guardian_id))
            created += 1
    db.commit()
    return created


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    ensure_runtime_schema_compatibility()
    config = get_engine_config()
    db = SessionLocal()
    try:
        for class_id, entries in CLASS_TIMETABLES.items():
            outcome = save_class_timetable(db, SCHOOL_ID, class_id, entries, None, config, override=True)
            logger.info(
                "Seeded %s v%d, projected to %s",
                class_id,
                outcome.timetable.version,
                ", ".join(outcome.projection.succeeded) or "nobody",
            )
        logger.info("Linked %d guardian(s)", seed_guardians(db))
    finally:
        db.close()


if __name__ == "__main__":
    main()
