from sqlalchemy import func, select

from app.db.session import SessionLocal
from app.models.attendance import AttendanceRecordRow
from app.models.class_timetable import ClassTimetableRecord
from app.models.notification import Notification
from app.models.teacher_timetable import TeacherTimetableRecord

db = SessionLocal()
try:
    for label, model in (
        ("Class timetables", ClassTimetableRecord),
        ("Teacher timetables", TeacherTimetableRecord),
        ("Attendance records", AttendanceRecordRow),
        ("Notifications", Notification),
    ):
        print(f"{label}: {db.execute(select(func.count()).select_from(model)).scalar_one()}")

    recent = db.execute(
        select(ClassTimetableRecord).order_by(ClassTimetableRecord.updated_at.desc()).limit(5)
    ).scalars()
    for row in recent:
        print(f"  - {row.school_id}/{row.class_id} v{row.version} ({len(row.entries or [])} entries)")
finally:
    db.close()
