from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.guardian import StudentGuardian
from app.models.notification import Notification, NotificationType
from app.services.attendance_gate import AttendanceSlotKey, AttendanceStatus

logger = logging.getLogger(__name__)

ATTENDANCE_NOTIFICATION_TYPES: dict[AttendanceStatus, NotificationType] = {
    AttendanceStatus.absent: NotificationType.attendance_absent,
    AttendanceStatus.late: NotificationType.attendance_late,
    AttendanceStatus.excused: NotificationType.attendance_excused,
}

_TITLES: dict[NotificationType, str] = {
    NotificationType.attendance_absent: "Absence",
    NotificationType.attendance_late: "Late arrival",
    NotificationType.attendance_excused: "Excused absence",
}

_STUDENT_MESSAGES: dict[NotificationType, str] = {
    NotificationType.attendance_absent: "You were marked absent in {subject_id} on {date}, period {period}",
    NotificationType.attendance_late: "You were marked late for {subject_id} on {date}, period {period}",
    NotificationType.attendance_excused: "You have an excused absence in {subject_id} on {date}, period {period}",
}

_GUARDIAN_MESSAGES: dict[NotificationType, str] = {
    NotificationType.attendance_absent: "Student {student_id} was absent from {subject_id} on {date}, period {period}",
    NotificationType.attendance_late: "Student {student_id} was late for {subject_id} on {date}, period {period}",
    NotificationType.attendance_excused: (
        "Student {student_id} has an excused absence in {subject_id} on {date}, period {period}"
    ),
}


def create_notification(
    db: Session,
    *,
    user_id: str,
    title: str,
    message: str,
    notification_type: NotificationType = NotificationType.system,
    payload: dict | None = None,
) -> Notification:
    record = Notification(
        user_id=user_id,
        title=title,
        message=message,
        notification_type=notification_type,
        payload=payload or {},
    )
    db.add(record)
    db.flush()
    return record


class DatabaseNotificationSink:
    """Stores notifications in the same transaction as the change that caused them.

    Delivery problems are logged and never propagate to the caller.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    def notify(self, user_id: str, kind: str, payload: dict) -> None:
        notification_type = NotificationType(kind)
        template = _STUDENT_MESSAGES if payload.get("audience") == "student" else _GUARDIAN_MESSAGES
        message = template.get(notification_type, "{subject_id}").format(**payload)
        try:
            with self.db.begin_nested():
                create_notification(
                    self.db,
                    user_id=user_id,
                    title=_TITLES.get(notification_type, "Notification"),
                    message=message,
                    notification_type=notification_type,
                    payload=payload,
                )
        except SQLAlchemyError:
            logger.warning("Unable to store %s notification for user %s", kind, user_id, exc_info=True)


class SqlGuardianDirectory:
    def __init__(self, db: Session) -> None:
        self.db = db

    def guardians_of(self, student_id: str) -> list[str]:
        return list(
            self.db.execute(
                select(StudentGuardian.guardian_id)
                .where(StudentGuardian.student_id == student_id)
                .order_by(StudentGuardian.guardian_id)
            ).scalars()
        )


def notify_attendance_change(
    sink,
    guardians,
    *,
    key: AttendanceSlotKey,
    student_id: str,
    status: AttendanceStatus,
) -> int:
    """Tell the student and each guardian about one status change; returns messages sent."""
    notification_type = ATTENDANCE_NOTIFICATION_TYPES.get(status)
    if notification_type is None:
        return 0
    base = {
        "student_id": student_id,
        "status": status.value,
        "justified": status.justified,
        "class_id": key.class_id,
        "subject_id": key.subject_id,
        "date": key.date.isoformat(),
        "period": key.period,
    }
    recipients = [(student_id, "student")] + [(guardian_id, "guardian") for guardian_id in guardians.guardians_of(student_id)]
    for user_id, audience in dict.fromkeys(recipients):
        sink.notify(user_id, notification_type.value, {**base, "audience": audience})
    return len(dict.fromkeys(recipients))
