from app.models.attendance import AttendanceRecordRow  # noqa: F401
from app.models.class_timetable import ClassTimetableRecord  # noqa: F401
from app.models.guardian import StudentGuardian  # noqa: F401
from app.models.notification import Notification, NotificationType  # noqa: F401
from app.models.teacher_timetable import TeacherTimetableRecord  # noqa: F401
