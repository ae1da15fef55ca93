class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

class ResourceNotFoundError(AppError):
    """Raised when a requested resource is not found."""
    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(f"{resource_type} with id {resource_id} not found", status_code=404)

class ConfigurationError(AppError):
    """Raised when system configuration is invalid."""
    def __init__(self, message: str):
        super().__init__(message, status_code=500)

class UnrecognizedDayError(AppError):
    """Raised when a day name matches neither a canonical day nor a configured alias."""
    def __init__(self, value: str):
        self.value = value
        super().__init__(f"Unrecognized day name: {value!r}", status_code=422, details={"day": value})

class TimetableValidationError(AppError):
    """Raised when a timetable breaks a structural rule (duplicate slot, unknown period)."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=422, details=details)

class ScheduleConflictError(AppError):
    """Raised when a timetable write is blocked by class or teacher conflicts.

    Carries the whole report so every colliding slot can be shown at once.
    """
    def __init__(self, report):
        self.report = report
        total = len(report.class_conflicts) + len(report.teacher_conflicts)
        super().__init__(
            f"Timetable has {total} scheduling conflict(s)",
            status_code=409,
            details=report.as_dict(),
        )

class SlotNotScheduledError(AppError):
    """Raised when attendance targets a (class, subject, day, period) that is not on the schedule."""
    def __init__(self, requested: dict, expected: list[dict]):
        self.requested = requested
        self.expected = expected
        super().__init__(
            (
                f"No scheduled class for class {requested['class_id']}, subject {requested['subject_id']} "
                f"on {requested['day']} period {requested['period']}"
            ),
            status_code=422,
            details={"requested": requested, "expected": expected},
        )

class ProjectionPartialFailureError(AppError):
    """Raised when some teacher views could not be persisted after a class timetable commit.

    Only the teachers listed in ``failed`` need their projection retried.
    """
    def __init__(self, class_id: str | None, failed: dict[str, str], succeeded: list[str]):
        self.class_id = class_id
        self.failed = failed
        self.succeeded = succeeded
        scope = f" of class {class_id}" if class_id else ""
        super().__init__(
            f"Teacher timetable projection failed for {len(failed)} teacher(s){scope}",
            status_code=207,
            details={"class_id": class_id, "failed": failed, "succeeded": succeeded},
        )

class ConcurrentEditError(AppError):
    """Raised when an optimistic version precondition does not hold at write time."""
    def __init__(self, resource_type: str, resource_id: str, expected_version: int | None):
        super().__init__(
            f"{resource_type} {resource_id} was modified concurrently",
            status_code=409,
            details={"resource_id": resource_id, "expected_version": expected_version},
        )
