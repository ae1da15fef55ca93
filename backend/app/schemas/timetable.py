from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from app.schemas.conflict import ConflictReportOut
from app.services.calendar import TIME_PATTERN, WEEKDAY_ORDER, DayNormalizer
from app.services.projection import ProjectionReport
from app.services.timetable_model import ClassTimetable, PeriodDefinition, TeacherTimetable, TimetableEntry


class PeriodPayload(BaseModel):
    period: int = Field(ge=1, le=24)
    start_time: str = Field(alias="startTime")
    end_time: str = Field(alias="endTime")

    model_config = {"populate_by_name": True}

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, value: str) -> str:
        if not TIME_PATTERN.match(value):
            raise ValueError("Time must be in HH:MM 24-hour format")
        return value

    def as_raw(self) -> dict:
        return {"period": self.period, "startTime": self.start_time, "endTime": self.end_time}


class TimetableEntryPayload(BaseModel):
    day: str = Field(min_length=1, max_length=40)
    period: int = Field(ge=1, le=24)
    subject_id: str = Field(alias="subjectId", min_length=1, max_length=36)
    teacher_id: str | None = Field(default=None, alias="teacherId", max_length=36)

    model_config = {"populate_by_name": True}

    @field_validator("teacher_id")
    @classmethod
    def blank_teacher_is_free_period(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None

    def as_raw(self) -> dict:
        return {"day": self.day, "period": self.period, "subjectId": self.subject_id, "teacherId": self.teacher_id}


class ClassTimetablePayload(BaseModel):
    entries: list[TimetableEntryPayload] = Field(default_factory=list, max_length=7 * 24)
    periods: list[PeriodPayload] | None = None
    expected_version: int | None = Field(default=None, alias="expectedVersion", ge=0)

    model_config = {"populate_by_name": True}


class PeriodOut(BaseModel):
    period: int
    start_time: str = Field(alias="startTime")
    end_time: str = Field(alias="endTime")

    model_config = {"populate_by_name": True}

    @classmethod
    def from_definition(cls, definition: PeriodDefinition) -> "PeriodOut":
        return cls.model_validate(definition.as_dict())


class TimetableEntryOut(BaseModel):
    day: str
    day_label: str = Field(alias="dayLabel")
    period: int
    class_id: str = Field(alias="classId")
    subject_id: str = Field(alias="subjectId")
    teacher_id: str | None = Field(default=None, alias="teacherId")
    start_time: str = Field(alias="startTime")
    end_time: str = Field(alias="endTime")

    model_config = {"populate_by_name": True}

    @classmethod
    def from_entry(cls, entry: TimetableEntry, days: DayNormalizer) -> "TimetableEntryOut":
        return cls.model_validate({**entry.as_dict(), "dayLabel": days.display_name(entry.day)})


class ClassTimetableOut(BaseModel):
    class_id: str = Field(alias="classId")
    version: int
    entries: list[TimetableEntryOut]
    periods: list[PeriodOut]

    model_config = {"populate_by_name": True}

    @classmethod
    def from_timetable(cls, timetable: ClassTimetable, days: DayNormalizer) -> "ClassTimetableOut":
        return cls(
            class_id=timetable.class_id,
            version=timetable.version,
            entries=[TimetableEntryOut.from_entry(entry, days) for entry in _ordered(timetable.entries)],
            periods=[PeriodOut.from_definition(period) for period in timetable.periods],
        )


class TeacherTimetableOut(BaseModel):
    teacher_id: str = Field(alias="teacherId")
    version: int
    entries: list[TimetableEntryOut]
    periods: list[PeriodOut]

    model_config = {"populate_by_name": True}

    @classmethod
    def from_timetable(cls, timetable: TeacherTimetable, days: DayNormalizer) -> "TeacherTimetableOut":
        return cls(
            teacher_id=timetable.teacher_id,
            version=timetable.version,
            entries=[TimetableEntryOut.from_entry(entry, days) for entry in _ordered(timetable.entries)],
            periods=[PeriodOut.from_definition(period) for period in timetable.periods],
        )


class ProjectionReportOut(BaseModel):
    class_id: str | None = None
    succeeded: list[str] = Field(default_factory=list)
    failed: dict[str, str] = Field(default_factory=dict)

    @classmethod
    def from_report(cls, report: ProjectionReport) -> "ProjectionReportOut":
        return cls.model_validate(report.as_dict())


class SaveTimetableResponse(BaseModel):
    timetable: ClassTimetableOut
    projection: ProjectionReportOut
    overridden_conflicts: ConflictReportOut


class ProjectionRetryRequest(BaseModel):
    teacher_ids: list[str] | None = Field(default=None, alias="teacherIds")

    model_config = {"populate_by_name": True}


def _ordered(entries) -> list[TimetableEntry]:
    return sorted(entries, key=lambda entry: (WEEKDAY_ORDER.index(entry.day), entry.period))
