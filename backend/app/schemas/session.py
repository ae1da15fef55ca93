import datetime as dt

from pydantic import BaseModel

from app.services.calendar import DayNormalizer, format_time_of_day
from app.services.session_resolver import Session


class SessionOut(BaseModel):
    teacher_id: str
    class_id: str
    subject_id: str
    date: dt.date
    day: str
    day_label: str
    period: int
    start_time: str
    end_time: str

    @classmethod
    def from_session(cls, session: Session, days: DayNormalizer) -> "SessionOut":
        return cls(
            teacher_id=session.teacher_id,
            class_id=session.class_id,
            subject_id=session.subject_id,
            date=session.session_date,
            day=session.day.value,
            day_label=days.display_name(session.day),
            period=session.period,
            start_time=format_time_of_day(session.start),
            end_time=format_time_of_day(session.end),
        )


class CurrentSessionOut(BaseModel):
    in_session: bool
    session: SessionOut | None = None


class SlotCheckOut(BaseModel):
    class_id: str
    subject_id: str
    day: str
    period: int
    scheduled: bool
