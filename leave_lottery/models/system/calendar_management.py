from sqlalchemy import Column, Integer, Date
from leave_lottery.db.base import BaseModel, enum_column_type
from leave_lottery.models.shared.enums import CalendarStatus

class CalendarManagement(BaseModel):
    """Per-date capacity record owned by the calendar/confirmation collaborators."""
    __tablename__ = "calendar_management"

    vacation_date = Column(Date, nullable=False, unique=True, index=True)
    max_people = Column(Integer, nullable=True)
    status = Column(
        enum_column_type(CalendarStatus, "calendar_status"),
        nullable=False,
        default=CalendarStatus.BEFORE_LOTTERY,
    )
