from datetime import date

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from leave_lottery.core.exceptions import ValidationError
from leave_lottery.models.shared.enums import LeavePeriod
from leave_lottery.models.system.holiday import Holiday

SATURDAY = 5
SUNDAY = 6


def validate_vacation_date(vacation_date: date, period: LeavePeriod, today: date) -> None:
    """Calendar rules that do not need the database"""
    if vacation_date <= today:
        raise ValidationError("Vacation date must be in the future")

    weekday = vacation_date.weekday()
    if weekday == SUNDAY:
        raise ValidationError("Leave cannot be requested on a Sunday")
    if weekday == SATURDAY and LeavePeriod(period) != LeavePeriod.AM:
        raise ValidationError("Only AM leave can be requested on a Saturday")


async def is_holiday(session: AsyncSession, vacation_date: date) -> bool:
    result = await session.execute(
        select(Holiday.id).where(Holiday.holiday_date == vacation_date)
    )
    return result.first() is not None


async def validate_application_date(session: AsyncSession, vacation_date: date, period: LeavePeriod, today: date) -> None:
    validate_vacation_date(vacation_date, period, today)
    if await is_holiday(session, vacation_date):
        raise ValidationError("Leave cannot be requested on a holiday")
