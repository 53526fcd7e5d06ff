from datetime import date
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from leave_lottery.models.leave.application import Application
from leave_lottery.models.shared.enums import ApplicationStatus
from leave_lottery.models.system.calendar_management import CalendarManagement


class CapacityService:
    """Per-date capacity as maintained by the calendar and confirmation collaborators"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_calendar(self, vacation_date: date, for_update: bool = False) -> Optional[CalendarManagement]:
        query = select(CalendarManagement).where(CalendarManagement.vacation_date == vacation_date)
        if for_update:
            query = query.with_for_update()
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def confirmed_count(self, vacation_date: date) -> int:
        count = await self.session.scalar(
            select(func.count(Application.id)).where(
                Application.vacation_date == vacation_date,
                Application.status == ApplicationStatus.CONFIRMED,
            )
        )
        return count or 0

    @staticmethod
    def confirmed_count_subquery(vacation_date: date):
        """Scalar subquery usable as a guard inside a conditional UPDATE"""
        confirmed = Application.__table__.alias("confirmed_applications")
        return (
            select(func.count(confirmed.c.id))
            .where(
                confirmed.c.vacation_date == vacation_date,
                confirmed.c.status == ApplicationStatus.CONFIRMED,
            )
            .scalar_subquery()
        )
