"""
Initial data (idempotent): the organisation settings row and an administrator.
"""
import logging
from decimal import Decimal
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from leave_lottery.core.config import settings as app_settings
from leave_lottery.models.staff.staff import Staff
from leave_lottery.models.system.setting import Setting
from leave_lottery.services.leave.lottery_period import fiscal_year_of
from leave_lottery.utils.date_utils import local_today

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS = {
    "lottery_period_months": 3,
    "lottery_period_start_day": 1,
    "lottery_period_end_day": 10,
    "max_annual_leave_points": Decimal("20"),
    "level1_points": Decimal("2"),
    "level2_points": Decimal("1"),
    "level3_points": Decimal("0.1"),
}

DEFAULT_ADMIN = {"staff_id": "admin", "name": "Administrator", "is_admin": True}

async def create_initial_data(session: AsyncSession) -> None:
    result = await session.execute(select(Setting).where(Setting.id == app_settings.SETTINGS_ROW_ID))
    if result.scalar_one_or_none() is None:
        session.add(Setting(
            id=app_settings.SETTINGS_ROW_ID,
            current_fiscal_year=fiscal_year_of(local_today(), app_settings.FISCAL_YEAR_START_MONTH),
            **DEFAULT_SETTINGS,
        ))
        logger.info("Settings row created")

    result = await session.execute(select(Staff).where(Staff.staff_id == DEFAULT_ADMIN["staff_id"]))
    if result.scalar_one_or_none() is None:
        session.add(Staff(**DEFAULT_ADMIN))
        logger.info(f"Administrator '{DEFAULT_ADMIN['staff_id']}' created")

    await session.commit()
