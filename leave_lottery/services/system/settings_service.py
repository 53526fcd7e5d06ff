import logging
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from leave_lottery.core.config import settings as app_settings
from leave_lottery.core.exceptions import NotFoundError
from leave_lottery.models.system.setting import Setting
from leave_lottery.schemas.system.setting_schema import LeaveSettings, SettingResponse

logger = logging.getLogger(__name__)

class SettingsService:
    """Read-only access to the organisation settings row"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _get_row(self) -> Setting:
        result = await self.session.execute(
            select(Setting).where(Setting.id == app_settings.SETTINGS_ROW_ID)
            .execution_options(populate_existing=True)
        )
        row = result.scalar_one_or_none()
        if not row:
            logger.error("Organisation settings row is missing")
            raise NotFoundError("Settings have not been configured")
        return row

    async def get_snapshot(self) -> LeaveSettings:
        row = await self._get_row()
        return LeaveSettings.model_validate(row, from_attributes=True)

    async def get_settings(self) -> SettingResponse:
        row = await self._get_row()
        return SettingResponse.model_validate(row, from_attributes=True)
