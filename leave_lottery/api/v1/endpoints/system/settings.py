from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from leave_lottery.api.dependencies import get_current_staff
from leave_lottery.core.database import get_async_session
from leave_lottery.models.staff.staff import Staff
from leave_lottery.schemas.system.setting_schema import SettingResponse
from leave_lottery.services.system.settings_service import SettingsService

router = APIRouter()

@router.get("/", response_model=SettingResponse)
async def get_settings(
    session: AsyncSession = Depends(get_async_session),
    current_staff: Staff = Depends(get_current_staff)
):
    """Lottery window and point settings currently in force"""
    service = SettingsService(session)
    return await service.get_settings()
