from datetime import date
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from leave_lottery.api.dependencies import get_current_staff
from leave_lottery.core.database import get_async_session
from leave_lottery.models.shared.enums import LeavePeriod
from leave_lottery.models.staff.staff import Staff
from leave_lottery.schemas.leave.points_schema import (
    LevelPointsResponse, PointsConsumedResponse, PointsAvailabilityResponse,
    LotteryPeriodStatusResponse, CurrentLotteryPeriodResponse
)
from leave_lottery.services.leave import lottery_period
from leave_lottery.services.leave.points_ledger import LevelConsumption, PointsLedgerService
from leave_lottery.services.system.settings_service import SettingsService
from leave_lottery.utils.date_utils import local_now

router = APIRouter()

def _level_response(level: LevelConsumption) -> LevelPointsResponse:
    return LevelPointsResponse(
        pending_count=float(level.pending_count),
        confirmed_count=float(level.confirmed_count),
        cancelled_after_lottery_count=float(level.cancelled_after_lottery_count),
        points=float(level.points),
    )

@router.get("/", response_model=PointsConsumedResponse)
async def get_my_points(
    fiscal_year: Optional[int] = Query(None, ge=2000),
    session: AsyncSession = Depends(get_async_session),
    current_staff: Staff = Depends(get_current_staff)
):
    """Points consumed per level and the remaining annual budget"""
    settings = await SettingsService(session).get_snapshot()
    consumption = await PointsLedgerService(session).points_consumed(current_staff.staff_id, settings, fiscal_year)
    max_points = settings.max_annual_leave_points
    return PointsConsumedResponse(
        staff_id=current_staff.staff_id,
        fiscal_year=consumption.fiscal_year,
        level1=_level_response(consumption.levels[1]),
        level2=_level_response(consumption.levels[2]),
        level3=_level_response(consumption.levels[3]),
        total=float(consumption.total),
        max_points=float(max_points),
        remaining=float(max_points - consumption.total),
    )

@router.get("/availability", response_model=PointsAvailabilityResponse)
async def get_points_availability(
    level: int = Query(..., ge=1, le=3),
    period: LeavePeriod = Query(LeavePeriod.FULL_DAY),
    session: AsyncSession = Depends(get_async_session),
    current_staff: Staff = Depends(get_current_staff)
):
    settings = await SettingsService(session).get_snapshot()
    availability = await PointsLedgerService(session).available(current_staff.staff_id, level, settings, period)
    return PointsAvailabilityResponse(
        staff_id=current_staff.staff_id,
        level=level,
        period=period,
        max_points=float(availability.max_points),
        consumed=float(availability.consumed),
        remaining=float(availability.remaining),
        requested_cost=float(availability.requested_cost),
        can_apply=availability.can_apply,
    )

@router.get("/lottery-period", response_model=LotteryPeriodStatusResponse)
async def get_lottery_period_status(
    vacation_date: date = Query(...),
    session: AsyncSession = Depends(get_async_session),
    current_staff: Staff = Depends(get_current_staff)
):
    """Where "now" falls relative to the submission window of a vacation date"""
    settings = await SettingsService(session).get_snapshot()
    window = lottery_period.lottery_window(vacation_date, settings)
    position = window.classify(local_now())
    return LotteryPeriodStatusResponse(
        vacation_date=vacation_date,
        position=position,
        is_within_lottery_period=position == lottery_period.LotteryWindowPosition.WITHIN,
        period_start=window.start,
        period_end=window.end,
    )

@router.get("/lottery-period/current", response_model=CurrentLotteryPeriodResponse)
async def get_current_lottery_period(
    session: AsyncSession = Depends(get_async_session),
    current_staff: Staff = Depends(get_current_staff)
):
    settings = await SettingsService(session).get_snapshot()
    now = local_now()
    info = lottery_period.current_period_info(settings, now)
    return CurrentLotteryPeriodResponse(
        is_within_period=info.is_within_period,
        target_month=f"{info.target_year:04d}-{info.target_month:02d}",
        period_start=info.period_start,
        period_end=info.period_end,
        evaluated_at=now,
    )
