import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from leave_lottery.core.config import settings as app_settings
from leave_lottery.models.leave.application import Application
from leave_lottery.models.shared.enums import (
    ApplicationStatus, LeavePeriod, POINT_CONSUMING_STATUSES
)
from leave_lottery.schemas.system.setting_schema import LeaveSettings
from leave_lottery.services.leave.lottery_period import fiscal_year_bounds

logger = logging.getLogger(__name__)

LEVELS = (1, 2, 3)
FULL_DAY_WEIGHT = Decimal("1")
HALF_DAY_WEIGHT = Decimal("0.5")


def period_weight(period) -> Decimal:
    return FULL_DAY_WEIGHT if LeavePeriod(period) == LeavePeriod.FULL_DAY else HALF_DAY_WEIGHT


def application_cost(level: int, period, settings: LeaveSettings) -> Decimal:
    """Points one application of ``level`` / ``period`` consumes"""
    return settings.cost_of(level) * period_weight(period)


@dataclass
class LevelConsumption:
    pending_count: Decimal = Decimal("0")
    confirmed_count: Decimal = Decimal("0")
    cancelled_after_lottery_count: Decimal = Decimal("0")
    points: Decimal = Decimal("0")


@dataclass
class PointsConsumption:
    fiscal_year: int
    levels: Dict[int, LevelConsumption] = field(
        default_factory=lambda: {level: LevelConsumption() for level in LEVELS}
    )

    @property
    def level1(self) -> Decimal:
        return self.levels[1].points

    @property
    def level2(self) -> Decimal:
        return self.levels[2].points

    @property
    def level3(self) -> Decimal:
        return self.levels[3].points

    @property
    def total(self) -> Decimal:
        return sum((c.points for c in self.levels.values()), Decimal("0"))


@dataclass(frozen=True)
class PointsAvailability:
    max_points: Decimal
    consumed: Decimal
    remaining: Decimal
    requested_cost: Decimal
    can_apply: bool


def points_consumed(applications: Iterable, settings: LeaveSettings, fiscal_year: Optional[int] = None) -> PointsConsumption:
    """
    Sum the point cost of every application in a consuming status.

    ``applications`` must already be restricted to one staff member and one
    fiscal year; rows in non-consuming statuses are ignored here.
    """
    consumption = PointsConsumption(
        fiscal_year=fiscal_year if fiscal_year is not None else settings.current_fiscal_year
    )

    for app in applications:
        status = ApplicationStatus(app.status)
        if status not in POINT_CONSUMING_STATUSES:
            continue

        weight = period_weight(app.period)
        bucket = consumption.levels[app.level]
        if status == ApplicationStatus.CONFIRMED:
            bucket.confirmed_count += weight
        elif status == ApplicationStatus.CANCELLED_AFTER_LOTTERY:
            bucket.cancelled_after_lottery_count += weight
        else:
            bucket.pending_count += weight
        bucket.points += weight * settings.cost_of(app.level)

    return consumption


def available(consumption: PointsConsumption, level: int, settings: LeaveSettings, period=LeavePeriod.FULL_DAY) -> PointsAvailability:
    """Budget left and whether one more ``level`` application fits into it"""
    max_points = settings.max_annual_leave_points
    consumed = consumption.total
    cost = application_cost(level, period, settings)
    return PointsAvailability(
        max_points=max_points,
        consumed=consumed,
        remaining=max_points - consumed,
        requested_cost=cost,
        can_apply=consumed + cost <= max_points,
    )


class PointsLedgerService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def _applications_for(self, staff_id: str, fiscal_year: int) -> List[Application]:
        first, last = fiscal_year_bounds(fiscal_year, app_settings.FISCAL_YEAR_START_MONTH)
        result = await self.session.execute(
            select(Application).where(
                Application.staff_id == staff_id,
                Application.vacation_date >= first,
                Application.vacation_date <= last,
                Application.status.in_(POINT_CONSUMING_STATUSES),
            )
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def points_consumed(self, staff_id: str, settings: LeaveSettings, fiscal_year: Optional[int] = None) -> PointsConsumption:
        fiscal_year = fiscal_year if fiscal_year is not None else settings.current_fiscal_year
        applications = await self._applications_for(staff_id, fiscal_year)
        return points_consumed(applications, settings, fiscal_year)

    async def available(
        self,
        staff_id: str,
        level: int,
        settings: LeaveSettings,
        period=LeavePeriod.FULL_DAY,
        fiscal_year: Optional[int] = None,
    ) -> PointsAvailability:
        consumption = await self.points_consumed(staff_id, settings, fiscal_year)
        availability = available(consumption, level, settings, period)
        logger.debug(
            f"Points for staff {staff_id} FY{consumption.fiscal_year}: "
            f"consumed={availability.consumed} remaining={availability.remaining} "
            f"level={level} can_apply={availability.can_apply}"
        )
        return availability
