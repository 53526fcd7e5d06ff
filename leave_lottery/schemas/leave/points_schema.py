from pydantic import BaseModel
from typing import Optional
from datetime import date as DateType, datetime
from leave_lottery.models.shared.enums import LeavePeriod, LotteryWindowPosition

class LevelPointsResponse(BaseModel):
    pending_count: float
    confirmed_count: float
    cancelled_after_lottery_count: float
    points: float

class PointsConsumedResponse(BaseModel):
    staff_id: str
    fiscal_year: int
    level1: LevelPointsResponse
    level2: LevelPointsResponse
    level3: LevelPointsResponse
    total: float
    max_points: float
    remaining: float

class PointsAvailabilityResponse(BaseModel):
    staff_id: str
    level: int
    period: LeavePeriod
    max_points: float
    consumed: float
    remaining: float
    requested_cost: float
    can_apply: bool

class LotteryPeriodStatusResponse(BaseModel):
    vacation_date: DateType
    position: LotteryWindowPosition
    is_within_lottery_period: bool
    period_start: datetime
    period_end: datetime

class CurrentLotteryPeriodResponse(BaseModel):
    is_within_period: bool
    target_month: str
    period_start: datetime
    period_end: datetime
    evaluated_at: Optional[datetime] = None
