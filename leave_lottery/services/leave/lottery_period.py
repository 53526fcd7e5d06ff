"""
Lottery period gate.

A vacation date's submission window lies ``lottery_period_months`` whole
months before the date's own month, from ``lottery_period_start_day`` to the
end of ``lottery_period_end_day`` (inclusive).  All functions here are pure:
the settings snapshot and the local "now" are always passed in.
"""
import calendar
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from leave_lottery.models.shared.enums import LotteryWindowPosition
from leave_lottery.schemas.system.setting_schema import LeaveSettings


@dataclass(frozen=True)
class LotteryWindow:
    target_year: int
    target_month: int
    start: datetime
    end: datetime          # last instant shown to users (23:59:59)
    end_exclusive: datetime

    def classify(self, now: datetime) -> LotteryWindowPosition:
        if now < self.start:
            return LotteryWindowPosition.BEFORE
        if now < self.end_exclusive:
            return LotteryWindowPosition.WITHIN
        return LotteryWindowPosition.AFTER


@dataclass(frozen=True)
class LotteryPeriodInfo:
    is_within_period: bool
    target_year: int
    target_month: int
    period_start: datetime
    period_end: datetime


def shift_month(year: int, month: int, months: int) -> tuple:
    """Move (year, month) by ``months``, rolling the year over as needed"""
    index = year * 12 + (month - 1) + months
    return index // 12, index % 12 + 1


def _clamped_day(year: int, month: int, day: int) -> date:
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day, last_day))


def _window_for_month(year: int, month: int, settings: LeaveSettings) -> LotteryWindow:
    """Window that opens in (year, month)"""
    start_day = _clamped_day(year, month, settings.lottery_period_start_day)
    end_day = _clamped_day(year, month, settings.lottery_period_end_day)
    target_year, target_month = shift_month(year, month, settings.lottery_period_months)
    start = datetime.combine(start_day, time.min)
    end_exclusive = datetime.combine(end_day + timedelta(days=1), time.min)
    return LotteryWindow(
        target_year=target_year,
        target_month=target_month,
        start=start,
        end=end_exclusive - timedelta(seconds=1),
        end_exclusive=end_exclusive,
    )


def lottery_window(vacation_date: date, settings: LeaveSettings) -> LotteryWindow:
    """Submission window for ``vacation_date``"""
    year, month = shift_month(vacation_date.year, vacation_date.month, -settings.lottery_period_months)
    return _window_for_month(year, month, settings)


def classify(vacation_date: date, settings: LeaveSettings, now: datetime) -> LotteryWindowPosition:
    return lottery_window(vacation_date, settings).classify(now)


def is_within_lottery_period(vacation_date: date, settings: LeaveSettings, now: datetime) -> bool:
    return classify(vacation_date, settings, now) == LotteryWindowPosition.WITHIN


def is_before_lottery_period(vacation_date: date, settings: LeaveSettings, now: datetime) -> bool:
    return classify(vacation_date, settings, now) == LotteryWindowPosition.BEFORE


def current_period_info(settings: LeaveSettings, now: datetime) -> LotteryPeriodInfo:
    """The window open right now, or the next one to open"""
    window = _window_for_month(now.year, now.month, settings)
    position = window.classify(now)

    if position == LotteryWindowPosition.AFTER:
        next_year, next_month = shift_month(now.year, now.month, 1)
        window = _window_for_month(next_year, next_month, settings)

    return LotteryPeriodInfo(
        is_within_period=position == LotteryWindowPosition.WITHIN,
        target_year=window.target_year,
        target_month=window.target_month,
        period_start=window.start,
        period_end=window.end,
    )


def fiscal_year_of(day: date, start_month: int = 4) -> int:
    """Fiscal year label; 2025 covers 2025-04-01 .. 2026-03-31"""
    return day.year if day.month >= start_month else day.year - 1


def fiscal_year_bounds(fiscal_year: int, start_month: int = 4) -> tuple:
    first = date(fiscal_year, start_month, 1)
    end_year, end_month = shift_month(fiscal_year, start_month, 12)
    last = date(end_year, end_month, 1) - timedelta(days=1)
    return first, last

