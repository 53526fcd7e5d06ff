from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

from leave_lottery.core.config import settings


def local_now() -> datetime:
    """Current wall-clock time in the organisation's timezone (naive)"""
    return datetime.now(ZoneInfo(settings.TIMEZONE)).replace(tzinfo=None)


def local_today() -> date:
    return local_now().date()


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
