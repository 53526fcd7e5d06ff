import logging
from datetime import date
from typing import Protocol

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from leave_lottery.models.leave.application import Application
from leave_lottery.models.shared.enums import CANCELLED_STATUSES

logger = logging.getLogger(__name__)


class PriorityStrategy(Protocol):
    """Initial rank for a new application on ``vacation_date``"""

    async def assign_initial_priority(self, session: AsyncSession, vacation_date: date) -> int:
        ...


class SequentialPriorityStrategy:
    """Append behind every application still competing for the date"""

    async def assign_initial_priority(self, session: AsyncSession, vacation_date: date) -> int:
        count = await session.scalar(
            select(func.count(Application.id)).where(
                Application.vacation_date == vacation_date,
                Application.status.notin_(CANCELLED_STATUSES),
            )
        )
        return (count or 0) + 1


async def recalculate_priorities(session: AsyncSession, vacation_date: date) -> int:
    """
    Close the gaps left by applications that dropped out of a date.

    Ranks stay in their current relative order and are renumbered 1..n.
    Runs inside the caller's transaction; returns the number of rows renumbered.
    """
    result = await session.execute(
        select(Application.id, Application.priority)
        .where(
            Application.vacation_date == vacation_date,
            Application.status.notin_(CANCELLED_STATUSES),
            Application.priority.is_not(None),
        )
        .order_by(Application.priority, Application.applied_at, Application.id)
    )
    renumbered = 0
    for rank, (application_id, priority) in enumerate(result.all(), start=1):
        if priority == rank:
            continue
        await session.execute(
            update(Application)
            .where(Application.id == application_id)
            .values(priority=rank)
            .execution_options(synchronize_session=False)
        )
        renumbered += 1

    if renumbered:
        logger.info(f"Priorities recalculated for {vacation_date}: {renumbered} applications renumbered")
    return renumbered
