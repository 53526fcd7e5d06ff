"""
Transaction-scoped locks for the read-then-insert paths of submission.

Both locks are taken before anything is read and are held until the caller
commits or rolls back.  ``lock_staff`` is a no-op UPDATE of the staff row: a
row lock on PostgreSQL, the database write lock on SQLite.  A date has no row
of its own, so ``lock_vacation_date`` uses a transaction advisory lock on
PostgreSQL; on SQLite the write lock already held serializes every writer.

Always lock the staff member before the date.
"""
from datetime import date

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from leave_lottery.core.exceptions import NotFoundError
from leave_lottery.models.staff.staff import Staff

# First key of the two-key advisory lock; the second is the date's ordinal
VACATION_DATE_LOCK_SPACE = 7101


async def lock_staff(session: AsyncSession, staff_id: str) -> None:
    result = await session.execute(
        update(Staff)
        .where(Staff.staff_id == staff_id)
        .values(is_active=Staff.is_active)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise NotFoundError(f"Staff {staff_id} not found")


async def lock_vacation_date(session: AsyncSession, vacation_date: date) -> None:
    if session.get_bind().dialect.name == "postgresql":
        await session.execute(
            select(func.pg_advisory_xact_lock(VACATION_DATE_LOCK_SPACE, vacation_date.toordinal()))
        )
