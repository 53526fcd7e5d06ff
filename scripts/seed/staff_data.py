"""
Staff seed data (async, idempotent)
Run:  python scripts/seed/staff_data.py
"""

import os, sys
import asyncio
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "..")))

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from leave_lottery.core.database import async_session_maker
from leave_lottery.core.security import create_access_token
from leave_lottery.db.init_db import init_db
from leave_lottery.models.staff.staff import Staff

# ----------------------------------------------------------------------
# SEED DATA
# ----------------------------------------------------------------------

STAFF_SEED = [
    {"staff_id": "S001", "name": "Staff One", "display_order": 1},
    {"staff_id": "S002", "name": "Staff Two", "display_order": 2},
    {"staff_id": "S003", "name": "Staff Three", "display_order": 3},
]

async def get_or_create_staff(db: AsyncSession, data: dict) -> Staff:
    result = await db.execute(select(Staff).where(Staff.staff_id == data["staff_id"]))
    staff = result.scalar_one_or_none()
    if staff:
        return staff
    staff = Staff(**data)
    db.add(staff)
    await db.flush()
    return staff

async def seed(db: AsyncSession):
    staff = [await get_or_create_staff(db, data) for data in STAFF_SEED]
    await db.commit()
    print(f"✓ Staff ready: {len(staff)}")
    for member in staff:
        print(f"  {member.staff_id}: {create_access_token(member.staff_id, member.is_admin)}")

async def main():
    await init_db()
    async with async_session_maker() as db:
        try:
            await seed(db)
            print("✅ Staff seed completed successfully!")
        except Exception as ex:
            await db.rollback()
            print(f"❌ Seed failed: {ex}")
            raise

if __name__ == "__main__":
    asyncio.run(main())
