import pytest
from datetime import date, datetime
from decimal import Decimal
from typing import AsyncGenerator, Optional
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from main import app
from leave_lottery.core.database import get_async_session
from leave_lottery.core.security import create_access_token
from leave_lottery.models import Application, CalendarManagement, Setting, Staff
from leave_lottery.models.base import Base
from leave_lottery.models.shared.enums import ApplicationStatus, CalendarStatus, LeavePeriod
from leave_lottery.schemas.system.setting_schema import LeaveSettings

# In-memory database shared by every session of one test
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Window for August 2026 dates is 2026-05-01 .. 2026-05-10
NOW = datetime(2026, 5, 5, 12, 0, 0)
WINDOW_DATE = date(2026, 8, 4)          # Tuesday, window open at NOW
PAST_WINDOW_DATE = date(2026, 7, 7)     # Tuesday, window closed at NOW
FUTURE_WINDOW_DATE = date(2026, 9, 8)   # Tuesday, window not yet open at NOW

SETTINGS_ROW = {
    "lottery_period_months": 3,
    "lottery_period_start_day": 1,
    "lottery_period_end_day": 10,
    "max_annual_leave_points": Decimal("20"),
    "level1_points": Decimal("2"),
    "level2_points": Decimal("1"),
    "level3_points": Decimal("0.1"),
    "current_fiscal_year": 2026,
}

STAFF = [
    {"staff_id": "admin", "name": "Administrator", "is_admin": True},
    {"staff_id": "S001", "name": "Staff One"},
    {"staff_id": "S002", "name": "Staff Two"},
    {"staff_id": "S003", "name": "Staff Three"},
]


def fixed_now() -> datetime:
    return NOW


@pytest.fixture
def leave_settings() -> LeaveSettings:
    return LeaveSettings(**SETTINGS_ROW)


@pytest.fixture
async def engine():
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def seed_reference_data(session: AsyncSession) -> None:
    session.add(Setting(id=1, **SETTINGS_ROW))
    session.add_all([Staff(**data) for data in STAFF])
    await session.commit()


@pytest.fixture
async def session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        await seed_reference_data(session)
        yield session


@pytest.fixture
async def file_session_factory(tmp_path):
    """Database file with one connection per session, for requests that really run side by side"""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'leave_lottery.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as setup:
        await seed_reference_data(setup)
    yield factory
    await engine.dispose()


@pytest.fixture
async def service_session(session_factory, session) -> AsyncGenerator[AsyncSession, None]:
    """Session for the code under test; its rollbacks leave the fixture objects loaded"""
    async with session_factory() as service_session:
        yield service_session


@pytest.fixture
async def client(session_factory, session) -> AsyncGenerator[AsyncClient, None]:
    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as api_session:
            yield api_session

    app.dependency_overrides[get_async_session] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


def auth_headers(staff_id: str, is_admin: bool = False) -> dict:
    return {"Authorization": f"Bearer {create_access_token(staff_id, is_admin)}"}


async def make_application(
    session: AsyncSession,
    staff_id: str,
    vacation_date: date,
    status: ApplicationStatus = ApplicationStatus.AFTER_LOTTERY,
    priority: Optional[int] = 1,
    level: int = 1,
    period: LeavePeriod = LeavePeriod.FULL_DAY,
) -> Application:
    """Insert an application directly, as the lottery draw would have left it"""
    application = Application(
        staff_id=staff_id,
        vacation_date=vacation_date,
        period=period,
        level=level,
        status=status,
        priority=priority,
        is_within_lottery_period=True,
        user_notified=True,
    )
    session.add(application)
    await session.commit()
    await session.refresh(application)
    return application


async def make_calendar(
    session: AsyncSession,
    vacation_date: date,
    max_people: Optional[int],
    status: CalendarStatus = CalendarStatus.CONFIRMATION_COMPLETED,
) -> CalendarManagement:
    calendar = CalendarManagement(vacation_date=vacation_date, max_people=max_people, status=status)
    session.add(calendar)
    await session.commit()
    return calendar


async def reload(session: AsyncSession, model, record_id: int):
    return await session.get(model, record_id, populate_existing=True)
