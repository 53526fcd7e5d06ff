import asyncio
import pytest
from datetime import date
from decimal import Decimal

from sqlalchemy import func, select

from leave_lottery.core.exceptions import InsufficientPointsError, ValidationError
from leave_lottery.models import PriorityExchangeRequest, Setting
from leave_lottery.models.shared.enums import AdminResponse, OPEN_TARGET_RESPONSES
from leave_lottery.schemas.leave.application_schema import ApplicationCreate, ApplicationResponse
from leave_lottery.schemas.leave.exchange_schema import ExchangeRequestCreate, ExchangeRequestResponse
from leave_lottery.services.leave.application_service import ApplicationService
from leave_lottery.services.leave.exchange_service import ExchangeService
from leave_lottery.services.leave.points_ledger import PointsLedgerService
from leave_lottery.services.system.settings_service import SettingsService
from tests.conftest import PAST_WINDOW_DATE, WINDOW_DATE, fixed_now, make_application


def submit(session, staff_id: str, vacation_date: date):
    service = ApplicationService(session, now_provider=fixed_now)
    return service.create_application(staff_id, ApplicationCreate(vacation_date=vacation_date, level=1))


@pytest.mark.asyncio
class TestParallelSubmissions:
    async def test_points_budget_holds(self, file_session_factory):
        async with file_session_factory() as setup:
            row = await setup.get(Setting, 1)
            row.max_annual_leave_points = Decimal("2")
            await setup.commit()

        async with file_session_factory() as first, file_session_factory() as second:
            results = await asyncio.gather(
                submit(first, "S001", WINDOW_DATE),
                submit(second, "S001", date(2026, 8, 5)),
                return_exceptions=True,
            )

        assert sum(isinstance(r, ApplicationResponse) for r in results) == 1
        assert sum(isinstance(r, InsufficientPointsError) for r in results) == 1

        async with file_session_factory() as check:
            settings = await SettingsService(check).get_snapshot()
            consumption = await PointsLedgerService(check).points_consumed("S001", settings)
        assert consumption.total == Decimal("2")

    async def test_same_date_gets_distinct_ranks(self, file_session_factory):
        async with file_session_factory() as first, file_session_factory() as second:
            results = await asyncio.gather(
                submit(first, "S001", WINDOW_DATE),
                submit(second, "S002", WINDOW_DATE),
            )

        assert sorted(r.priority for r in results) == [1, 2]


@pytest.mark.asyncio
class TestParallelExchangeRequests:
    async def test_one_open_request_per_pair(self, file_session_factory):
        async with file_session_factory() as setup:
            mine = await make_application(setup, "S001", PAST_WINDOW_DATE, priority=2)
            theirs = await make_application(setup, "S002", PAST_WINDOW_DATE, priority=1)

        async with file_session_factory() as first, file_session_factory() as second:
            results = await asyncio.gather(
                ExchangeService(first).create_request(
                    "S001", ExchangeRequestCreate(requester_application_id=mine.id, target_application_id=theirs.id)
                ),
                ExchangeService(second).create_request(
                    "S002", ExchangeRequestCreate(requester_application_id=theirs.id, target_application_id=mine.id)
                ),
                return_exceptions=True,
            )

        assert sum(isinstance(r, ExchangeRequestResponse) for r in results) == 1
        assert sum(isinstance(r, ValidationError) for r in results) == 1

        async with file_session_factory() as check:
            open_requests = await check.scalar(
                select(func.count(PriorityExchangeRequest.id)).where(
                    PriorityExchangeRequest.pair_low_application_id == min(mine.id, theirs.id),
                    PriorityExchangeRequest.pair_high_application_id == max(mine.id, theirs.id),
                    PriorityExchangeRequest.target_response.in_(OPEN_TARGET_RESPONSES),
                    PriorityExchangeRequest.admin_response == AdminResponse.PENDING,
                )
            )
        assert open_requests == 1
