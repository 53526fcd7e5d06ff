import pytest
from datetime import date
from decimal import Decimal

from leave_lottery.core.exceptions import InsufficientPointsError, StateConflictError, ValidationError
from leave_lottery.models import Application, Holiday, Setting
from leave_lottery.models.shared.enums import ApplicationStatus, ExternalTransition, LeavePeriod
from leave_lottery.schemas.leave.application_schema import ApplicationCreate
from leave_lottery.services.leave.application_service import ApplicationService
from leave_lottery.services.leave.cancellation_service import CancellationService
from leave_lottery.services.leave.points_ledger import PointsLedgerService
from leave_lottery.services.system.settings_service import SettingsService
from tests.conftest import (
    FUTURE_WINDOW_DATE, PAST_WINDOW_DATE, WINDOW_DATE,
    fixed_now, make_application, make_calendar, reload
)


def service(service_session) -> ApplicationService:
    return ApplicationService(service_session, now_provider=fixed_now)


def request(vacation_date=WINDOW_DATE, level=1, period=LeavePeriod.FULL_DAY) -> ApplicationCreate:
    return ApplicationCreate(vacation_date=vacation_date, level=level, period=period)


@pytest.mark.asyncio
class TestCreateApplication:
    async def test_level1_inside_window_consumes_points(self, session, service_session):
        created = await service(service_session).create_application("S001", request())

        assert created.status == ApplicationStatus.BEFORE_LOTTERY
        assert created.priority == 1
        assert created.is_within_lottery_period is True

        settings = await SettingsService(session).get_snapshot()
        consumption = await PointsLedgerService(session).points_consumed("S001", settings)
        availability = await PointsLedgerService(session).available("S001", 1, settings)
        assert consumption.level1 == Decimal("2")
        assert availability.remaining == Decimal("18")

    async def test_duplicate_for_same_date_is_rejected(self, session, service_session):
        await service(service_session).create_application("S001", request())
        with pytest.raises(ValidationError):
            await service(service_session).create_application("S001", request(level=2))

    async def test_can_apply_again_after_cancelling(self, session, service_session):
        created = await service(service_session).create_application("S001", request())
        await CancellationService(service_session, now_provider=fixed_now).request_cancellation(created.id, "S001")

        again = await service(service_session).create_application("S001", request(level=2))
        assert again.status == ApplicationStatus.BEFORE_LOTTERY

    async def test_level1_outside_window_is_rejected(self, session, service_session):
        with pytest.raises(ValidationError):
            await service(service_session).create_application("S001", request(PAST_WINDOW_DATE))
        with pytest.raises(ValidationError):
            await service(service_session).create_application("S001", request(FUTURE_WINDOW_DATE, level=2))

    async def test_level3_before_window_is_rejected(self, session, service_session):
        with pytest.raises(ValidationError):
            await service(service_session).create_application("S001", request(FUTURE_WINDOW_DATE, level=3))

    async def test_level3_after_window_goes_straight_to_after_lottery(self, session, service_session):
        created = await service(service_session).create_application("S001", request(PAST_WINDOW_DATE, level=3))
        assert created.status == ApplicationStatus.AFTER_LOTTERY
        assert created.is_within_lottery_period is False

    async def test_level3_inside_window_is_before_lottery(self, session, service_session):
        created = await service(service_session).create_application("S001", request(level=3))
        assert created.status == ApplicationStatus.BEFORE_LOTTERY

    async def test_level3_on_confirmed_date_needs_approval(self, session, service_session):
        await make_calendar(session, PAST_WINDOW_DATE, max_people=2)
        created = await service(service_session).create_application("S001", request(PAST_WINDOW_DATE, level=3))
        assert created.status == ApplicationStatus.PENDING_APPROVAL
        assert created.priority == 1

    async def test_level3_on_full_date_is_rejected(self, session, service_session):
        await make_calendar(session, PAST_WINDOW_DATE, max_people=1)
        await make_application(session, "S002", PAST_WINDOW_DATE, ApplicationStatus.CONFIRMED)
        with pytest.raises(ValidationError):
            await service(service_session).create_application("S001", request(PAST_WINDOW_DATE, level=3))

    async def test_level3_on_confirmed_date_without_capacity_is_rejected(self, session, service_session):
        await make_calendar(session, PAST_WINDOW_DATE, max_people=None)
        with pytest.raises(ValidationError):
            await service(service_session).create_application("S001", request(PAST_WINDOW_DATE, level=3))

    async def test_insufficient_points(self, session, service_session):
        row = await session.get(Setting, 1)
        row.max_annual_leave_points = Decimal("3")
        await session.commit()

        await service(service_session).create_application("S001", request(date(2026, 8, 4)))
        with pytest.raises(InsufficientPointsError):
            await service(service_session).create_application("S001", request(date(2026, 8, 5)))
        # A level 2 application still fits
        created = await service(service_session).create_application("S001", request(date(2026, 8, 5), level=2))
        assert created.level == 2

    async def test_sunday_and_saturday_rules(self, session, service_session):
        with pytest.raises(ValidationError):
            await service(service_session).create_application("S001", request(date(2026, 8, 2)))
        with pytest.raises(ValidationError):
            await service(service_session).create_application("S001", request(date(2026, 8, 1)))
        created = await service(service_session).create_application("S001", request(date(2026, 8, 1), period=LeavePeriod.AM))
        assert created.period == LeavePeriod.AM

    async def test_holiday_is_rejected(self, session, service_session):
        session.add(Holiday(holiday_date=date(2026, 8, 11), name="Mountain Day"))
        await session.commit()
        with pytest.raises(ValidationError):
            await service(service_session).create_application("S001", request(date(2026, 8, 11)))

    async def test_priorities_follow_submission_order(self, session, service_session):
        first = await service(service_session).create_application("S001", request())
        second = await service(service_session).create_application("S002", request())
        third = await service(service_session).create_application("S003", request())
        assert [first.priority, second.priority, third.priority] == [1, 2, 3]

        await CancellationService(service_session, now_provider=fixed_now).request_cancellation(second.id, "S002")

        assert (await reload(session, Application, first.id)).priority == 1
        assert (await reload(session, Application, second.id)).priority is None
        assert (await reload(session, Application, third.id)).priority == 2

    async def test_list_applications_for_fiscal_year(self, session, service_session):
        await service(service_session).create_application("S001", request())
        await make_application(session, "S001", date(2027, 4, 6))

        listing = await service(service_session).get_staff_applications("S001")
        assert listing.fiscal_year == 2026
        assert listing.total_applications == 1
        assert listing.applications[0].vacation_date == WINDOW_DATE


@pytest.mark.asyncio
class TestPendingApproval:
    async def test_approve_confirms_and_notifies(self, session, service_session):
        await make_calendar(session, PAST_WINDOW_DATE, max_people=1)
        pending = await make_application(session, "S001", PAST_WINDOW_DATE, ApplicationStatus.PENDING_APPROVAL, level=3)

        approved = await service(service_session).approve_pending(pending.id, "admin")
        assert approved.status == ApplicationStatus.CONFIRMED
        assert approved.user_notified is False

    async def test_second_approval_past_capacity_is_refused(self, session, service_session):
        await make_calendar(session, PAST_WINDOW_DATE, max_people=1)
        first = await make_application(session, "S001", PAST_WINDOW_DATE, ApplicationStatus.PENDING_APPROVAL, level=3)
        second = await make_application(session, "S002", PAST_WINDOW_DATE, ApplicationStatus.PENDING_APPROVAL, priority=2, level=3)

        await service(service_session).approve_pending(first.id, "admin")
        with pytest.raises(StateConflictError):
            await service(service_session).approve_pending(second.id, "admin")

        assert (await reload(session, Application, second.id)).status == ApplicationStatus.PENDING_APPROVAL

    async def test_approving_twice_is_a_conflict(self, session, service_session):
        await make_calendar(session, PAST_WINDOW_DATE, max_people=3)
        pending = await make_application(session, "S001", PAST_WINDOW_DATE, ApplicationStatus.PENDING_APPROVAL, level=3)
        await service(service_session).approve_pending(pending.id, "admin")
        with pytest.raises(StateConflictError):
            await service(service_session).approve_pending(pending.id, "admin")

    async def test_reject_restores_points_and_reranks(self, session, service_session):
        await make_calendar(session, PAST_WINDOW_DATE, max_people=3)
        rejected = await make_application(session, "S001", PAST_WINDOW_DATE, ApplicationStatus.PENDING_APPROVAL, priority=1, level=3)
        other = await make_application(session, "S002", PAST_WINDOW_DATE, ApplicationStatus.AFTER_LOTTERY, priority=2)

        result = await service(service_session).reject_pending(rejected.id, "admin", "No cover available")
        assert result.status == ApplicationStatus.CANCELLED
        assert result.priority is None
        assert result.user_notified is False
        assert result.reject_reason == "No cover available"
        assert (await reload(session, Application, rejected.id)).reject_reason == "No cover available"
        assert (await reload(session, Application, other.id)).priority == 1

        settings = await SettingsService(session).get_snapshot()
        consumption = await PointsLedgerService(session).points_consumed("S001", settings)
        assert consumption.total == Decimal("0")

    async def test_pending_list_includes_capacity(self, session, service_session):
        await make_calendar(session, PAST_WINDOW_DATE, max_people=2)
        await make_application(session, "S002", PAST_WINDOW_DATE, ApplicationStatus.CONFIRMED)
        await make_application(session, "S001", PAST_WINDOW_DATE, ApplicationStatus.PENDING_APPROVAL, priority=2, level=3)

        pending = await service(service_session).get_pending_approvals()
        assert len(pending) == 1
        assert pending[0].staff_name == "Staff One"
        assert pending[0].max_people == 2
        assert pending[0].confirmed_count == 1


@pytest.mark.asyncio
class TestExternalTransitions:
    async def test_lottery_draw_then_confirmation(self, session, service_session):
        application = await make_application(session, "S001", WINDOW_DATE, ApplicationStatus.BEFORE_LOTTERY)

        drawn = await service(service_session).apply_external_transition(application.id, ExternalTransition.LOTTERY_DRAWN, "admin")
        assert drawn.status == ApplicationStatus.AFTER_LOTTERY

        confirmed = await service(service_session).apply_external_transition(application.id, ExternalTransition.CONFIRMED, "admin")
        assert confirmed.status == ApplicationStatus.CONFIRMED

    async def test_transition_from_wrong_status_is_a_conflict(self, session, service_session):
        application = await make_application(session, "S001", WINDOW_DATE, ApplicationStatus.BEFORE_LOTTERY)
        with pytest.raises(StateConflictError):
            await service(service_session).apply_external_transition(application.id, ExternalTransition.CONFIRMED, "admin")
