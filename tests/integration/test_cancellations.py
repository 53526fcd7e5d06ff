import pytest
from datetime import datetime
from decimal import Decimal

from leave_lottery.core.exceptions import PermissionDeniedError, StateConflictError
from leave_lottery.models import Application, CancellationRequest
from leave_lottery.models.shared.enums import ApplicationStatus, CancellationStatus
from leave_lottery.services.leave.cancellation_service import CancellationService
from leave_lottery.services.leave.points_ledger import PointsLedgerService
from leave_lottery.services.system.settings_service import SettingsService
from tests.conftest import PAST_WINDOW_DATE, WINDOW_DATE, fixed_now, make_application, reload

AFTER_WINDOW_CLOSED = datetime(2026, 5, 12, 9, 0, 0)


def service(service_session, now=fixed_now) -> CancellationService:
    return CancellationService(service_session, now_provider=now)


async def consumed(session, staff_id: str) -> Decimal:
    settings = await SettingsService(session).get_snapshot()
    return (await PointsLedgerService(session).points_consumed(staff_id, settings)).total


@pytest.mark.asyncio
class TestRequestCancellation:
    async def test_after_lottery_cancellation_keeps_points(self, session, service_session):
        application = await make_application(session, "S001", PAST_WINDOW_DATE, ApplicationStatus.AFTER_LOTTERY)
        before = await consumed(session, "S001")

        result = await service(service_session).request_cancellation(application.id, "S001")

        assert result.status == ApplicationStatus.CANCELLED_AFTER_LOTTERY
        assert result.requires_approval is False
        assert result.points_will_recover is False
        assert await consumed(session, "S001") == before == Decimal("2")

    async def test_within_window_cancellation_restores_points(self, session, service_session):
        application = await make_application(session, "S001", WINDOW_DATE, ApplicationStatus.BEFORE_LOTTERY)

        result = await service(service_session).request_cancellation(application.id, "S001")

        assert result.status == ApplicationStatus.CANCELLED_BEFORE_LOTTERY
        assert result.requires_approval is False
        assert result.points_will_recover is True
        assert await consumed(session, "S001") == Decimal("0")

    async def test_second_cancellation_is_rejected(self, session, service_session):
        application = await make_application(session, "S001", WINDOW_DATE, ApplicationStatus.BEFORE_LOTTERY)
        await service(service_session).request_cancellation(application.id, "S001")

        with pytest.raises(StateConflictError):
            await service(service_session).request_cancellation(application.id, "S001")
        assert (await reload(session, Application, application.id)).status == ApplicationStatus.CANCELLED_BEFORE_LOTTERY

    async def test_outside_window_needs_approval(self, session, service_session):
        application = await make_application(session, "S001", WINDOW_DATE, ApplicationStatus.BEFORE_LOTTERY)

        result = await service(service_session, now=lambda: AFTER_WINDOW_CLOSED).request_cancellation(
            application.id, "S001", "Family event moved"
        )

        assert result.status == ApplicationStatus.PENDING_CANCELLATION
        assert result.requires_approval is True
        assert result.cancellation_request_id is not None
        # No point change until an administrator approves
        assert await consumed(session, "S001") == Decimal("2")

        request = await reload(session, CancellationRequest, result.cancellation_request_id)
        assert request.status == CancellationStatus.PENDING
        assert request.previous_status == ApplicationStatus.BEFORE_LOTTERY
        assert request.requested_reason == "Family event moved"

    @pytest.mark.parametrize("status", [
        ApplicationStatus.CONFIRMED,
        ApplicationStatus.PENDING_APPROVAL,
        ApplicationStatus.WITHDRAWN,
    ])
    async def test_non_cancellable_statuses(self, session, service_session, status):
        application = await make_application(session, "S001", PAST_WINDOW_DATE, status)
        with pytest.raises(StateConflictError):
            await service(service_session).request_cancellation(application.id, "S001")

    async def test_only_owner_can_cancel(self, session, service_session):
        application = await make_application(session, "S001", PAST_WINDOW_DATE)
        with pytest.raises(PermissionDeniedError):
            await service(service_session).request_cancellation(application.id, "S002")


@pytest.mark.asyncio
class TestReviewCancellation:
    async def _pending_request(self, session, service_session):
        application = await make_application(session, "S001", WINDOW_DATE, ApplicationStatus.BEFORE_LOTTERY)
        other = await make_application(session, "S002", WINDOW_DATE, ApplicationStatus.BEFORE_LOTTERY, priority=2)
        result = await service(service_session, now=lambda: AFTER_WINDOW_CLOSED).request_cancellation(application.id, "S001")
        return application, other, result.cancellation_request_id

    async def test_approval_cancels_and_restores_points(self, session, service_session):
        application, other, request_id = await self._pending_request(session, service_session)

        response = await service(service_session).approve_cancellation(request_id, "admin", "OK")

        assert response.status == CancellationStatus.APPROVED
        assert response.reviewed_by_staff_id == "admin"
        cancelled = await reload(session, Application, application.id)
        assert cancelled.status == ApplicationStatus.CANCELLED_BEFORE_LOTTERY
        assert cancelled.user_notified is False
        assert cancelled.priority is None
        assert (await reload(session, Application, other.id)).priority == 1
        assert await consumed(session, "S001") == Decimal("0")

    async def test_rejection_restores_previous_status(self, session, service_session):
        application, _, request_id = await self._pending_request(session, service_session)

        response = await service(service_session).reject_cancellation(request_id, "admin", "Too late to change")

        assert response.status == CancellationStatus.REJECTED
        assert response.review_comment == "Too late to change"
        restored = await reload(session, Application, application.id)
        assert restored.status == ApplicationStatus.BEFORE_LOTTERY
        assert restored.user_notified is False
        assert restored.priority == 1

    async def test_request_can_only_be_reviewed_once(self, session, service_session):
        _, _, request_id = await self._pending_request(session, service_session)
        await service(service_session).approve_cancellation(request_id, "admin")
        with pytest.raises(StateConflictError):
            await service(service_session).reject_cancellation(request_id, "admin")

    async def test_pending_list(self, session, service_session):
        application, _, request_id = await self._pending_request(session, service_session)
        pending = await service(service_session).get_pending_requests()
        assert [p.id for p in pending] == [request_id]
        assert pending[0].staff_id == "S001"
        assert pending[0].vacation_date == application.vacation_date
