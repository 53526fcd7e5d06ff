import logging
from datetime import datetime
from typing import Callable, List, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from leave_lottery.core.exceptions import (
    BaseAppException, NotFoundError, PermissionDeniedError, StateConflictError
)
from leave_lottery.models.leave.application import Application
from leave_lottery.models.leave.cancellation_request import CancellationRequest
from leave_lottery.models.shared.enums import (
    ApplicationStatus, CancellationStatus, NotificationKind, OWNER_CANCELLABLE_STATUSES
)
from leave_lottery.schemas.leave.cancellation_schema import (
    CancellationRequestResponse, CancellationResult, PendingCancellationResponse
)
from leave_lottery.services.leave import lottery_period
from leave_lottery.services.leave.application_service import get_application_or_404, transition_application
from leave_lottery.services.leave.priority_service import recalculate_priorities
from leave_lottery.services.system.settings_service import SettingsService
from leave_lottery.utils.date_utils import local_now, utc_now

logger = logging.getLogger(__name__)


class CancellationService:
    def __init__(self, session: AsyncSession, now_provider: Optional[Callable[[], datetime]] = None):
        self.session = session
        self.now_provider = now_provider or local_now
        self.settings_service = SettingsService(session)

    async def _get_request_or_404(self, request_id: int) -> CancellationRequest:
        result = await self.session.execute(
            select(CancellationRequest)
            .where(CancellationRequest.id == request_id)
            .execution_options(populate_existing=True)
        )
        request = result.scalar_one_or_none()
        if not request:
            raise NotFoundError(f"Cancellation request with ID {request_id} not found")
        return request

    async def _resolve_request(self, request_id: int, outcome: CancellationStatus, admin_staff_id: str, comment: Optional[str]) -> None:
        result = await self.session.execute(
            update(CancellationRequest)
            .where(
                CancellationRequest.id == request_id,
                CancellationRequest.status == CancellationStatus.PENDING,
            )
            .values(
                status=outcome,
                reviewed_by_staff_id=admin_staff_id,
                reviewed_at=utc_now(),
                review_comment=comment,
                user_notified=False,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise StateConflictError(f"Cancellation request {request_id} has already been reviewed")

    # region ========== Owner ==========

    async def request_cancellation(self, application_id: int, staff_id: str, reason: Optional[str] = None) -> CancellationResult:
        """
        Cancel an application on behalf of its owner.

        - before_lottery, window open: cancelled_before_lottery at once, points restored
        - before_lottery, window closed: pending_cancellation plus a request for an administrator
        - after_lottery: cancelled_after_lottery at once, points stay consumed
        """
        try:
            application = await get_application_or_404(self.session, application_id)
            if application.staff_id != staff_id:
                raise PermissionDeniedError("You can only cancel your own applications")

            current = ApplicationStatus(application.status)
            if current not in OWNER_CANCELLABLE_STATUSES:
                raise StateConflictError(f"Applications in status {current.value} cannot be cancelled")

            vacation_date = application.vacation_date

            if current == ApplicationStatus.AFTER_LOTTERY:
                await transition_application(
                    self.session, application_id, current, ApplicationStatus.CANCELLED_AFTER_LOTTERY, priority=None
                )
                await recalculate_priorities(self.session, vacation_date)
                await self.session.commit()
                logger.info(f"Application {application_id} cancelled after lottery by staff {staff_id}")
                return CancellationResult(
                    application_id=application_id,
                    status=ApplicationStatus.CANCELLED_AFTER_LOTTERY,
                    requires_approval=False,
                    points_will_recover=False,
                )

            settings = await self.settings_service.get_snapshot()
            if lottery_period.is_within_lottery_period(vacation_date, settings, self.now_provider()):
                await transition_application(
                    self.session, application_id, current, ApplicationStatus.CANCELLED_BEFORE_LOTTERY, priority=None
                )
                await recalculate_priorities(self.session, vacation_date)
                await self.session.commit()
                logger.info(f"Application {application_id} cancelled within lottery period by staff {staff_id}")
                return CancellationResult(
                    application_id=application_id,
                    status=ApplicationStatus.CANCELLED_BEFORE_LOTTERY,
                    requires_approval=False,
                    points_will_recover=True,
                )

            await transition_application(
                self.session, application_id, current, ApplicationStatus.PENDING_CANCELLATION
            )
            request = CancellationRequest(
                application_id=application_id,
                status=CancellationStatus.PENDING,
                previous_status=current,
                requested_reason=reason,
                user_notified=True,
            )
            self.session.add(request)
            await self.session.commit()
            await self.session.refresh(request)

            logger.info(
                f"Cancellation request {request.id} created for application {application_id} by staff {staff_id}"
            )
            return CancellationResult(
                application_id=application_id,
                status=ApplicationStatus.PENDING_CANCELLATION,
                requires_approval=True,
                points_will_recover=True,
                cancellation_request_id=request.id,
            )

        except IntegrityError:
            await self.session.rollback()
            raise StateConflictError(f"A cancellation request for application {application_id} is already pending")
        except BaseAppException as e:
            await self.session.rollback()
            logger.warning(f"Cancellation of application {application_id} refused: {e.detail}")
            raise
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error cancelling application {application_id}: {str(e)}")
            raise

    # endregion

    # region ========== Administrator ==========

    async def approve_cancellation(self, request_id: int, admin_staff_id: str, comment: Optional[str] = None) -> CancellationRequestResponse:
        """Approve a pending request; the application is cancelled and its points restored"""
        try:
            request = await self._get_request_or_404(request_id)
            application = await get_application_or_404(self.session, request.application_id)

            await self._resolve_request(request_id, CancellationStatus.APPROVED, admin_staff_id, comment)
            await transition_application(
                self.session,
                application.id,
                ApplicationStatus.PENDING_CANCELLATION,
                ApplicationStatus.CANCELLED_BEFORE_LOTTERY,
                priority=None,
                user_notified=False,
                notification_kind=NotificationKind.CANCELLATION_APPROVED,
            )
            await recalculate_priorities(self.session, application.vacation_date)
            await self.session.commit()

            logger.info(f"Cancellation request {request_id} approved by admin {admin_staff_id}")
            return CancellationRequestResponse.model_validate(
                await self._get_request_or_404(request_id), from_attributes=True
            )

        except BaseAppException as e:
            await self.session.rollback()
            logger.warning(f"Approval of cancellation request {request_id} refused: {e.detail}")
            raise
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error approving cancellation request {request_id}: {str(e)}")
            raise

    async def reject_cancellation(self, request_id: int, admin_staff_id: str, comment: Optional[str] = None) -> CancellationRequestResponse:
        """Reject a pending request; the application goes back to the status it had before"""
        try:
            request = await self._get_request_or_404(request_id)
            previous_status = ApplicationStatus(request.previous_status)

            await self._resolve_request(request_id, CancellationStatus.REJECTED, admin_staff_id, comment)
            await transition_application(
                self.session,
                request.application_id,
                ApplicationStatus.PENDING_CANCELLATION,
                previous_status,
                user_notified=False,
                notification_kind=NotificationKind.CANCELLATION_REJECTED,
            )
            await self.session.commit()

            logger.info(f"Cancellation request {request_id} rejected by admin {admin_staff_id}")
            return CancellationRequestResponse.model_validate(
                await self._get_request_or_404(request_id), from_attributes=True
            )

        except BaseAppException as e:
            await self.session.rollback()
            logger.warning(f"Rejection of cancellation request {request_id} refused: {e.detail}")
            raise
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error rejecting cancellation request {request_id}: {str(e)}")
            raise

    async def get_pending_requests(self) -> List[PendingCancellationResponse]:
        result = await self.session.execute(
            select(CancellationRequest, Application)
            .join(Application, CancellationRequest.application_id == Application.id)
            .where(CancellationRequest.status == CancellationStatus.PENDING)
            .order_by(CancellationRequest.requested_at, CancellationRequest.id)
        )
        pending = []
        for request, application in result.all():
            data = CancellationRequestResponse.model_validate(request, from_attributes=True).model_dump()
            pending.append(PendingCancellationResponse(
                **data,
                staff_id=application.staff_id,
                vacation_date=application.vacation_date,
                level=application.level,
            ))
        return pending

    # endregion
