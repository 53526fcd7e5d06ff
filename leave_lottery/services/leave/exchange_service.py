"""
Priority exchange between two applications for the same date.

A request moves through three independently committed stages: the
requester proposes, the target accepts or declines, an administrator
approves or rejects.  Approval performs the swap of ``priority`` and
``level`` and writes the audit log in the same transaction.
"""
import logging
from datetime import date
from typing import Callable, List, Optional

from sqlalchemy import or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from leave_lottery.core.exceptions import (
    BaseAppException, NotFoundError, PermissionDeniedError, StateConflictError, ValidationError
)
from leave_lottery.models.leave.application import Application
from leave_lottery.models.leave.priority_exchange import PriorityExchangeLog, PriorityExchangeRequest
from leave_lottery.models.shared.enums import (
    AdminResponse, TargetResponse, EXCHANGEABLE_STATUSES, OPEN_TARGET_RESPONSES
)
from leave_lottery.schemas.leave.exchange_schema import (
    ExchangeApplicationInfo,
    ExchangeRequestCreate,
    ExchangeRequestResponse,
    ExchangeRequestsForStaff,
    ExchangeTargetReply,
    PriorityExchangeLogResponse,
)
from leave_lottery.services.leave.application_service import get_application_or_404
from leave_lottery.utils.date_utils import local_today, utc_now

logger = logging.getLogger(__name__)


async def _update_application_rank(
    session: AsyncSession, application_id: int, expected_priority: int, priority: int, level: int
) -> None:
    """Set one side of a swap, provided the application is still exchangeable at the rank we read"""
    result = await session.execute(
        update(Application)
        .where(
            Application.id == application_id,
            Application.status.in_(EXCHANGEABLE_STATUSES),
            Application.priority == expected_priority,
        )
        .values(priority=priority, level=level)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise StateConflictError(f"Application {application_id} changed before the exchange could be executed")


def _ensure_exchangeable(application: Application) -> None:
    if application.status not in EXCHANGEABLE_STATUSES:
        allowed = ", ".join(s.value for s in EXCHANGEABLE_STATUSES)
        raise ValidationError(
            f"Application {application.id} is {application.status.value}; only {allowed} applications can be exchanged"
        )
    if application.priority is None:
        raise ValidationError(f"Application {application.id} has no priority to exchange")


class ExchangeService:
    def __init__(self, session: AsyncSession, today_provider: Optional[Callable[[], date]] = None):
        self.session = session
        self.today_provider = today_provider or local_today

    def _request_query(self):
        return (
            select(PriorityExchangeRequest)
            .options(
                selectinload(PriorityExchangeRequest.requester_application),
                selectinload(PriorityExchangeRequest.target_application),
            )
            .execution_options(populate_existing=True)
        )

    async def _get_request_or_404(self, request_id: int) -> PriorityExchangeRequest:
        result = await self.session.execute(
            self._request_query().where(PriorityExchangeRequest.id == request_id)
        )
        request = result.scalar_one_or_none()
        if not request:
            raise NotFoundError(f"Exchange request with ID {request_id} not found")
        return request

    async def _response(self, request_id: int) -> ExchangeRequestResponse:
        request = await self._get_request_or_404(request_id)
        return ExchangeRequestResponse.model_validate(request, from_attributes=True)

    async def _has_open_request(self, application_id_a: int, application_id_b: int) -> bool:
        result = await self.session.execute(
            select(PriorityExchangeRequest.id).where(
                PriorityExchangeRequest.pair_low_application_id == min(application_id_a, application_id_b),
                PriorityExchangeRequest.pair_high_application_id == max(application_id_a, application_id_b),
                PriorityExchangeRequest.target_response.in_(OPEN_TARGET_RESPONSES),
                PriorityExchangeRequest.admin_response == AdminResponse.PENDING,
            )
        )
        return result.first() is not None

    # region ========== Stage 1: request ==========

    async def create_request(self, requester_staff_id: str, data: ExchangeRequestCreate) -> ExchangeRequestResponse:
        try:
            requester_app = await get_application_or_404(self.session, data.requester_application_id)
            target_app = await get_application_or_404(self.session, data.target_application_id)

            if requester_app.staff_id != requester_staff_id:
                raise PermissionDeniedError("You can only offer your own application for exchange")
            if target_app.staff_id == requester_staff_id:
                raise ValidationError("You cannot exchange priority with yourself")
            if requester_app.vacation_date != target_app.vacation_date:
                raise ValidationError("Only applications for the same date can be exchanged")

            _ensure_exchangeable(requester_app)
            _ensure_exchangeable(target_app)

            if await self._has_open_request(requester_app.id, target_app.id):
                raise ValidationError("An exchange request for these applications is already in progress")

            request = PriorityExchangeRequest(
                requester_application_id=requester_app.id,
                requester_staff_id=requester_staff_id,
                target_application_id=target_app.id,
                target_staff_id=target_app.staff_id,
                pair_low_application_id=min(requester_app.id, target_app.id),
                pair_high_application_id=max(requester_app.id, target_app.id),
                request_reason=data.request_reason,
                target_response=TargetResponse.PENDING,
                admin_response=AdminResponse.PENDING,
                executed=False,
                requester_notified=True,
                target_notified=False,
            )
            self.session.add(request)
            await self.session.commit()
            await self.session.refresh(request)

            logger.info(
                f"Exchange request {request.id} created by {requester_staff_id}: "
                f"application {requester_app.id} <-> {target_app.id}"
            )
            return await self._response(request.id)

        except IntegrityError:
            await self.session.rollback()
            logger.warning(
                f"Exchange request by {requester_staff_id} refused: an open request for applications "
                f"{data.requester_application_id} and {data.target_application_id} was committed first"
            )
            raise ValidationError("An exchange request for these applications is already in progress")
        except BaseAppException as e:
            await self.session.rollback()
            logger.warning(f"Exchange request by {requester_staff_id} refused: {e.detail}")
            raise
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error creating exchange request: {str(e)}")
            raise

    # endregion

    # region ========== Stage 2: target ==========

    async def respond_as_target(self, request_id: int, staff_id: str, reply: ExchangeTargetReply) -> ExchangeRequestResponse:
        try:
            request = await self._get_request_or_404(request_id)
            if request.target_staff_id != staff_id:
                raise PermissionDeniedError("Only the target of an exchange request can respond to it")

            result = await self.session.execute(
                update(PriorityExchangeRequest)
                .where(
                    PriorityExchangeRequest.id == request_id,
                    PriorityExchangeRequest.target_response == TargetResponse.PENDING,
                    PriorityExchangeRequest.admin_response == AdminResponse.PENDING,
                )
                .values(
                    target_response=reply.response,
                    target_responded_at=utc_now(),
                    target_reject_reason=reply.reject_reason if reply.response == TargetResponse.REJECTED else None,
                    requester_notified=False,
                    target_notified=True,
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                raise StateConflictError(f"Exchange request {request_id} has already been answered")
            await self.session.commit()

            logger.info(f"Exchange request {request_id} {reply.response.value} by target {staff_id}")
            return await self._response(request_id)

        except BaseAppException as e:
            await self.session.rollback()
            logger.warning(f"Response to exchange request {request_id} refused: {e.detail}")
            raise
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error responding to exchange request {request_id}: {str(e)}")
            raise

    # endregion

    # region ========== Stage 3: administrator ==========

    async def approve(self, request_id: int, admin_staff_id: str) -> ExchangeRequestResponse:
        """Approve an accepted request and swap priority and level in one transaction"""
        try:
            request = await self._get_request_or_404(request_id)
            if request.target_response != TargetResponse.ACCEPTED or request.admin_response != AdminResponse.PENDING:
                raise StateConflictError(f"Exchange request {request_id} is not awaiting administrator approval")

            first = request.requester_application
            second = request.target_application
            try:
                _ensure_exchangeable(first)
                _ensure_exchangeable(second)
            except ValidationError as e:
                raise StateConflictError(e.detail)
            if first.vacation_date != second.vacation_date:
                raise StateConflictError("The applications no longer share a date")

            before_priority_1, before_level_1 = first.priority, first.level
            before_priority_2, before_level_2 = second.priority, second.level
            now = utc_now()

            result = await self.session.execute(
                update(PriorityExchangeRequest)
                .where(
                    PriorityExchangeRequest.id == request_id,
                    PriorityExchangeRequest.target_response == TargetResponse.ACCEPTED,
                    PriorityExchangeRequest.admin_response == AdminResponse.PENDING,
                    PriorityExchangeRequest.executed.is_(False),
                )
                .values(
                    admin_response=AdminResponse.APPROVED,
                    admin_staff_id=admin_staff_id,
                    admin_responded_at=now,
                    executed=True,
                    executed_at=now,
                    requester_notified=False,
                    target_notified=False,
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                raise StateConflictError(f"Exchange request {request_id} has already been resolved")

            await _update_application_rank(
                self.session, first.id, before_priority_1, before_priority_2, before_level_2
            )
            await _update_application_rank(
                self.session, second.id, before_priority_2, before_priority_1, before_level_1
            )

            self.session.add(PriorityExchangeLog(
                exchange_request_id=request_id,
                application_id_1=first.id,
                application_id_2=second.id,
                before_priority_1=before_priority_1,
                before_priority_2=before_priority_2,
                before_level_1=before_level_1,
                before_level_2=before_level_2,
                after_priority_1=before_priority_2,
                after_priority_2=before_priority_1,
                after_level_1=before_level_2,
                after_level_2=before_level_1,
                exchanged_by_staff_id=admin_staff_id,
            ))
            await self.session.commit()

            logger.info(
                f"Exchange request {request_id} executed by admin {admin_staff_id}: "
                f"application {first.id} {before_priority_1}->{before_priority_2}, "
                f"application {second.id} {before_priority_2}->{before_priority_1}"
            )
            self.session.expire(first)
            self.session.expire(second)
            return await self._response(request_id)

        except BaseAppException as e:
            await self.session.rollback()
            logger.warning(f"Approval of exchange request {request_id} refused: {e.detail}")
            raise
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Exchange request {request_id} rolled back: {str(e)}")
            raise

    async def reject(self, request_id: int, admin_staff_id: str, reason: Optional[str] = None) -> ExchangeRequestResponse:
        try:
            await self._get_request_or_404(request_id)
            result = await self.session.execute(
                update(PriorityExchangeRequest)
                .where(
                    PriorityExchangeRequest.id == request_id,
                    PriorityExchangeRequest.target_response.in_(OPEN_TARGET_RESPONSES),
                    PriorityExchangeRequest.admin_response == AdminResponse.PENDING,
                )
                .values(
                    admin_response=AdminResponse.REJECTED,
                    admin_staff_id=admin_staff_id,
                    admin_responded_at=utc_now(),
                    admin_reject_reason=reason,
                    requester_notified=False,
                    target_notified=False,
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                raise StateConflictError(f"Exchange request {request_id} has already been resolved")
            await self.session.commit()

            logger.info(f"Exchange request {request_id} rejected by admin {admin_staff_id}")
            return await self._response(request_id)

        except BaseAppException as e:
            await self.session.rollback()
            logger.warning(f"Rejection of exchange request {request_id} refused: {e.detail}")
            raise
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error rejecting exchange request {request_id}: {str(e)}")
            raise

    # endregion

    # region ========== Queries ==========

    async def get_requests_for_staff(self, staff_id: str) -> ExchangeRequestsForStaff:
        """Requests sent and received by ``staff_id`` for dates from today onward"""
        today = self.today_provider()

        async def _fetch(column):
            result = await self.session.execute(
                self._request_query()
                .join(Application, PriorityExchangeRequest.requester_application_id == Application.id)
                .where(column == staff_id, Application.vacation_date >= today)
                .order_by(PriorityExchangeRequest.requested_at.desc(), PriorityExchangeRequest.id.desc())
            )
            return [ExchangeRequestResponse.model_validate(r, from_attributes=True) for r in result.scalars().all()]

        return ExchangeRequestsForStaff(
            received_requests=await _fetch(PriorityExchangeRequest.target_staff_id),
            sent_requests=await _fetch(PriorityExchangeRequest.requester_staff_id),
        )

    async def get_pending_for_admin(self) -> List[ExchangeRequestResponse]:
        result = await self.session.execute(
            self._request_query()
            .where(
                PriorityExchangeRequest.target_response == TargetResponse.ACCEPTED,
                PriorityExchangeRequest.admin_response == AdminResponse.PENDING,
            )
            .order_by(PriorityExchangeRequest.requested_at, PriorityExchangeRequest.id)
        )
        return [ExchangeRequestResponse.model_validate(r, from_attributes=True) for r in result.scalars().all()]

    async def get_same_date_candidates(self, vacation_date: date, exclude_staff_id: str) -> List[ExchangeApplicationInfo]:
        """Other staff members' applications on ``vacation_date`` that could be exchanged with"""
        result = await self.session.execute(
            select(Application)
            .where(
                Application.vacation_date == vacation_date,
                Application.staff_id != exclude_staff_id,
                Application.status.in_(EXCHANGEABLE_STATUSES),
                Application.priority.is_not(None),
            )
            .order_by(Application.priority)
            .execution_options(populate_existing=True)
        )
        return [ExchangeApplicationInfo.model_validate(a) for a in result.scalars().all()]

    async def get_exchangeable_applications(self, staff_id: str) -> List[ExchangeApplicationInfo]:
        result = await self.session.execute(
            select(Application)
            .where(
                Application.staff_id == staff_id,
                Application.status.in_(EXCHANGEABLE_STATUSES),
                Application.priority.is_not(None),
                Application.vacation_date >= self.today_provider(),
            )
            .order_by(Application.vacation_date)
            .execution_options(populate_existing=True)
        )
        return [ExchangeApplicationInfo.model_validate(a) for a in result.scalars().all()]

    async def get_logs(self, application_id: Optional[int] = None) -> List[PriorityExchangeLogResponse]:
        query = select(PriorityExchangeLog).order_by(PriorityExchangeLog.exchanged_at.desc(), PriorityExchangeLog.id.desc())
        if application_id is not None:
            query = query.where(or_(
                PriorityExchangeLog.application_id_1 == application_id,
                PriorityExchangeLog.application_id_2 == application_id,
            ))
        result = await self.session.execute(query)
        return [PriorityExchangeLogResponse.model_validate(log) for log in result.scalars().all()]

    # endregion
