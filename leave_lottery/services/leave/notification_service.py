"""
Inbox of unacknowledged events for a staff member.

Events are derived from the per-party ``*_notified`` flags: a flag cleared
by a state change surfaces as an event until the party acknowledges it.
Delivery is at-least-once; acknowledging twice is harmless.
"""
import logging
from typing import List, Optional, Tuple

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from leave_lottery.core.exceptions import NotFoundError, ValidationError
from leave_lottery.models.leave.application import Application
from leave_lottery.models.leave.cancellation_request import CancellationRequest
from leave_lottery.models.leave.priority_exchange import PriorityExchangeRequest
from leave_lottery.models.shared.enums import (
    AdminResponse, ApplicationStatus, CancellationStatus, NotificationKind, TargetResponse
)
from leave_lottery.schemas.leave.notification_schema import NotificationEvent

logger = logging.getLogger(__name__)

APPLICATION_EVENT = "application"
EXCHANGE_EVENT = "exchange"

_APPLICATION_MESSAGES = {
    NotificationKind.APPLICATION_APPROVED: "Your leave request for {date} was approved",
    NotificationKind.APPLICATION_REJECTED: "Your leave request for {date} was rejected",
    NotificationKind.CANCELLATION_APPROVED: "Your cancellation for {date} was approved",
    NotificationKind.CANCELLATION_REJECTED: "Your cancellation for {date} was rejected",
}

_EXCHANGE_MESSAGES = {
    NotificationKind.EXCHANGE_REQUESTED: "You received a priority exchange request for {date}",
    NotificationKind.EXCHANGE_ACCEPTED: "Your priority exchange request for {date} was accepted",
    NotificationKind.EXCHANGE_DECLINED: "Your priority exchange request for {date} was declined",
    NotificationKind.EXCHANGE_APPROVED: "The priority exchange for {date} was approved",
    NotificationKind.EXCHANGE_REJECTED: "The priority exchange for {date} was rejected by an administrator",
}


# Rows written before the kind was stored; only terminal statuses are unambiguous
_STATUS_EVENT_KINDS = {
    ApplicationStatus.CONFIRMED: NotificationKind.APPLICATION_APPROVED,
    ApplicationStatus.CANCELLED: NotificationKind.APPLICATION_REJECTED,
    ApplicationStatus.CANCELLED_BEFORE_LOTTERY: NotificationKind.CANCELLATION_APPROVED,
}


def application_event_kind(application: Application) -> Optional[NotificationKind]:
    """The decision recorded when ``user_notified`` was cleared; None if it cannot be told"""
    if application.notification_kind is not None:
        return NotificationKind(application.notification_kind)
    return _STATUS_EVENT_KINDS.get(ApplicationStatus(application.status))


def exchange_event_reason(request: PriorityExchangeRequest, kind: NotificationKind) -> Optional[str]:
    if kind == NotificationKind.EXCHANGE_REJECTED:
        return request.admin_reject_reason
    if kind == NotificationKind.EXCHANGE_DECLINED:
        return request.target_reject_reason
    return None


def exchange_event_kind(request: PriorityExchangeRequest, as_target: bool) -> NotificationKind:
    if request.admin_response == AdminResponse.APPROVED:
        return NotificationKind.EXCHANGE_APPROVED
    if request.admin_response == AdminResponse.REJECTED:
        return NotificationKind.EXCHANGE_REJECTED
    if as_target:
        return NotificationKind.EXCHANGE_REQUESTED
    if request.target_response == TargetResponse.REJECTED:
        return NotificationKind.EXCHANGE_DECLINED
    return NotificationKind.EXCHANGE_ACCEPTED


def parse_event_id(event_id: str) -> Tuple[str, int]:
    source, _, raw_id = event_id.partition(":")
    if source not in (APPLICATION_EVENT, EXCHANGE_EVENT) or not raw_id.isdigit():
        raise ValidationError(f"Invalid notification id: {event_id}")
    return source, int(raw_id)


class NotificationService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def pending_notifications_for(self, staff_id: str) -> List[NotificationEvent]:
        events = []

        result = await self.session.execute(
            select(Application)
            .where(Application.staff_id == staff_id, Application.user_notified.is_(False))
            .order_by(Application.updated_at, Application.id)
            .execution_options(populate_existing=True)
        )
        for application in result.scalars().all():
            kind = application_event_kind(application)
            if kind is None:
                logger.warning(f"Application {application.id} has an unacknowledged event of unknown kind")
                continue
            events.append(NotificationEvent(
                event_id=f"{APPLICATION_EVENT}:{application.id}",
                kind=kind,
                vacation_date=application.vacation_date,
                message=_APPLICATION_MESSAGES[kind].format(date=application.vacation_date),
                reason=application.reject_reason if kind == NotificationKind.APPLICATION_REJECTED else None,
                occurred_at=application.updated_at,
            ))

        result = await self.session.execute(
            select(PriorityExchangeRequest, Application.vacation_date)
            .join(Application, PriorityExchangeRequest.requester_application_id == Application.id)
            .where(
                ((PriorityExchangeRequest.requester_staff_id == staff_id) & PriorityExchangeRequest.requester_notified.is_(False))
                | ((PriorityExchangeRequest.target_staff_id == staff_id) & PriorityExchangeRequest.target_notified.is_(False))
            )
            .order_by(PriorityExchangeRequest.updated_at, PriorityExchangeRequest.id)
            .execution_options(populate_existing=True)
        )
        for request, vacation_date in result.all():
            kind = exchange_event_kind(request, as_target=request.target_staff_id == staff_id)
            events.append(NotificationEvent(
                event_id=f"{EXCHANGE_EVENT}:{request.id}",
                kind=kind,
                vacation_date=vacation_date,
                message=_EXCHANGE_MESSAGES[kind].format(date=vacation_date),
                reason=exchange_event_reason(request, kind),
                occurred_at=request.admin_responded_at or request.target_responded_at or request.requested_at,
            ))

        return events

    async def acknowledge(self, event_id: str, staff_id: str) -> None:
        """Dismiss one event; only the party it was addressed to may do so"""
        source, record_id = parse_event_id(event_id)
        try:
            if source == APPLICATION_EVENT:
                result = await self.session.execute(
                    update(Application)
                    .where(Application.id == record_id, Application.staff_id == staff_id)
                    .values(user_notified=True)
                    .execution_options(synchronize_session=False)
                )
                matched = result.rowcount
                await self.session.execute(
                    update(CancellationRequest)
                    .where(
                        CancellationRequest.application_id == record_id,
                        CancellationRequest.status != CancellationStatus.PENDING,
                    )
                    .values(user_notified=True)
                    .execution_options(synchronize_session=False)
                )
            else:
                requester = await self.session.execute(
                    update(PriorityExchangeRequest)
                    .where(PriorityExchangeRequest.id == record_id, PriorityExchangeRequest.requester_staff_id == staff_id)
                    .values(requester_notified=True)
                    .execution_options(synchronize_session=False)
                )
                target = await self.session.execute(
                    update(PriorityExchangeRequest)
                    .where(PriorityExchangeRequest.id == record_id, PriorityExchangeRequest.target_staff_id == staff_id)
                    .values(target_notified=True)
                    .execution_options(synchronize_session=False)
                )
                matched = requester.rowcount + target.rowcount

            if not matched:
                raise NotFoundError(f"Notification {event_id} not found")
            await self.session.commit()
            logger.info(f"Notification {event_id} acknowledged by staff {staff_id}")

        except NotFoundError:
            await self.session.rollback()
            raise
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error acknowledging notification {event_id}: {str(e)}")
            raise
