import logging
from datetime import date, datetime
from typing import Callable, List, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from leave_lottery.core.config import settings as app_settings
from leave_lottery.core.exceptions import (
    BaseAppException, InsufficientPointsError, NotFoundError, StateConflictError, ValidationError
)
from leave_lottery.models.leave.application import Application
from leave_lottery.models.shared.enums import (
    ApplicationStatus, CalendarStatus, ExternalTransition, LotteryWindowPosition, NotificationKind, INACTIVE_STATUSES
)
from leave_lottery.schemas.leave.application_schema import (
    ApplicationCreate, ApplicationListResponse, ApplicationResponse, PendingApprovalResponse
)
from leave_lottery.services.leave import lottery_period
from leave_lottery.services.leave.date_rules import validate_application_date
from leave_lottery.services.leave.locks import lock_staff, lock_vacation_date
from leave_lottery.services.leave.points_ledger import PointsLedgerService
from leave_lottery.services.leave.priority_service import (
    PriorityStrategy, SequentialPriorityStrategy, recalculate_priorities
)
from leave_lottery.services.leave.state_machine import EXTERNAL_TRANSITIONS, ensure_transition
from leave_lottery.services.system.capacity_service import CapacityService
from leave_lottery.services.system.settings_service import SettingsService
from leave_lottery.utils.date_utils import local_now

logger = logging.getLogger(__name__)


async def get_application_or_404(session: AsyncSession, application_id: int) -> Application:
    """Fresh read of an application, bypassing anything cached in the session"""
    result = await session.execute(
        select(Application)
        .where(Application.id == application_id)
        .execution_options(populate_existing=True)
    )
    application = result.scalar_one_or_none()
    if not application:
        raise NotFoundError(f"Application with ID {application_id} not found")
    return application


async def transition_application(
    session: AsyncSession,
    application_id: int,
    expected: ApplicationStatus,
    target: ApplicationStatus,
    *conditions,
    **values,
) -> None:
    """
    Move one application from ``expected`` to ``target`` with a conditional UPDATE.

    The row only changes if it still has the expected status (and satisfies any
    extra ``conditions``); otherwise a StateConflictError is raised and nothing
    is written.  Does not commit.
    """
    ensure_transition(expected, target)
    result = await session.execute(
        update(Application)
        .where(Application.id == application_id, Application.status == expected, *conditions)
        .values(status=target, **values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise StateConflictError()


class ApplicationService:
    def __init__(
        self,
        session: AsyncSession,
        priority_strategy: Optional[PriorityStrategy] = None,
        now_provider: Optional[Callable[[], datetime]] = None,
    ):
        self.session = session
        self.priority_strategy = priority_strategy or SequentialPriorityStrategy()
        self.now_provider = now_provider or local_now
        self.settings_service = SettingsService(session)
        self.capacity_service = CapacityService(session)
        self.points_service = PointsLedgerService(session)

    # region ========== Submission ==========

    async def _has_live_application(self, staff_id: str, vacation_date: date) -> bool:
        result = await self.session.execute(
            select(Application.id).where(
                Application.staff_id == staff_id,
                Application.vacation_date == vacation_date,
                Application.status.notin_(INACTIVE_STATUSES),
            )
        )
        return result.first() is not None

    async def _initial_status_for_level3(self, vacation_date: date, within: bool) -> ApplicationStatus:
        calendar = await self.capacity_service.get_calendar(vacation_date)
        if calendar and calendar.status == CalendarStatus.CONFIRMATION_COMPLETED:
            if calendar.max_people is None:
                raise ValidationError("No capacity is configured for this date")
            confirmed = await self.capacity_service.confirmed_count(vacation_date)
            if confirmed >= calendar.max_people:
                raise ValidationError("Capacity for this date is already full")
            return ApplicationStatus.PENDING_APPROVAL

        return ApplicationStatus.BEFORE_LOTTERY if within else ApplicationStatus.AFTER_LOTTERY

    async def create_application(self, staff_id: str, data: ApplicationCreate) -> ApplicationResponse:
        """
        Validate and submit a leave application for ``staff_id``.

        The staff member and the date are locked first, so the points budget and
        the next rank are read with every earlier submission already counted.
        """
        try:
            await lock_staff(self.session, staff_id)
            await lock_vacation_date(self.session, data.vacation_date)

            settings = await self.settings_service.get_snapshot()
            now = self.now_provider()

            await validate_application_date(self.session, data.vacation_date, data.period, now.date())

            if await self._has_live_application(staff_id, data.vacation_date):
                raise ValidationError(f"An application already exists for {data.vacation_date}")

            position = lottery_period.classify(data.vacation_date, settings, now)
            within = position == LotteryWindowPosition.WITHIN

            if data.level in (1, 2) and not within:
                raise ValidationError("Level 1 and 2 applications can only be submitted during the lottery period")
            if data.level == 3 and position == LotteryWindowPosition.BEFORE:
                raise ValidationError("Level 3 applications open once the lottery period has started")

            availability = await self.points_service.available(
                staff_id, data.level, settings, period=data.period
            )
            if not availability.can_apply:
                raise InsufficientPointsError(
                    f"Insufficient points: {availability.remaining} remaining, "
                    f"{availability.requested_cost} required"
                )

            if data.level == 3:
                status = await self._initial_status_for_level3(data.vacation_date, within)
            else:
                status = ApplicationStatus.BEFORE_LOTTERY

            priority = await self.priority_strategy.assign_initial_priority(self.session, data.vacation_date)

            application = Application(
                staff_id=staff_id,
                vacation_date=data.vacation_date,
                period=data.period,
                level=data.level,
                status=status,
                priority=priority,
                is_within_lottery_period=within,
                remarks=data.remarks,
                user_notified=True,
            )
            self.session.add(application)
            await self.session.commit()
            await self.session.refresh(application)

            logger.info(
                f"Application {application.id} created for staff {staff_id} on {data.vacation_date} "
                f"(level={data.level}, status={status.value}, priority={priority})"
            )
            return ApplicationResponse.model_validate(application, from_attributes=True)

        except IntegrityError:
            await self.session.rollback()
            logger.warning(f"Duplicate application rejected for staff {staff_id} on {data.vacation_date}")
            raise ValidationError(f"An application already exists for {data.vacation_date}")
        except BaseAppException as e:
            await self.session.rollback()
            logger.warning(f"Application rejected for staff {staff_id} on {data.vacation_date}: {e.detail}")
            raise
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error creating application: {str(e)}")
            raise

    # endregion

    # region ========== Queries ==========

    async def get_application(self, application_id: int) -> ApplicationResponse:
        application = await get_application_or_404(self.session, application_id)
        return ApplicationResponse.model_validate(application, from_attributes=True)

    async def get_staff_applications(self, staff_id: str, fiscal_year: Optional[int] = None) -> ApplicationListResponse:
        """All applications of a staff member in a fiscal year, newest date first"""
        if fiscal_year is None:
            fiscal_year = (await self.settings_service.get_snapshot()).current_fiscal_year
        first, last = lottery_period.fiscal_year_bounds(fiscal_year, app_settings.FISCAL_YEAR_START_MONTH)

        result = await self.session.execute(
            select(Application)
            .where(
                Application.staff_id == staff_id,
                Application.vacation_date >= first,
                Application.vacation_date <= last,
            )
            .order_by(Application.vacation_date.desc(), Application.id.desc())
            .execution_options(populate_existing=True)
        )
        applications = result.scalars().all()
        return ApplicationListResponse(
            staff_id=staff_id,
            fiscal_year=fiscal_year,
            applications=[ApplicationResponse.model_validate(a, from_attributes=True) for a in applications],
            total_applications=len(applications),
        )

    async def get_pending_approvals(self) -> List[PendingApprovalResponse]:
        """Level 3 applications waiting for an administrator, with the date's capacity"""
        result = await self.session.execute(
            select(Application)
            .options(selectinload(Application.staff))
            .where(Application.status == ApplicationStatus.PENDING_APPROVAL)
            .order_by(Application.vacation_date, Application.applied_at)
            .execution_options(populate_existing=True)
        )
        pending = []
        for application in result.scalars().all():
            calendar = await self.capacity_service.get_calendar(application.vacation_date)
            response = PendingApprovalResponse.model_validate(application, from_attributes=True)
            pending.append(response.model_copy(update={
                "staff_name": application.staff.name if application.staff else None,
                "max_people": calendar.max_people if calendar else None,
                "confirmed_count": await self.capacity_service.confirmed_count(application.vacation_date),
            }))
        return pending

    # endregion

    # region ========== Administrator decisions ==========

    async def approve_pending(self, application_id: int, admin_staff_id: str) -> ApplicationResponse:
        """
        Confirm a pending level 3 application if the date still has room.

        The capacity check is part of the UPDATE itself, so two approvals racing
        for the last slot cannot both succeed.
        """
        try:
            application = await get_application_or_404(self.session, application_id)
            if application.status != ApplicationStatus.PENDING_APPROVAL:
                raise StateConflictError(
                    f"Application {application_id} is {application.status.value}, not pending approval"
                )

            calendar = await self.capacity_service.get_calendar(application.vacation_date, for_update=True)
            if not calendar or calendar.max_people is None:
                raise ValidationError("No capacity is configured for this date")

            try:
                await transition_application(
                    self.session,
                    application_id,
                    ApplicationStatus.PENDING_APPROVAL,
                    ApplicationStatus.CONFIRMED,
                    CapacityService.confirmed_count_subquery(application.vacation_date) < calendar.max_people,
                    user_notified=False,
                    notification_kind=NotificationKind.APPLICATION_APPROVED,
                )
            except StateConflictError:
                await self.session.rollback()
                current = await get_application_or_404(self.session, application_id)
                if current.status == ApplicationStatus.PENDING_APPROVAL:
                    raise StateConflictError("Capacity for this date has been filled since the application was made")
                raise

            await self.session.commit()
            application = await get_application_or_404(self.session, application_id)

            logger.info(f"Application {application_id} approved by admin {admin_staff_id}")
            return ApplicationResponse.model_validate(application, from_attributes=True)

        except BaseAppException as e:
            await self.session.rollback()
            logger.warning(f"Approval of application {application_id} refused: {e.detail}")
            raise
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error approving application {application_id}: {str(e)}")
            raise

    async def reject_pending(self, application_id: int, admin_staff_id: str, reason: Optional[str] = None) -> ApplicationResponse:
        """Reject a pending level 3 application; it leaves the queue and its points are restored"""
        try:
            application = await get_application_or_404(self.session, application_id)
            vacation_date = application.vacation_date

            await transition_application(
                self.session,
                application_id,
                ApplicationStatus.PENDING_APPROVAL,
                ApplicationStatus.CANCELLED,
                priority=None,
                user_notified=False,
                notification_kind=NotificationKind.APPLICATION_REJECTED,
                reject_reason=reason,
            )
            await recalculate_priorities(self.session, vacation_date)
            await self.session.commit()

            application = await get_application_or_404(self.session, application_id)
            logger.info(
                f"Application {application_id} rejected by admin {admin_staff_id}"
                + (f": {reason}" if reason else "")
            )
            return ApplicationResponse.model_validate(application, from_attributes=True)

        except BaseAppException as e:
            await self.session.rollback()
            logger.warning(f"Rejection of application {application_id} refused: {e.detail}")
            raise
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error rejecting application {application_id}: {str(e)}")
            raise

    async def apply_external_transition(
        self, application_id: int, transition: ExternalTransition, actor_staff_id: str
    ) -> ApplicationResponse:
        """Record a status change made by the lottery draw or the confirmation batch"""
        source, target = EXTERNAL_TRANSITIONS[ExternalTransition(transition)]
        try:
            await get_application_or_404(self.session, application_id)
            await transition_application(self.session, application_id, source, target)
            await self.session.commit()

            application = await get_application_or_404(self.session, application_id)
            logger.info(
                f"Application {application_id} moved {source.value} -> {target.value} "
                f"({transition.value}) by {actor_staff_id}"
            )
            return ApplicationResponse.model_validate(application, from_attributes=True)

        except BaseAppException as e:
            await self.session.rollback()
            logger.warning(f"Transition {transition.value} of application {application_id} refused: {e.detail}")
            raise
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error applying transition to application {application_id}: {str(e)}")
            raise

    # endregion
