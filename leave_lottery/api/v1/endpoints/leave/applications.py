from fastapi import APIRouter, Depends, Query, Path, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from leave_lottery.api.dependencies import get_current_staff, require_admin
from leave_lottery.core.database import get_async_session
from leave_lottery.core.exceptions import PermissionDeniedError
from leave_lottery.models.staff.staff import Staff
from leave_lottery.schemas.leave.application_schema import (
    ApplicationCreate, ApplicationResponse, ApplicationListResponse,
    PendingApprovalResponse, ApplicationRejectRequest, ExternalTransitionRequest
)
from leave_lottery.schemas.leave.cancellation_schema import CancellationCreate, CancellationResult
from leave_lottery.services.leave.application_service import ApplicationService
from leave_lottery.services.leave.cancellation_service import CancellationService

router = APIRouter()

@router.post("/", response_model=ApplicationResponse, status_code=status.HTTP_201_CREATED)
async def create_application(
    application: ApplicationCreate,
    session: AsyncSession = Depends(get_async_session),
    current_staff: Staff = Depends(get_current_staff)
):
    """Submit a leave application for the current staff member"""
    service = ApplicationService(session)
    return await service.create_application(current_staff.staff_id, application)

@router.get("/", response_model=ApplicationListResponse)
async def get_my_applications(
    fiscal_year: Optional[int] = Query(None, ge=2000),
    session: AsyncSession = Depends(get_async_session),
    current_staff: Staff = Depends(get_current_staff)
):
    service = ApplicationService(session)
    return await service.get_staff_applications(current_staff.staff_id, fiscal_year)

@router.get("/pending-approval", response_model=List[PendingApprovalResponse])
async def get_pending_approvals(
    session: AsyncSession = Depends(get_async_session),
    admin: Staff = Depends(require_admin)
):
    """Level 3 applications waiting for an administrator"""
    service = ApplicationService(session)
    return await service.get_pending_approvals()

@router.get("/{application_id}", response_model=ApplicationResponse)
async def get_application(
    application_id: int = Path(...),
    session: AsyncSession = Depends(get_async_session),
    current_staff: Staff = Depends(get_current_staff)
):
    service = ApplicationService(session)
    application = await service.get_application(application_id)
    if application.staff_id != current_staff.staff_id and not current_staff.is_admin:
        raise PermissionDeniedError("You can only view your own applications")
    return application

@router.post("/{application_id}/cancel", response_model=CancellationResult)
async def cancel_application(
    application_id: int = Path(...),
    cancellation: Optional[CancellationCreate] = None,
    session: AsyncSession = Depends(get_async_session),
    current_staff: Staff = Depends(get_current_staff)
):
    """
    Cancel one of your applications.

    Depending on its status and the lottery period this either cancels
    immediately or files a request for an administrator.
    """
    service = CancellationService(session)
    reason = cancellation.reason if cancellation else None
    return await service.request_cancellation(application_id, current_staff.staff_id, reason)

@router.post("/{application_id}/approve", response_model=ApplicationResponse)
async def approve_application(
    application_id: int = Path(...),
    session: AsyncSession = Depends(get_async_session),
    admin: Staff = Depends(require_admin)
):
    service = ApplicationService(session)
    return await service.approve_pending(application_id, admin.staff_id)

@router.post("/{application_id}/reject", response_model=ApplicationResponse)
async def reject_application(
    application_id: int = Path(...),
    rejection: Optional[ApplicationRejectRequest] = None,
    session: AsyncSession = Depends(get_async_session),
    admin: Staff = Depends(require_admin)
):
    service = ApplicationService(session)
    reason = rejection.reason if rejection else None
    return await service.reject_pending(application_id, admin.staff_id, reason)

@router.post("/{application_id}/transitions", response_model=ApplicationResponse)
async def apply_transition(
    transition: ExternalTransitionRequest,
    application_id: int = Path(...),
    session: AsyncSession = Depends(get_async_session),
    admin: Staff = Depends(require_admin)
):
    """Record a lottery-draw or confirmation result for an application"""
    service = ApplicationService(session)
    return await service.apply_external_transition(application_id, transition.transition, admin.staff_id)
