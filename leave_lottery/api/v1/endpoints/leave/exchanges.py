from datetime import date
from fastapi import APIRouter, Depends, Query, Path, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from leave_lottery.api.dependencies import get_current_staff, require_admin
from leave_lottery.core.database import get_async_session
from leave_lottery.models.staff.staff import Staff
from leave_lottery.schemas.leave.exchange_schema import (
    ExchangeRequestCreate, ExchangeTargetReply, ExchangeAdminReject,
    ExchangeRequestResponse, ExchangeRequestsForStaff, ExchangeApplicationInfo,
    PriorityExchangeLogResponse
)
from leave_lottery.services.leave.exchange_service import ExchangeService

router = APIRouter()

@router.post("/", response_model=ExchangeRequestResponse, status_code=status.HTTP_201_CREATED)
async def create_exchange_request(
    exchange: ExchangeRequestCreate,
    session: AsyncSession = Depends(get_async_session),
    current_staff: Staff = Depends(get_current_staff)
):
    """Propose swapping priority with another staff member's application for the same date"""
    service = ExchangeService(session)
    return await service.create_request(current_staff.staff_id, exchange)

@router.get("/", response_model=ExchangeRequestsForStaff)
async def get_my_exchange_requests(
    session: AsyncSession = Depends(get_async_session),
    current_staff: Staff = Depends(get_current_staff)
):
    service = ExchangeService(session)
    return await service.get_requests_for_staff(current_staff.staff_id)

@router.get("/pending", response_model=List[ExchangeRequestResponse])
async def get_pending_exchange_requests(
    session: AsyncSession = Depends(get_async_session),
    admin: Staff = Depends(require_admin)
):
    """Requests accepted by their target and waiting for an administrator"""
    service = ExchangeService(session)
    return await service.get_pending_for_admin()

@router.get("/exchangeable-applications", response_model=List[ExchangeApplicationInfo])
async def get_exchangeable_applications(
    session: AsyncSession = Depends(get_async_session),
    current_staff: Staff = Depends(get_current_staff)
):
    service = ExchangeService(session)
    return await service.get_exchangeable_applications(current_staff.staff_id)

@router.get("/candidates", response_model=List[ExchangeApplicationInfo])
async def get_exchange_candidates(
    vacation_date: date = Query(...),
    session: AsyncSession = Depends(get_async_session),
    current_staff: Staff = Depends(get_current_staff)
):
    service = ExchangeService(session)
    return await service.get_same_date_candidates(vacation_date, current_staff.staff_id)

@router.get("/logs", response_model=List[PriorityExchangeLogResponse])
async def get_exchange_logs(
    application_id: Optional[int] = Query(None),
    session: AsyncSession = Depends(get_async_session),
    admin: Staff = Depends(require_admin)
):
    service = ExchangeService(session)
    return await service.get_logs(application_id)

@router.post("/{request_id}/respond", response_model=ExchangeRequestResponse)
async def respond_to_exchange_request(
    reply: ExchangeTargetReply,
    request_id: int = Path(...),
    session: AsyncSession = Depends(get_async_session),
    current_staff: Staff = Depends(get_current_staff)
):
    service = ExchangeService(session)
    return await service.respond_as_target(request_id, current_staff.staff_id, reply)

@router.post("/{request_id}/approve", response_model=ExchangeRequestResponse)
async def approve_exchange_request(
    request_id: int = Path(...),
    session: AsyncSession = Depends(get_async_session),
    admin: Staff = Depends(require_admin)
):
    service = ExchangeService(session)
    return await service.approve(request_id, admin.staff_id)

@router.post("/{request_id}/reject", response_model=ExchangeRequestResponse)
async def reject_exchange_request(
    request_id: int = Path(...),
    rejection: Optional[ExchangeAdminReject] = None,
    session: AsyncSession = Depends(get_async_session),
    admin: Staff = Depends(require_admin)
):
    service = ExchangeService(session)
    return await service.reject(request_id, admin.staff_id, rejection.reject_reason if rejection else None)
