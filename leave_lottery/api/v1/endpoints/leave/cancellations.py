from fastapi import APIRouter, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from leave_lottery.api.dependencies import require_admin
from leave_lottery.core.database import get_async_session
from leave_lottery.models.staff.staff import Staff
from leave_lottery.schemas.leave.cancellation_schema import (
    CancellationReview, CancellationRequestResponse, PendingCancellationResponse
)
from leave_lottery.services.leave.cancellation_service import CancellationService

router = APIRouter()

@router.get("/pending", response_model=List[PendingCancellationResponse])
async def get_pending_cancellations(
    session: AsyncSession = Depends(get_async_session),
    admin: Staff = Depends(require_admin)
):
    service = CancellationService(session)
    return await service.get_pending_requests()

@router.post("/{request_id}/approve", response_model=CancellationRequestResponse)
async def approve_cancellation(
    request_id: int = Path(...),
    review: Optional[CancellationReview] = None,
    session: AsyncSession = Depends(get_async_session),
    admin: Staff = Depends(require_admin)
):
    service = CancellationService(session)
    return await service.approve_cancellation(request_id, admin.staff_id, review.comment if review else None)

@router.post("/{request_id}/reject", response_model=CancellationRequestResponse)
async def reject_cancellation(
    request_id: int = Path(...),
    review: Optional[CancellationReview] = None,
    session: AsyncSession = Depends(get_async_session),
    admin: Staff = Depends(require_admin)
):
    service = CancellationService(session)
    return await service.reject_cancellation(request_id, admin.staff_id, review.comment if review else None)
