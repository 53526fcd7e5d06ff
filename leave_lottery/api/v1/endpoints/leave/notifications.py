from fastapi import APIRouter, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from leave_lottery.api.dependencies import get_current_staff
from leave_lottery.core.database import get_async_session
from leave_lottery.models.staff.staff import Staff
from leave_lottery.schemas.leave.notification_schema import NotificationEvent
from leave_lottery.services.leave.notification_service import NotificationService

router = APIRouter()

@router.get("/", response_model=List[NotificationEvent])
async def get_notifications(
    session: AsyncSession = Depends(get_async_session),
    current_staff: Staff = Depends(get_current_staff)
):
    """Unacknowledged events for the current staff member"""
    service = NotificationService(session)
    return await service.pending_notifications_for(current_staff.staff_id)

@router.post("/{event_id}/acknowledge")
async def acknowledge_notification(
    event_id: str = Path(...),
    session: AsyncSession = Depends(get_async_session),
    current_staff: Staff = Depends(get_current_staff)
):
    service = NotificationService(session)
    await service.acknowledge(event_id, current_staff.staff_id)
    return {"message": "Notification acknowledged", "event_id": event_id}
