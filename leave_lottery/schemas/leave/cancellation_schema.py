from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import date as DateType, datetime
from leave_lottery.models.shared.enums import ApplicationStatus, CancellationStatus

class CancellationCreate(BaseModel):
    reason: Optional[str] = Field(None, max_length=1000)

class CancellationResult(BaseModel):
    application_id: int
    status: ApplicationStatus
    requires_approval: bool
    points_will_recover: bool
    cancellation_request_id: Optional[int] = None

class CancellationReview(BaseModel):
    comment: Optional[str] = Field(None, max_length=1000)

class CancellationRequestResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    application_id: int
    status: CancellationStatus
    previous_status: ApplicationStatus
    requested_at: datetime
    requested_reason: Optional[str] = None
    reviewed_by_staff_id: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    review_comment: Optional[str] = None
    user_notified: bool

class PendingCancellationResponse(CancellationRequestResponse):
    staff_id: str
    vacation_date: DateType
    level: int
