from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional, List
from datetime import date as DateType, datetime
from leave_lottery.models.shared.enums import ApplicationStatus, ExternalTransition, LeavePeriod

class ApplicationCreate(BaseModel):
    vacation_date: DateType
    period: LeavePeriod = LeavePeriod.FULL_DAY
    level: int = Field(..., ge=1, le=3)
    remarks: Optional[str] = Field(None, max_length=1000)

    @field_validator("remarks")
    @classmethod
    def strip_remarks(cls, v):
        if v is None:
            return v
        v = v.strip()
        return v or None

class ApplicationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    staff_id: str
    vacation_date: DateType
    period: LeavePeriod
    level: int
    status: ApplicationStatus
    priority: Optional[int] = None
    is_within_lottery_period: bool
    applied_at: datetime
    remarks: Optional[str] = None
    reject_reason: Optional[str] = None
    user_notified: bool

class ApplicationListResponse(BaseModel):
    staff_id: str
    fiscal_year: int
    applications: List[ApplicationResponse]
    total_applications: int

class PendingApprovalResponse(ApplicationResponse):
    staff_name: Optional[str] = None
    max_people: Optional[int] = None
    confirmed_count: int = 0

class ApplicationRejectRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=1000)

class ExternalTransitionRequest(BaseModel):
    transition: ExternalTransition
