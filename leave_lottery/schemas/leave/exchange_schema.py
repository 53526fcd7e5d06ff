from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import Optional, List
from datetime import date as DateType, datetime
from leave_lottery.models.shared.enums import AdminResponse, ApplicationStatus, TargetResponse

class ExchangeRequestCreate(BaseModel):
    requester_application_id: int
    target_application_id: int
    request_reason: Optional[str] = Field(None, max_length=1000)

    @model_validator(mode="after")
    def validate_distinct_applications(self):
        if self.requester_application_id == self.target_application_id:
            raise ValueError("An application cannot be exchanged with itself")
        return self

class ExchangeTargetReply(BaseModel):
    response: TargetResponse
    reject_reason: Optional[str] = Field(None, max_length=1000)

    @model_validator(mode="after")
    def validate_response(self):
        if self.response == TargetResponse.PENDING:
            raise ValueError("Response must be 'accepted' or 'rejected'")
        return self

class ExchangeAdminReject(BaseModel):
    reject_reason: Optional[str] = Field(None, max_length=1000)

class ExchangeApplicationInfo(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    staff_id: str
    vacation_date: DateType
    level: int
    priority: Optional[int] = None
    status: ApplicationStatus

class ExchangeRequestResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    requester_application_id: int
    requester_staff_id: str
    target_application_id: int
    target_staff_id: str
    request_reason: Optional[str] = None
    requested_at: datetime
    target_response: TargetResponse
    target_responded_at: Optional[datetime] = None
    target_reject_reason: Optional[str] = None
    admin_response: AdminResponse
    admin_staff_id: Optional[str] = None
    admin_responded_at: Optional[datetime] = None
    admin_reject_reason: Optional[str] = None
    executed: bool
    executed_at: Optional[datetime] = None
    requester_notified: bool
    target_notified: bool
    requester_application: Optional[ExchangeApplicationInfo] = None
    target_application: Optional[ExchangeApplicationInfo] = None

class ExchangeRequestsForStaff(BaseModel):
    received_requests: List[ExchangeRequestResponse]
    sent_requests: List[ExchangeRequestResponse]

class PriorityExchangeLogResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    exchange_request_id: Optional[int] = None
    application_id_1: int
    application_id_2: int
    before_priority_1: int
    before_priority_2: int
    before_level_1: int
    before_level_2: int
    after_priority_1: int
    after_priority_2: int
    after_level_1: int
    after_level_2: int
    exchanged_by_staff_id: str
    exchanged_at: datetime
