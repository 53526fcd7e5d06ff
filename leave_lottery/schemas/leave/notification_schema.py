from pydantic import BaseModel
from typing import Optional
from datetime import date as DateType, datetime
from leave_lottery.models.shared.enums import NotificationKind

class NotificationEvent(BaseModel):
    event_id: str
    kind: NotificationKind
    vacation_date: Optional[DateType] = None
    message: str
    reason: Optional[str] = None
    occurred_at: Optional[datetime] = None
