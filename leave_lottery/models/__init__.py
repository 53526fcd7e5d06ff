from leave_lottery.models.staff.staff import Staff
from leave_lottery.models.system.setting import Setting
from leave_lottery.models.system.calendar_management import CalendarManagement
from leave_lottery.models.system.holiday import Holiday
from leave_lottery.models.leave.application import Application
from leave_lottery.models.leave.cancellation_request import CancellationRequest
from leave_lottery.models.leave.priority_exchange import PriorityExchangeRequest, PriorityExchangeLog


__all__ = [
    "Staff",
    "Setting",
    "CalendarManagement",
    "Holiday",
    "Application",
    "CancellationRequest",
    "PriorityExchangeRequest",
    "PriorityExchangeLog",
]
