from enum import Enum


class LeavePeriod(str, Enum):
    FULL_DAY = "full_day"
    AM = "am"
    PM = "pm"

class LeaveLevel(int, Enum):
    MUST_HAVE = 1
    PREFERRED = 2
    OPPORTUNISTIC = 3

class ApplicationStatus(str, Enum):
    BEFORE_LOTTERY = "before_lottery"
    AFTER_LOTTERY = "after_lottery"
    CONFIRMED = "confirmed"
    WITHDRAWN = "withdrawn"
    CANCELLED = "cancelled"
    PENDING_APPROVAL = "pending_approval"
    PENDING_CANCELLATION = "pending_cancellation"
    CANCELLED_BEFORE_LOTTERY = "cancelled_before_lottery"
    CANCELLED_AFTER_LOTTERY = "cancelled_after_lottery"

class CalendarStatus(str, Enum):
    BEFORE_LOTTERY = "before_lottery"
    AFTER_LOTTERY = "after_lottery"
    CONFIRMATION_COMPLETED = "confirmation_completed"

class CancellationStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

class TargetResponse(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"

class AdminResponse(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

class LotteryWindowPosition(str, Enum):
    BEFORE = "before"
    WITHIN = "within"
    AFTER = "after"

class ExternalTransition(str, Enum):
    """Status changes pushed in by the lottery-draw and confirmation collaborators"""
    LOTTERY_DRAWN = "lottery_drawn"
    CONFIRMED = "confirmed"
    WITHDRAWN = "withdrawn"
    UNCONFIRMED = "unconfirmed"

class NotificationKind(str, Enum):
    APPLICATION_APPROVED = "application_approved"
    APPLICATION_REJECTED = "application_rejected"
    CANCELLATION_APPROVED = "cancellation_approved"
    CANCELLATION_REJECTED = "cancellation_rejected"
    EXCHANGE_REQUESTED = "exchange_requested"
    EXCHANGE_ACCEPTED = "exchange_accepted"
    EXCHANGE_DECLINED = "exchange_declined"
    EXCHANGE_APPROVED = "exchange_approved"
    EXCHANGE_REJECTED = "exchange_rejected"


# Cancelled states drop out of the competing set for a date
CANCELLED_STATUSES = (
    ApplicationStatus.CANCELLED,
    ApplicationStatus.CANCELLED_BEFORE_LOTTERY,
    ApplicationStatus.CANCELLED_AFTER_LOTTERY,
)

# Statuses that no longer hold the staff member's slot for a date; a new application may be made
INACTIVE_STATUSES = CANCELLED_STATUSES + (ApplicationStatus.WITHDRAWN,)

# Statuses whose point cost counts against the annual budget
POINT_CONSUMING_STATUSES = (
    ApplicationStatus.BEFORE_LOTTERY,
    ApplicationStatus.AFTER_LOTTERY,
    ApplicationStatus.PENDING_APPROVAL,
    ApplicationStatus.PENDING_CANCELLATION,
    ApplicationStatus.CONFIRMED,
    ApplicationStatus.CANCELLED_AFTER_LOTTERY,
)

# Statuses an owner may cancel directly
OWNER_CANCELLABLE_STATUSES = (
    ApplicationStatus.BEFORE_LOTTERY,
    ApplicationStatus.AFTER_LOTTERY,
)

# Statuses eligible for a priority exchange, both at request time and at execution
EXCHANGEABLE_STATUSES = (ApplicationStatus.AFTER_LOTTERY,)

# Target responses under which an exchange request is still open
OPEN_TARGET_RESPONSES = (TargetResponse.PENDING, TargetResponse.ACCEPTED)
