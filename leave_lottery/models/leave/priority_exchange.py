from sqlalchemy import Column, Integer, String, Boolean, Text, ForeignKey, DateTime, CheckConstraint, Index, and_
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from leave_lottery.db.base import BaseModel, enum_column_type
from leave_lottery.models.shared.enums import TargetResponse, AdminResponse, OPEN_TARGET_RESPONSES

class PriorityExchangeRequest(BaseModel):
    __tablename__ = "priority_exchange_requests"
    __table_args__ = (
        CheckConstraint("requester_staff_id <> target_staff_id", name="ck_exchange_distinct_staff"),
    )

    requester_application_id = Column(Integer, ForeignKey("applications.id"), nullable=False, index=True)
    requester_staff_id = Column(String(20), ForeignKey("staff.staff_id"), nullable=False, index=True)
    target_application_id = Column(Integer, ForeignKey("applications.id"), nullable=False, index=True)
    target_staff_id = Column(String(20), ForeignKey("staff.staff_id"), nullable=False, index=True)
    # Smaller and larger of the two application ids, so (a, b) and (b, a) share one key
    pair_low_application_id = Column(Integer, nullable=False)
    pair_high_application_id = Column(Integer, nullable=False)
    request_reason = Column(Text)
    requested_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    target_response = Column(
        enum_column_type(TargetResponse, "exchange_target_response"),
        nullable=False,
        default=TargetResponse.PENDING,
    )
    target_responded_at = Column(DateTime(timezone=True))
    target_reject_reason = Column(Text)

    admin_response = Column(
        enum_column_type(AdminResponse, "exchange_admin_response"),
        nullable=False,
        default=AdminResponse.PENDING,
    )
    admin_staff_id = Column(String(20), ForeignKey("staff.staff_id"), nullable=True)
    admin_responded_at = Column(DateTime(timezone=True))
    admin_reject_reason = Column(Text)

    executed = Column(Boolean, nullable=False, default=False)
    executed_at = Column(DateTime(timezone=True))

    requester_notified = Column(Boolean, nullable=False, default=True)
    target_notified = Column(Boolean, nullable=False, default=False)

    # Relationships
    requester_application = relationship("Application", foreign_keys=[requester_application_id])
    target_application = relationship("Application", foreign_keys=[target_application_id])

    @property
    def is_open(self) -> bool:
        return (
            self.target_response in OPEN_TARGET_RESPONSES
            and self.admin_response == AdminResponse.PENDING
        )


_OPEN_REQUEST = and_(
    PriorityExchangeRequest.target_response.in_(OPEN_TARGET_RESPONSES),
    PriorityExchangeRequest.admin_response == AdminResponse.PENDING,
)

# One open request per unordered pair of applications
Index(
    "uq_priority_exchange_requests_open_pair",
    PriorityExchangeRequest.pair_low_application_id,
    PriorityExchangeRequest.pair_high_application_id,
    unique=True,
    sqlite_where=_OPEN_REQUEST,
    postgresql_where=_OPEN_REQUEST,
)


class PriorityExchangeLog(BaseModel):
    """Write-once audit row for an executed swap"""
    __tablename__ = "priority_exchange_logs"

    exchange_request_id = Column(Integer, ForeignKey("priority_exchange_requests.id"), nullable=True, index=True)
    application_id_1 = Column(Integer, ForeignKey("applications.id"), nullable=False)
    application_id_2 = Column(Integer, ForeignKey("applications.id"), nullable=False)
    before_priority_1 = Column(Integer, nullable=False)
    before_priority_2 = Column(Integer, nullable=False)
    before_level_1 = Column(Integer, nullable=False)
    before_level_2 = Column(Integer, nullable=False)
    after_priority_1 = Column(Integer, nullable=False)
    after_priority_2 = Column(Integer, nullable=False)
    after_level_1 = Column(Integer, nullable=False)
    after_level_2 = Column(Integer, nullable=False)
    exchanged_by_staff_id = Column(String(20), ForeignKey("staff.staff_id"), nullable=False)
    exchanged_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<PriorityExchangeLog {self.application_id_1}<->{self.application_id_2}>"
