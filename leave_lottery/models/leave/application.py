from sqlalchemy import Column, Integer, String, Boolean, Text, ForeignKey, Date, DateTime, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from leave_lottery.db.base import BaseModel, enum_column_type
from leave_lottery.models.shared.enums import ApplicationStatus, LeavePeriod, NotificationKind, INACTIVE_STATUSES

class Application(BaseModel):
    __tablename__ = "applications"

    staff_id = Column(String(20), ForeignKey("staff.staff_id"), nullable=False, index=True)
    vacation_date = Column(Date, nullable=False, index=True)
    period = Column(enum_column_type(LeavePeriod, "leave_period"), nullable=False, default=LeavePeriod.FULL_DAY)
    level = Column(Integer, nullable=False)
    status = Column(
        enum_column_type(ApplicationStatus, "application_status"),
        nullable=False,
        default=ApplicationStatus.BEFORE_LOTTERY,
        index=True,
    )
    priority = Column(Integer, nullable=True)
    is_within_lottery_period = Column(Boolean, nullable=False, default=False)
    applied_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    remarks = Column(Text)
    reject_reason = Column(Text)
    user_notified = Column(Boolean, nullable=False, default=True)
    # Event the owner has not acknowledged yet; set together with user_notified=False
    notification_kind = Column(enum_column_type(NotificationKind, "notification_kind"), nullable=True)

    # Relationships
    staff = relationship("Staff", back_populates="applications")
    cancellation_requests = relationship(
        "CancellationRequest",
        back_populates="application",
        order_by="CancellationRequest.id",
    )

    def __repr__(self):
        return f"<Application {self.id} {self.staff_id} {self.vacation_date} {self.status}>"


# One live application per staff member and date
Index(
    "uq_applications_live_staff_date",
    Application.staff_id,
    Application.vacation_date,
    unique=True,
    sqlite_where=Application.status.notin_(INACTIVE_STATUSES),
    postgresql_where=Application.status.notin_(INACTIVE_STATUSES),
)
