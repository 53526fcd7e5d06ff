from sqlalchemy import Column, Integer, String, Boolean, Text, ForeignKey, DateTime, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from leave_lottery.db.base import BaseModel, enum_column_type
from leave_lottery.models.shared.enums import ApplicationStatus, CancellationStatus

class CancellationRequest(BaseModel):
    __tablename__ = "cancellation_requests"

    application_id = Column(Integer, ForeignKey("applications.id"), nullable=False, index=True)
    status = Column(
        enum_column_type(CancellationStatus, "cancellation_status"),
        nullable=False,
        default=CancellationStatus.PENDING,
    )
    # Status the application returns to if the request is rejected
    previous_status = Column(enum_column_type(ApplicationStatus, "application_status"), nullable=False)
    requested_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    requested_reason = Column(Text)
    reviewed_by_staff_id = Column(String(20), ForeignKey("staff.staff_id"), nullable=True)
    reviewed_at = Column(DateTime(timezone=True))
    review_comment = Column(Text)
    user_notified = Column(Boolean, nullable=False, default=True)

    # Relationships
    application = relationship("Application", back_populates="cancellation_requests")


Index(
    "uq_cancellation_requests_pending_application",
    CancellationRequest.application_id,
    unique=True,
    sqlite_where=CancellationRequest.status == CancellationStatus.PENDING,
    postgresql_where=CancellationRequest.status == CancellationStatus.PENDING,
)
