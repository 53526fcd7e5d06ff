from sqlalchemy import Column, String, Boolean, Integer
from sqlalchemy.orm import relationship
from leave_lottery.db.base import BaseModel

class Staff(BaseModel):
    __tablename__ = "staff"

    staff_id = Column(String(20), unique=True, index=True, nullable=False)
    name = Column(String(255), nullable=False)
    is_admin = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    display_order = Column(Integer, default=0)

    # Relationships
    applications = relationship("Application", back_populates="staff")

    def __repr__(self):
        return f"<Staff {self.staff_id}>"
