from sqlalchemy import Column, String, Date
from leave_lottery.db.base import BaseModel

class Holiday(BaseModel):
    __tablename__ = "holidays"

    holiday_date = Column(Date, nullable=False, unique=True, index=True)
    name = Column(String(255), nullable=False)
