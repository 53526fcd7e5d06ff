from sqlalchemy import Column, Integer, Numeric
from leave_lottery.db.base import BaseModel

class Setting(BaseModel):
    """Organisation-wide tunables; a single row maintained by the admin configuration screens."""
    __tablename__ = "settings"

    lottery_period_months = Column(Integer, nullable=False, default=3)
    lottery_period_start_day = Column(Integer, nullable=False, default=1)
    lottery_period_end_day = Column(Integer, nullable=False, default=10)
    max_annual_leave_points = Column(Numeric(8, 2), nullable=False, default=20)
    level1_points = Column(Numeric(6, 2), nullable=False, default=2)
    level2_points = Column(Numeric(6, 2), nullable=False, default=1)
    level3_points = Column(Numeric(6, 2), nullable=False, default=0.1)
    current_fiscal_year = Column(Integer, nullable=False)
