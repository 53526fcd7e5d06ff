from decimal import Decimal
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class LeaveSettings(BaseModel):
    """Immutable snapshot of the organisation settings row, taken once per operation"""
    model_config = ConfigDict(frozen=True, from_attributes=True)

    lottery_period_months: int = Field(ge=0)
    lottery_period_start_day: int = Field(ge=1, le=31)
    lottery_period_end_day: int = Field(ge=1, le=31)
    max_annual_leave_points: Decimal
    level1_points: Decimal
    level2_points: Decimal
    level3_points: Decimal
    current_fiscal_year: int

    @field_validator("max_annual_leave_points", "level1_points", "level2_points", "level3_points")
    @classmethod
    def validate_points(cls, v):
        if v < 0:
            raise ValueError("Points must not be negative")
        return v

    @model_validator(mode="after")
    def validate_window(self):
        if self.lottery_period_start_day > self.lottery_period_end_day:
            raise ValueError("Lottery period start day must not be after its end day")
        return self

    def cost_of(self, level: int) -> Decimal:
        costs = {1: self.level1_points, 2: self.level2_points, 3: self.level3_points}
        if level not in costs:
            raise ValueError(f"Unknown level {level}")
        return costs[level]


class SettingResponse(LeaveSettings):
    id: int
