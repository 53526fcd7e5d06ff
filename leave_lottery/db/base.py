from sqlalchemy import Column, Integer, DateTime, Enum as SQLEnum
from sqlalchemy.sql import func
from leave_lottery.models.base import Base

class BaseModel(Base):
    """Base model with common fields"""
    __abstract__ = True

    id = Column(Integer, primary_key=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


def enum_column_type(enum_cls, name: str) -> SQLEnum:
    """Store enum values (``before_lottery``) rather than member names"""
    return SQLEnum(
        enum_cls,
        name=name,
        native_enum=False,
        length=32,
        values_callable=lambda members: [m.value for m in members],
    )
