from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator

from app.utils.dates import to_datetime


class GoalCategory(str, Enum):
    SAVINGS = "SAVINGS"
    INVESTMENT = "INVESTMENT"
    DEBT_PAYMENT = "DEBT_PAYMENT"
    EMERGENCY_FUND = "EMERGENCY_FUND"
    RETIREMENT = "RETIREMENT"
    PURCHASE = "PURCHASE"
    EDUCATION = "EDUCATION"
    OTHER = "OTHER"


class GoalPriority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


class GoalStatus(str, Enum):
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    PAUSED = "PAUSED"
    CANCELLED = "CANCELLED"


class GoalCreate(BaseModel):
    name: str = Field(min_length=1)
    category: GoalCategory = GoalCategory.SAVINGS
    target_amount: float = Field(gt=0)
    current_amount: float = Field(default=0, ge=0)
    deadline: Optional[datetime] = None
    priority: GoalPriority = GoalPriority.MEDIUM
    status: GoalStatus = GoalStatus.IN_PROGRESS

    @field_validator("deadline")
    @classmethod
    def _naive_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_datetime(value) if value is not None else None


class GoalUpdate(BaseModel):
    name: Optional[str] = None
    category: Optional[GoalCategory] = None
    target_amount: Optional[float] = Field(default=None, gt=0)
    current_amount: Optional[float] = Field(default=None, ge=0)
    deadline: Optional[datetime] = None
    priority: Optional[GoalPriority] = None
    status: Optional[GoalStatus] = None

    @field_validator("deadline")
    @classmethod
    def _naive_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_datetime(value) if value is not None else None


class GoalInDB(GoalCreate):
    user_id: str
    goal_id: str = Field(default_factory=lambda: str(uuid4()))
    created_at: datetime = Field(default_factory=datetime.utcnow)
