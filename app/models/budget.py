from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator, model_validator

from app.utils.dates import to_datetime


class BudgetPeriod(str, Enum):
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    QUARTERLY = "QUARTERLY"
    YEARLY = "YEARLY"


class BudgetCreate(BaseModel):
    category: str = Field(min_length=1)
    limit: float = Field(gt=0)
    period: BudgetPeriod = BudgetPeriod.MONTHLY
    start_date: datetime
    end_date: datetime
    spent: float = Field(default=0, ge=0)
    alert_threshold: int = Field(default=80, ge=0, le=100)

    @field_validator("start_date", "end_date")
    @classmethod
    def _naive_utc(cls, value: datetime) -> datetime:
        return to_datetime(value)

    @model_validator(mode="after")
    def _check_dates(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class BudgetUpdate(BaseModel):
    category: Optional[str] = None
    limit: Optional[float] = Field(default=None, gt=0)
    period: Optional[BudgetPeriod] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    spent: Optional[float] = Field(default=None, ge=0)
    alert_threshold: Optional[int] = Field(default=None, ge=0, le=100)

    @field_validator("start_date", "end_date")
    @classmethod
    def _naive_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_datetime(value) if value is not None else None


class BudgetInDB(BudgetCreate):
    user_id: str
    budget_id: str = Field(default_factory=lambda: str(uuid4()))
    is_ai_generated: bool = False
    ai_confidence: Optional[float] = Field(default=None, ge=0, le=1)
    created_at: datetime = Field(default_factory=datetime.utcnow)
