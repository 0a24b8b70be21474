from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator

from app.utils.dates import to_datetime


class IncomeCategory(str, Enum):
    SALARY = "SALARY"
    BUSINESS = "BUSINESS"
    INVESTMENT = "INVESTMENT"
    FREELANCE = "FREELANCE"
    GIFT = "GIFT"
    OTHER = "OTHER"


class IncomeFrequency(str, Enum):
    ONE_TIME = "ONE_TIME"
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    BIWEEKLY = "BIWEEKLY"
    MONTHLY = "MONTHLY"
    QUARTERLY = "QUARTERLY"
    YEARLY = "YEARLY"


class IncomeCreate(BaseModel):
    amount: float = Field(gt=0)
    source: str = Field(min_length=1)
    category: IncomeCategory = IncomeCategory.OTHER
    frequency: IncomeFrequency = IncomeFrequency.ONE_TIME
    date: datetime = Field(default_factory=datetime.utcnow)
    is_recurring: bool = False
    description: Optional[str] = None

    @field_validator("date")
    @classmethod
    def _naive_utc(cls, value: datetime) -> datetime:
        return to_datetime(value)


class IncomeUpdate(BaseModel):
    amount: Optional[float] = Field(default=None, gt=0)
    source: Optional[str] = None
    category: Optional[IncomeCategory] = None
    frequency: Optional[IncomeFrequency] = None
    date: Optional[datetime] = None
    is_recurring: Optional[bool] = None
    description: Optional[str] = None

    @field_validator("date")
    @classmethod
    def _naive_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_datetime(value) if value is not None else None


class IncomeInDB(IncomeCreate):
    user_id: str
    income_id: str = Field(default_factory=lambda: str(uuid4()))
    created_at: datetime = Field(default_factory=datetime.utcnow)
