from datetime import datetime
from typing import List, Optional
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator

from app.utils.dates import to_datetime

# Categories offered by the client; the API accepts any non-empty string.
EXPENSE_CATEGORIES = [
    "Food",
    "Housing",
    "Transportation",
    "Utilities",
    "Healthcare",
    "Entertainment",
    "Shopping",
    "Education",
    "Travel",
    "Other",
]


class ExpenseCreate(BaseModel):
    amount: float = Field(gt=0)
    category: str = Field(min_length=1)
    description: Optional[str] = ""
    merchant: Optional[str] = None
    payment_method: Optional[str] = None
    location: Optional[str] = None
    date: datetime = Field(default_factory=datetime.utcnow)
    tags: List[str] = Field(default_factory=list)
    is_recurring: bool = False

    @field_validator("date")
    @classmethod
    def _naive_utc(cls, value: datetime) -> datetime:
        return to_datetime(value)


class ExpenseUpdate(BaseModel):
    amount: Optional[float] = Field(default=None, gt=0)
    category: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    merchant: Optional[str] = None
    payment_method: Optional[str] = None
    location: Optional[str] = None
    date: Optional[datetime] = None
    tags: Optional[List[str]] = None
    is_recurring: Optional[bool] = None

    @field_validator("date")
    @classmethod
    def _naive_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_datetime(value) if value is not None else None


class ExpenseInDB(ExpenseCreate):
    user_id: str
    expense_id: str = Field(default_factory=lambda: str(uuid4()))
    # Written only by the fraud scorer
    is_suspicious: bool = False
    risk_score: int = 0
    created_at: datetime = Field(default_factory=datetime.utcnow)
