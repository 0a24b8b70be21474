from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator


class ReportType(str, Enum):
    MONTHLY_SUMMARY = "monthly-summary"
    EXPENSE_ANALYSIS = "expense-analysis"


class ReportFormat(str, Enum):
    JSON = "JSON"
    CSV = "CSV"
    PDF = "PDF"


class ReportRequest(BaseModel):
    type: ReportType
    format: ReportFormat = ReportFormat.JSON
    year: Optional[int] = Field(default=None, ge=1970, le=9999)
    month: Optional[int] = Field(default=None, ge=1, le=12)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    @field_validator("format", mode="before")
    @classmethod
    def _upper(cls, value):
        return value.upper() if isinstance(value, str) else value


class ReportInDB(BaseModel):
    user_id: str
    report_id: str = Field(default_factory=lambda: str(uuid4()))
    type: ReportType
    title: str
    format: ReportFormat
    start_date: datetime
    end_date: datetime
    file_url: Optional[str] = None
    file_size: int = 0
    generated_at: datetime = Field(default_factory=datetime.utcnow)
