from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional
from uuid import uuid4

from pydantic import BaseModel, Field


class AlertType(str, Enum):
    UNUSUAL_AMOUNT = "UNUSUAL_AMOUNT"
    UNUSUAL_MERCHANT = "UNUSUAL_MERCHANT"
    UNUSUAL_LOCATION = "UNUSUAL_LOCATION"
    UNUSUAL_CATEGORY = "UNUSUAL_CATEGORY"
    DUPLICATE_TRANSACTION = "DUPLICATE_TRANSACTION"
    BEHAVIORAL_ANOMALY = "BEHAVIORAL_ANOMALY"


class Severity(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class AlertStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    FALSE_POSITIVE = "FALSE_POSITIVE"


class FraudAlertInDB(BaseModel):
    user_id: str
    alert_id: str = Field(default_factory=lambda: str(uuid4()))
    expense_id: Optional[str] = None
    alert_type: AlertType
    severity: Severity
    description: str
    risk_score: int
    detection_method: str = "behavioral_analysis"
    features: List[Dict[str, Any]] = Field(default_factory=list)
    status: AlertStatus = AlertStatus.PENDING
    resolution: Optional[str] = None
    resolved_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)


class AlertResolution(BaseModel):
    resolution: str = ""
    is_confirmed: bool
