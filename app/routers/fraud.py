from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.core.deps import get_fraud_detector, get_profiler
from app.core.rate_limit import rate_limited_user
from app.core.responses import success
from app.models.fraud import AlertResolution, AlertStatus
from app.utils.behavior import BehaviorProfiler
from app.utils.fraud import FraudDetector

router = APIRouter()


@router.post("/analyze/{expense_id}")
def analyze_expense(
    expense_id: str,
    user_id: str = Depends(rate_limited_user),
    detector: FraudDetector = Depends(get_fraud_detector),
):
    return success(detector.analyze_expense(user_id, expense_id))


@router.post("/scan")
def scan_recent_expenses(
    days: int = Query(7, ge=1, le=365),
    user_id: str = Depends(rate_limited_user),
    detector: FraudDetector = Depends(get_fraud_detector),
):
    return success(detector.analyze_recent_expenses(user_id, days))


@router.get("/alerts")
def list_alerts(
    status_filter: Optional[AlertStatus] = Query(None, alias="status"),
    user_id: str = Depends(rate_limited_user),
    detector: FraudDetector = Depends(get_fraud_detector),
):
    return success(detector.get_alerts(user_id, status_filter.value if status_filter else None))


@router.post("/alerts/{alert_id}/resolve")
def resolve_alert(
    alert_id: str,
    body: AlertResolution,
    user_id: str = Depends(rate_limited_user),
    detector: FraudDetector = Depends(get_fraud_detector),
):
    return success(detector.resolve_alert(user_id, alert_id, body.resolution, body.is_confirmed))


@router.get("/anomalies")
def detect_anomalies(user_id: str = Depends(rate_limited_user), detector: FraudDetector = Depends(get_fraud_detector)):
    return success(detector.detect_anomalies(user_id))


@router.get("/profile")
def get_profile(user_id: str = Depends(rate_limited_user), profiler: BehaviorProfiler = Depends(get_profiler)):
    return success(profiler.get_or_build(user_id))


@router.post("/profile/rebuild")
def rebuild_profile(user_id: str = Depends(rate_limited_user), profiler: BehaviorProfiler = Depends(get_profiler)):
    return success(profiler.rebuild(user_id))
