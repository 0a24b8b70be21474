"""
Heuristic fraud scoring.

Each expense is compared against the owner's behavioral profile and recent
history. Five independent risk factors add fixed points; the sum decides
whether the expense is flagged and how severe the alert is.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from app.core.errors import NotFoundError
from app.db import dynamo
from app.models.fraud import AlertStatus, AlertType, FraudAlertInDB, Severity
from app.utils.behavior import BehaviorProfiler
from app.utils.stats import detect_outliers, mean, std_dev

logger = logging.getLogger(__name__)

SUSPICIOUS_THRESHOLD = 30
AMOUNT_DEVIATION_MULTIPLIER = 2
DUPLICATE_WINDOW = timedelta(hours=24)
ANOMALY_WINDOW_DAYS = 180
ANOMALY_MIN_EXPENSES = 10
ANOMALY_Z_THRESHOLD = 2

RISK_POINTS = {
    AlertType.UNUSUAL_AMOUNT: 30,
    AlertType.UNUSUAL_MERCHANT: 20,
    AlertType.UNUSUAL_LOCATION: 20,
    AlertType.UNUSUAL_CATEGORY: 10,
    AlertType.DUPLICATE_TRANSACTION: 35,
}

RISK_SEVERITY = {
    AlertType.UNUSUAL_AMOUNT: Severity.HIGH,
    AlertType.UNUSUAL_MERCHANT: Severity.MEDIUM,
    AlertType.UNUSUAL_LOCATION: Severity.MEDIUM,
    AlertType.UNUSUAL_CATEGORY: Severity.LOW,
    AlertType.DUPLICATE_TRANSACTION: Severity.HIGH,
}


def severity_for(risk_score: int) -> Severity:
    if risk_score >= 60:
        return Severity.CRITICAL
    if risk_score >= 40:
        return Severity.HIGH
    if risk_score >= 20:
        return Severity.MEDIUM
    return Severity.LOW


def _factor(alert_type: AlertType, description: str) -> Dict[str, Any]:
    return {
        "type": alert_type.value,
        "severity": RISK_SEVERITY[alert_type].value,
        "points": RISK_POINTS[alert_type],
        "description": description,
    }


def find_duplicate(expense: Dict[str, Any], recent_expenses: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Another expense with the same amount and merchant (absent merchants match each other)."""
    amount = float(expense.get("amount", 0))
    merchant = expense.get("merchant")
    for other in recent_expenses:
        if other.get("expense_id") == expense.get("expense_id"):
            continue
        if float(other.get("amount", 0)) == amount and other.get("merchant") == merchant:
            return other
    return None


def score_expense(
    expense: Dict[str, Any],
    profile: Dict[str, Any],
    duplicate: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Evaluate the risk factors for one expense. Profile fields that are unset
    (cold start) skip the factors that depend on them.
    """
    risk_factors: List[Dict[str, Any]] = []
    amount = float(expense.get("amount", 0))

    avg_amount = profile.get("avg_transaction_amount")
    if avg_amount:
        if abs(amount - avg_amount) > avg_amount * AMOUNT_DEVIATION_MULTIPLIER:
            risk_factors.append(_factor(
                AlertType.UNUSUAL_AMOUNT,
                f"Amount ₹{amount:.2f} is significantly higher than your average of ₹{avg_amount:.2f}",
            ))

    merchant = expense.get("merchant")
    common_merchants = profile.get("common_merchants")
    if merchant and common_merchants is not None and merchant not in common_merchants:
        risk_factors.append(_factor(
            AlertType.UNUSUAL_MERCHANT,
            f"Transaction at unfamiliar merchant: {merchant}",
        ))

    location = expense.get("location")
    common_locations = profile.get("common_locations")
    if location and common_locations is not None and location not in common_locations:
        risk_factors.append(_factor(
            AlertType.UNUSUAL_LOCATION,
            f"Transaction from unusual location: {location}",
        ))

    common_categories = profile.get("common_categories")
    if common_categories is not None and expense.get("category") not in common_categories:
        risk_factors.append(_factor(
            AlertType.UNUSUAL_CATEGORY,
            f"Unusual spending category: {expense.get('category')}",
        ))

    if duplicate is not None:
        risk_factors.append(_factor(
            AlertType.DUPLICATE_TRANSACTION,
            "Potential duplicate transaction detected",
        ))

    risk_score = sum(factor["points"] for factor in risk_factors)
    return {
        "is_suspicious": risk_score >= SUSPICIOUS_THRESHOLD,
        "risk_score": risk_score,
        "severity": severity_for(risk_score).value,
        "risk_factors": risk_factors,
    }


class FraudDetector:
    """
    Scores expenses, persists the verdict on the expense and raises alerts.
    """

    def __init__(self, store=dynamo, profiler: Optional[BehaviorProfiler] = None) -> None:
        self.store = store
        self.profiler = profiler or BehaviorProfiler(store)

    def analyze_expense(self, user_id: str, expense_id: str, now: Optional[datetime] = None) -> Dict[str, Any]:
        now = now or datetime.utcnow()
        expense = self.store.get_expense(user_id, expense_id)
        if not expense:
            raise NotFoundError("Expense", expense_id)

        profile = self.profiler.get_or_build(user_id, now)
        recent = self.store.get_expenses(user_id, start=now - DUPLICATE_WINDOW)
        result = score_expense(expense, profile, find_duplicate(expense, recent))

        updated = self.store.update_expense(user_id, expense_id, {
            "is_suspicious": result["is_suspicious"],
            "risk_score": result["risk_score"],
        })
        if updated:
            expense = updated

        if result["is_suspicious"]:
            self._create_alert(user_id, expense, result, now)
            logger.info(
                f"Expense {expense_id} of user {user_id} flagged: score={result['risk_score']} "
                f"severity={result['severity']}"
            )

        return {**result, "expense": expense}

    def analyze_recent_expenses(self, user_id: str, days: int = 7, now: Optional[datetime] = None) -> Dict[str, Any]:
        """
        Re-score every expense of the last ``days`` days. Already scored
        expenses are scored again and may raise further alerts.
        """
        now = now or datetime.utcnow()
        expenses = self.store.get_expenses(user_id, start=now - timedelta(days=days))
        analyses = [self.analyze_expense(user_id, exp["expense_id"], now) for exp in expenses]
        suspicious = [analysis for analysis in analyses if analysis["is_suspicious"]]

        return {
            "total_analyzed": len(expenses),
            "suspicious_count": len(suspicious),
            "suspicious_expenses": suspicious,
            "average_risk_score": mean([analysis["risk_score"] for analysis in analyses]),
        }

    def get_alerts(self, user_id: str, status: Optional[str] = None) -> List[Dict[str, Any]]:
        alerts = self.store.get_fraud_alerts(user_id, status)
        return sorted(alerts, key=lambda alert: alert.get("created_at", ""), reverse=True)

    def resolve_alert(
        self,
        user_id: str,
        alert_id: str,
        resolution: str,
        is_confirmed: bool,
        now: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        now = now or datetime.utcnow()
        alert = self.store.get_fraud_alert(user_id, alert_id)
        if not alert:
            raise NotFoundError("Fraud alert", alert_id)

        if alert.get("status") != AlertStatus.PENDING.value:
            logger.info(f"Alert {alert_id} already resolved as {alert.get('status')}; overwriting")

        status = AlertStatus.CONFIRMED if is_confirmed else AlertStatus.FALSE_POSITIVE
        updated = self.store.update_fraud_alert(user_id, alert_id, {
            "status": status.value,
            "resolution": resolution,
            "resolved_at": now.isoformat(),
        })
        if not updated:
            raise NotFoundError("Fraud alert", alert_id)
        return updated

    def detect_anomalies(self, user_id: str, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Z-score outliers over the last six months of spending."""
        now = now or datetime.utcnow()
        expenses = self.store.get_expenses(user_id, start=now - timedelta(days=ANOMALY_WINDOW_DAYS))
        if len(expenses) < ANOMALY_MIN_EXPENSES:
            return {"success": False, "message": "Insufficient data for anomaly detection"}

        amounts = [float(exp.get("amount", 0)) for exp in expenses]
        outliers = set(detect_outliers(amounts, ANOMALY_Z_THRESHOLD))
        anomalies = [exp for exp in expenses if float(exp.get("amount", 0)) in outliers]

        return {
            "success": True,
            "total_expenses": len(expenses),
            "anomaly_count": len(anomalies),
            "anomalies": anomalies,
            "statistics": {
                "average": mean(amounts),
                "std_dev": std_dev(amounts),
                "min": min(amounts),
                "max": max(amounts),
            },
        }

    def _create_alert(self, user_id: str, expense: Dict[str, Any], result: Dict[str, Any], now: datetime) -> None:
        factors = result["risk_factors"]
        alert = FraudAlertInDB(
            user_id=user_id,
            expense_id=expense.get("expense_id"),
            alert_type=factors[0]["type"] if factors else AlertType.BEHAVIORAL_ANOMALY,
            severity=result["severity"],
            description=(
                f"Suspicious transaction detected: ₹{float(expense.get('amount', 0)):.2f} "
                f"at {expense.get('merchant') or 'unknown merchant'}"
            ),
            risk_score=result["risk_score"],
            features=factors,
            created_at=now,
        )
        if not self.store.put_fraud_alert(alert.model_dump(mode="json")):
            logger.error(f"Failed to store fraud alert for expense {expense.get('expense_id')}")
