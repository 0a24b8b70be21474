"""
Spending forecasts: next-month projection per category and detection of
recurring merchant charges.
"""
from __future__ import annotations

import math
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from app.db import dynamo
from app.utils.dates import add_months, current_month_bounds, days_between, to_datetime
from app.utils.stats import group_by, mean, round2, total

HISTORY_WINDOW_DAYS = 180
RECENT_WINDOW_DAYS = 30
RECURRING_WINDOW_DAYS = 90
MIN_EXPENSES_FOR_PREDICTION = 10
# only half of the recent trend is carried into the forecast
TREND_DAMPING = 200
RECURRING_MAX_INTERVAL_DAYS = 35


def sample_confidence(sample_size: int) -> str:
    if sample_size >= 10:
        return "HIGH"
    if sample_size >= 5:
        return "MEDIUM"
    return "LOW"


def project_category(category: str, expenses: List[Dict[str, Any]], now: datetime) -> Dict[str, Any]:
    amounts = [float(exp.get("amount", 0)) for exp in expenses]
    average = mean(amounts)

    recent_start = now - timedelta(days=RECENT_WINDOW_DAYS)
    last_month_total = total(
        float(exp.get("amount", 0)) for exp in expenses
        if to_datetime(exp["date"]) >= recent_start
    )
    trend_percentage = (last_month_total - average) / average * 100 if average > 0 else 0.0
    predicted = average * (1 + trend_percentage / TREND_DAMPING)

    return {
        "category": category,
        "predicted_amount": round2(predicted),
        "historical_average": round2(average),
        "last_month_total": round2(last_month_total),
        "trend": "increasing" if last_month_total > average else "decreasing",
        "trend_percentage": round2(trend_percentage),
        "confidence": sample_confidence(len(expenses)),
    }


def detect_recurring(expenses: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Merchants charged at least twice whose mean gap between charges is
    under RECURRING_MAX_INTERVAL_DAYS.
    """
    ordered = sorted(expenses, key=lambda exp: to_datetime(exp["date"]))
    recurring = []
    for merchant, items in group_by(ordered, "merchant", default="Unknown").items():
        if len(items) < 2:
            continue

        dates = [to_datetime(item["date"]) for item in items]
        intervals = [days_between(dates[i - 1], dates[i]) for i in range(1, len(dates))]
        average_interval = mean(intervals)
        if average_interval >= RECURRING_MAX_INTERVAL_DAYS:
            continue

        recurring.append({
            "merchant": merchant,
            "category": items[0].get("category"),
            "average_amount": round2(mean([float(item.get("amount", 0)) for item in items])),
            "frequency": math.floor(average_interval + 0.5),
            "occurrences": len(items),
            "last_date": dates[-1],
            "next_expected_date": dates[-1] + timedelta(days=average_interval),
            "is_recurring": True,
        })
    return recurring


class ExpensePredictor:
    def __init__(self, store=dynamo) -> None:
        self.store = store

    def predict_next_month(self, user_id: str, now: Optional[datetime] = None) -> Dict[str, Any]:
        now = now or datetime.utcnow()
        expenses = self.store.get_expenses(user_id, start=now - timedelta(days=HISTORY_WINDOW_DAYS))
        if len(expenses) < MIN_EXPENSES_FOR_PREDICTION:
            return {"success": False, "message": "Insufficient data for prediction"}

        predictions = [
            project_category(category, items, now)
            for category, items in group_by(expenses, "category", default="Other").items()
        ]
        next_start, next_end = current_month_bounds(add_months(now, 1))

        return {
            "success": True,
            "predictions": predictions,
            "total_predicted": round2(total(p["predicted_amount"] for p in predictions)),
            "next_month": {"start": next_start, "end": next_end},
        }

    def predict_recurring(self, user_id: str, now: Optional[datetime] = None) -> Dict[str, Any]:
        now = now or datetime.utcnow()
        expenses = self.store.get_expenses(user_id, start=now - timedelta(days=RECURRING_WINDOW_DAYS))
        recurring = detect_recurring(expenses)
        return {
            "success": True,
            "recurring_expenses": recurring,
            "total_recurring_count": len(recurring),
        }

    def predict_upcoming_bills(self, user_id: str, days_ahead: int = 30, now: Optional[datetime] = None) -> Dict[str, Any]:
        now = now or datetime.utcnow()
        horizon = now + timedelta(days=days_ahead)
        recurring = self.predict_recurring(user_id, now)["recurring_expenses"]

        upcoming = sorted(
            (bill for bill in recurring if now <= bill["next_expected_date"] <= horizon),
            key=lambda bill: bill["next_expected_date"],
        )
        return {
            "success": True,
            "upcoming_bills": upcoming,
            "total_amount": round2(total(bill["average_amount"] for bill in upcoming)),
            "period": {"start": now, "end": horizon},
        }
