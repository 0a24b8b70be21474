from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from app.db import dynamo
from app.models.budget import BudgetInDB, BudgetPeriod
from app.utils.dates import current_month_bounds
from app.utils.stats import group_by, mean, round2, std_dev, total

logger = logging.getLogger(__name__)

HISTORY_WINDOW_DAYS = 180
AI_CONFIDENCE = {"HIGH": 0.9, "MEDIUM": 0.7, "LOW": 0.5}
UNDER_UTILIZED_PERCENT = 50
OVER_UTILIZED_PERCENT = 90


def confidence_for(average: float, deviation: float) -> str:
    """
    Confidence tier from the coefficient of variation. A zero average has no
    defined variation and is treated as the least certain tier.
    """
    if average <= 0:
        return "LOW"
    variation = deviation / average
    if variation > 0.5:
        return "LOW"
    if variation > 0.3:
        return "MEDIUM"
    return "HIGH"


def recommend_limits(expenses: List[Dict[str, Any]], period: str = BudgetPeriod.MONTHLY.value) -> List[Dict[str, Any]]:
    """Per-category limit of mean + one standard deviation, largest first."""
    recommendations = []
    for category, items in group_by(expenses, "category", default="Other").items():
        amounts = [float(item.get("amount", 0)) for item in items]
        average = mean(amounts)
        deviation = std_dev(amounts)
        recommendations.append({
            "category": category,
            "current_average": round2(average),
            "std_dev": round2(deviation),
            "recommended_limit": round2(average + deviation),
            "total_spent_last_6_months": round2(total(amounts)),
            "transaction_count": len(items),
            "confidence": confidence_for(average, deviation),
            "period": period,
        })
    return sorted(recommendations, key=lambda rec: rec["recommended_limit"], reverse=True)


def utilization(budget: Dict[str, Any]) -> float:
    limit = float(budget.get("limit", 0))
    if limit <= 0:
        return 0.0
    return float(budget.get("spent", 0)) / limit * 100


def suggest_adjustment(budget: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    used = utilization(budget)
    limit = float(budget.get("limit", 0))

    if used > OVER_UTILIZED_PERCENT:
        factor, reason = 1.2, "Frequently exceeding budget - consider increasing limit"
    elif used < UNDER_UTILIZED_PERCENT and budget.get("is_ai_generated"):
        factor, reason = 0.8, "Consistently under budget - consider reducing limit"
    else:
        return None

    return {
        "budget_id": budget.get("budget_id"),
        "category": budget.get("category"),
        "current_limit": limit,
        "utilization": round2(used),
        "suggested_limit": round2(limit * factor),
        "reason": reason,
    }


class BudgetPlanner:
    def __init__(self, store=dynamo) -> None:
        self.store = store

    def generate_recommendations(
        self,
        user_id: str,
        period: str = BudgetPeriod.MONTHLY.value,
        now: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        now = now or datetime.utcnow()
        expenses = self.store.get_expenses(user_id, start=now - timedelta(days=HISTORY_WINDOW_DAYS))
        if not expenses:
            return {
                "success": False,
                "message": "Not enough historical data to generate recommendations",
            }

        return {
            "success": True,
            "recommendations": recommend_limits(expenses, period),
            "period": period,
            "analysis_date": now.isoformat(),
        }

    def create_ai_budgets(self, user_id: str, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Materialise one monthly budget per recommended category for the current month."""
        now = now or datetime.utcnow()
        result = self.generate_recommendations(user_id, now=now)
        if not result["success"]:
            return result

        start_of_month, end_of_month = current_month_bounds(now)
        created = []
        for rec in result["recommendations"]:
            if rec["recommended_limit"] <= 0:
                continue
            budget = BudgetInDB(
                user_id=user_id,
                category=rec["category"],
                limit=rec["recommended_limit"],
                spent=0,
                period=BudgetPeriod.MONTHLY,
                start_date=start_of_month,
                end_date=end_of_month,
                is_ai_generated=True,
                ai_confidence=AI_CONFIDENCE[rec["confidence"]],
                created_at=now,
            ).model_dump(mode="json")
            if self.store.put_budget(budget):
                created.append(budget)
            else:
                logger.error(f"Failed to store AI budget for {rec['category']} (user {user_id})")

        logger.info(f"Created {len(created)} AI-generated budgets for user {user_id}")
        return {
            "success": True,
            "budgets": created,
            "message": f"Created {len(created)} AI-generated budgets",
        }

    def adjust_budgets(self, user_id: str, now: Optional[datetime] = None) -> Dict[str, Any]:
        now = now or datetime.utcnow()
        active_budgets = self.store.get_budgets(user_id, start=now)
        adjustments = [
            suggestion for suggestion in (suggest_adjustment(budget) for budget in active_budgets)
            if suggestion is not None
        ]
        return {"success": True, "adjustments": adjustments}
