"""
Financial health scoring and rule-based recommendations.

The overall score is a weighted blend of five component scores, each kept
within 0-100:

    savings rate      30%
    budget adherence  25%
    income stability  20%   (flat 80/40 depending on whether any income exists)
    goal progress     15%
    emergency fund    10%

Recommendations are fixed templates triggered by component thresholds. When an
external provider is configured its suggestions are placed ahead of the local
ones; when it is missing or failing only local suggestions are returned.
"""
from __future__ import annotations

import logging
import math
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from app.db import dynamo
from app.models.goal import GoalStatus
from app.utils.budget_planner import utilization
from app.utils.dates import current_month_bounds
from app.utils.recommendation_client import ExternalRecommendationClient, normalize_recommendations
from app.utils.stats import mean, percentage, round2, total

logger = logging.getLogger(__name__)

SCORE_WEIGHTS = {
    "savings_rate": 0.30,
    "budget_adherence": 0.25,
    "income_stability": 0.20,
    "goal_progress": 0.15,
    "emergency_fund": 0.10,
}

# Recommended share of total spending per category
SPENDING_BENCHMARKS = {
    "Housing": 0.30,
    "Transportation": 0.15,
    "Food": 0.15,
    "Utilities": 0.10,
    "Healthcare": 0.10,
    "Entertainment": 0.05,
    "Shopping": 0.05,
    "Other": 0.10,
}
DEFAULT_BENCHMARK = 0.10
BENCHMARK_TOLERANCE_POINTS = 5
MIN_REPORTED_SAVINGS = 50

PATTERN_WINDOW_DAYS = 90


def _clamp(score: float) -> float:
    return max(0.0, min(100.0, score))


def savings_rate_score(savings_rate: float) -> float:
    # a 33% savings rate already earns the full score
    return _clamp(savings_rate * 3)


def budget_adherence_score(budgets: List[Dict[str, Any]]) -> float:
    if not budgets:
        return 50.0

    scores = []
    for budget in budgets:
        used = utilization(budget)
        if 70 <= used <= 95:
            scores.append(100.0)
        elif used < 70:
            scores.append(_clamp(70 + used))
        elif used <= 100:
            scores.append(90.0)
        else:
            scores.append(_clamp(100 - (used - 100)))
    return mean(scores)


def income_stability_score(incomes: List[Dict[str, Any]]) -> float:
    # Flat score: 80 when any income is recorded in the month, 40 otherwise. Variance is not measured.
    return 80.0 if incomes else 40.0


def goal_progress_score(goals: List[Dict[str, Any]]) -> float:
    if not goals:
        return 50.0

    progress = []
    for goal in goals:
        target = float(goal.get("target_amount", 0))
        current = float(goal.get("current_amount", 0))
        progress.append(min(100.0, current / target * 100) if target > 0 else 0.0)
    return mean(progress)


def emergency_fund_score(savings_amount: float, total_expenses: float) -> float:
    if savings_amount > total_expenses * 3:
        return 100.0
    if savings_amount > total_expenses:
        return 60.0
    return 30.0


def overall_score(scores: Dict[str, float]) -> int:
    weighted = sum(scores[name] * weight for name, weight in SCORE_WEIGHTS.items())
    return math.floor(weighted + 0.5)


def rating_for(score: int) -> str:
    if score >= 80:
        return "Excellent"
    if score >= 60:
        return "Good"
    if score >= 40:
        return "Fair"
    return "Needs Improvement"


def generate_insights(scores: Dict[str, float], metrics: Dict[str, float]) -> List[str]:
    insights = []
    if scores["savings_rate"] < 60:
        insights.append(
            f"Your savings rate is {round(metrics['savings_rate'])}%. Try to save at least 20% of your income."
        )
    if scores["budget_adherence"] < 70:
        insights.append("You're not adhering well to your budgets. Review and adjust your spending limits.")
    if scores["emergency_fund"] < 60:
        insights.append("Build an emergency fund covering at least 3-6 months of expenses.")
    if metrics["savings_rate"] > 30:
        insights.append("Great job! Your savings rate is above 30%. Keep up the good work!")
    if scores["goal_progress"] > 70:
        insights.append("You're making excellent progress towards your financial goals!")
    return insights


def spending_distribution(expenses: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Category shares of total spending, largest first."""
    category_totals: Dict[str, float] = {}
    for exp in expenses:
        category_totals[exp["category"]] = category_totals.get(exp["category"], 0.0) + float(exp.get("amount", 0))

    total_spent = total(category_totals.values())
    distribution = sorted(
        (
            {
                "category": category,
                "amount": round2(amount),
                "percentage": round2(percentage(amount, total_spent)),
            }
            for category, amount in category_totals.items()
        ),
        key=lambda item: item["amount"],
        reverse=True,
    )
    return {
        "distribution": distribution,
        "top_categories": distribution[:3],
        "total_spent": round2(total_spent),
        "average_transaction": round2(total_spent / len(expenses)) if expenses else 0.0,
        "transaction_count": len(expenses),
    }


def savings_opportunities(expenses: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Categories whose share exceeds the benchmark by more than the tolerance."""
    category_spending: Dict[str, float] = {}
    for exp in expenses:
        category_spending[exp["category"]] = category_spending.get(exp["category"], 0.0) + float(exp.get("amount", 0))

    total_spending = total(category_spending.values())
    if total_spending <= 0:
        return []

    insights = []
    for category, amount in category_spending.items():
        benchmark = SPENDING_BENCHMARKS.get(category, DEFAULT_BENCHMARK)
        current_percentage = amount / total_spending * 100
        if current_percentage <= benchmark * 100 + BENCHMARK_TOLERANCE_POINTS:
            continue

        recommended = total_spending * benchmark
        potential_savings = amount - recommended
        if potential_savings > MIN_REPORTED_SAVINGS:
            insights.append({
                "category": category,
                "current_spending": round2(amount),
                "recommended_spending": round2(recommended),
                "potential_savings": round2(potential_savings),
                "percentage_reduction": round(potential_savings / amount * 100, 1),
            })

    return sorted(insights, key=lambda item: item["potential_savings"], reverse=True)


def build_recommendations(health: Dict[str, Any], patterns: Dict[str, Any]) -> List[Dict[str, Any]]:
    recommendations: List[Dict[str, Any]] = []
    breakdown = health["breakdown"]
    metrics = health["metrics"]

    if health["overall_score"] < 60:
        recommendations.append({
            "id": "health-1",
            "title": "Improve Your Financial Health",
            "description": (
                "Your financial health score is below average. Focus on increasing savings "
                "and reducing unnecessary expenses."
            ),
            "priority": "HIGH",
            "category": "FINANCIAL_HEALTH",
            "impact": "HIGH",
            "actionable": True,
            "potential_savings": None,
            "type": "GENERAL",
        })

    top_categories = patterns.get("top_categories") if patterns.get("success") else None
    if top_categories:
        top = top_categories[0]
        if top["percentage"] > 40:
            recommendations.append({
                "id": "spending-1",
                "title": f"High Spending in {top['category']}",
                "description": (
                    f"{top['percentage']}% of your spending is on {top['category']}. "
                    f"Consider reducing expenses in this category by 10-15%."
                ),
                "priority": "MEDIUM",
                "category": "SPENDING",
                "impact": "MEDIUM",
                "actionable": True,
                "potential_savings": round2(top["amount"] * 0.15),
                "type": "BEHAVIORAL_ANOMALY",
            })

    if metrics["savings_rate"] < 20:
        potential_increase = metrics["total_income"] * 0.20 - metrics["savings_amount"]
        recommendations.append({
            "id": "savings-1",
            "title": "Increase Your Savings Rate",
            "description": (
                f"Your savings rate is {round(metrics['savings_rate'])}%. Aim to save at least 20% of your "
                f"monthly income. Consider automating transfers to a savings account."
            ),
            "priority": "HIGH",
            "category": "SAVINGS",
            "impact": "HIGH",
            "actionable": True,
            "potential_savings": round2(potential_increase) if potential_increase > 0 else None,
            "type": "SAVINGS_OPPORTUNITY",
        })

    if breakdown["emergency_fund"] < 60:
        target_fund = metrics["total_expenses"] * 3
        recommendations.append({
            "id": "emergency-1",
            "title": "Build Your Emergency Fund",
            "description": (
                f"You should have 3-6 months of expenses (₹{target_fund:.2f}) in an emergency fund. "
                f"Start by setting aside 10% of your income monthly."
            ),
            "priority": "CRITICAL",
            "category": "SAVINGS",
            "impact": "CRITICAL",
            "actionable": True,
            "potential_savings": None,
            "type": "EMERGENCY_FUND",
        })

    if breakdown["budget_adherence"] < 70:
        recommendations.append({
            "id": "budget-1",
            "title": "Improve Budget Adherence",
            "description": (
                "Create realistic budgets for each spending category and track your expenses regularly. "
                "Use the 50/30/20 rule: 50% needs, 30% wants, 20% savings."
            ),
            "priority": "MEDIUM",
            "category": "BUDGET",
            "impact": "MEDIUM",
            "actionable": True,
            "potential_savings": None,
            "type": "BEHAVIORAL_CHANGE",
        })

    if breakdown["goal_progress"] < 50:
        recommendations.append({
            "id": "goal-1",
            "title": "Accelerate Goal Progress",
            "description": (
                "Your financial goals are progressing slowly. Review your goals and increase monthly "
                "contributions by redirecting money from discretionary spending."
            ),
            "priority": "MEDIUM",
            "category": "INVESTMENT",
            "impact": "MEDIUM",
            "actionable": True,
            "potential_savings": None,
            "type": "GOAL_OPTIMIZATION",
        })

    return recommendations


class FinancialHealthAnalyzer:
    def __init__(self, store=dynamo, recommendation_client: Optional[ExternalRecommendationClient] = None) -> None:
        self.store = store
        self.recommendation_client = recommendation_client or ExternalRecommendationClient.from_settings()

    def calculate_health_score(self, user_id: str, now: Optional[datetime] = None) -> Dict[str, Any]:
        now = now or datetime.utcnow()
        start, end = current_month_bounds(now)

        incomes = self.store.get_incomes(user_id, start=start, end=end)
        expenses = self.store.get_expenses(user_id, start=start, end=end)
        goals = self.store.get_goals(user_id, status=GoalStatus.IN_PROGRESS.value)
        budgets = self.store.get_budgets(user_id, start=start, end=end)

        total_income = total(float(i.get("amount", 0)) for i in incomes)
        total_expenses = total(float(e.get("amount", 0)) for e in expenses)
        savings_amount = total_income - total_expenses
        savings_rate = savings_amount / total_income * 100 if total_income > 0 else 0.0

        scores = {
            "savings_rate": savings_rate_score(savings_rate),
            "budget_adherence": budget_adherence_score(budgets),
            "income_stability": income_stability_score(incomes),
            "goal_progress": goal_progress_score(goals),
            "emergency_fund": emergency_fund_score(savings_amount, total_expenses),
        }
        score = overall_score(scores)
        metrics = {
            "total_income": round2(total_income),
            "total_expenses": round2(total_expenses),
            "savings_amount": round2(savings_amount),
            "savings_rate": round2(savings_rate),
        }

        return {
            "overall_score": score,
            "rating": rating_for(score),
            "breakdown": {name: round2(value) for name, value in scores.items()},
            "insights": generate_insights(scores, {**metrics, "savings_rate": savings_rate}),
            "metrics": metrics,
        }

    def analyze_spending_patterns(self, user_id: str, now: Optional[datetime] = None) -> Dict[str, Any]:
        now = now or datetime.utcnow()
        expenses = self.store.get_expenses(user_id, start=now - timedelta(days=PATTERN_WINDOW_DAYS))
        if not expenses:
            return {"success": False, "message": "No expense data available"}
        return {"success": True, **spending_distribution(expenses)}

    def calculate_savings_opportunities(self, user_id: str, now: Optional[datetime] = None) -> Dict[str, Any]:
        now = now or datetime.utcnow()
        start, end = current_month_bounds(now)
        expenses = self.store.get_expenses(user_id, start=start, end=end)
        return {"insights": savings_opportunities(expenses)}

    def generate_recommendations(self, user_id: str, now: Optional[datetime] = None) -> Dict[str, Any]:
        now = now or datetime.utcnow()
        health = self.calculate_health_score(user_id, now)
        patterns = self.analyze_spending_patterns(user_id, now)
        savings = self.calculate_savings_opportunities(user_id, now)

        recommendations = build_recommendations(health, patterns)

        external = self.recommendation_client.fetch(user_id, {
            "healthScore": health["overall_score"],
            "metrics": health["metrics"],
            "spendingPatterns": patterns,
        })
        external_items = external.get("recommendations") if external else None
        if not isinstance(external_items, list):
            external_items = []
        if external_items:
            recommendations = normalize_recommendations(external_items) + recommendations
            logger.info(f"Merged {len(external_items)} external recommendations for user {user_id}")

        return {
            "success": True,
            "recommendations": recommendations,
            "savings_insights": savings["insights"],
            "health_score": health["overall_score"],
            "latest_external_recommendation": external_items[0] if external_items else None,
        }
