from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Any, Dict, List, Optional

from app.utils.dates import add_months, month_bounds, to_datetime
from app.utils.stats import group_by, percentage, round2, total

TOP_EXPENSES_LIMIT = 10
RECENT_TRANSACTIONS_LIMIT = 10
RECENT_ALERTS_LIMIT = 5
TREND_MONTHS = 6


@dataclass
class CategoryAnalysis:
    """Spending figures for a single expense category within a report window."""

    count: int
    total: float
    average: float
    percentage: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _amount(item: Dict[str, Any]) -> float:
    return float(item.get("amount", 0))


def _sum(items: List[Dict[str, Any]]) -> float:
    return total(_amount(item) for item in items)


def _newest_first(items: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return sorted(items, key=lambda item: to_datetime(item["date"]), reverse=True)


class FinanceAnalyzer:
    """
    Report and dashboard aggregation over rows already loaded for one user.
    Nothing here touches the data store; callers pass in the rows for the
    window they want summarised.
    """

    @staticmethod
    def totals(incomes: List[Dict[str, Any]], expenses: List[Dict[str, Any]]) -> Dict[str, float]:
        total_income = _sum(incomes)
        total_expenses = _sum(expenses)
        net_savings = total_income - total_expenses
        savings_rate = net_savings / total_income * 100 if total_income > 0 else 0.0
        return {
            "total_income": round2(total_income),
            "total_expenses": round2(total_expenses),
            "net_savings": round2(net_savings),
            "savings_rate": round2(savings_rate),
        }

    @staticmethod
    def category_totals(items: List[Dict[str, Any]], default: str = "Other") -> Dict[str, float]:
        totals: Dict[str, float] = defaultdict(float)
        for item in items:
            totals[item.get("category") or default] += _amount(item)
        return {category: round2(amount) for category, amount in totals.items()}

    @staticmethod
    def budget_status(budget: Dict[str, Any]) -> Dict[str, Any]:
        limit = float(budget.get("limit", 0))
        spent = float(budget.get("spent", 0))
        return {
            "budget_id": budget.get("budget_id"),
            "category": budget.get("category"),
            "limit": limit,
            "spent": spent,
            "remaining": round2(limit - spent),
            "utilization": round2(spent / limit * 100) if limit > 0 else 0.0,
            "is_over_budget": spent > limit,
        }

    @staticmethod
    def goal_progress(goal: Dict[str, Any]) -> Dict[str, Any]:
        target = float(goal.get("target_amount", 0))
        current = float(goal.get("current_amount", 0))
        return {
            "goal_id": goal.get("goal_id"),
            "name": goal.get("name"),
            "target_amount": target,
            "current_amount": current,
            "progress": round2(current / target * 100) if target > 0 else 0.0,
            "remaining": round2(target - current),
        }

    @staticmethod
    def top_expenses(expenses: List[Dict[str, Any]], limit: int = TOP_EXPENSES_LIMIT) -> List[Dict[str, Any]]:
        ranked = sorted(expenses, key=_amount, reverse=True)[:limit]
        return [
            {
                "date": exp.get("date"),
                "amount": round2(_amount(exp)),
                "category": exp.get("category"),
                "merchant": exp.get("merchant"),
                "description": exp.get("description") or exp.get("category"),
            }
            for exp in ranked
        ]

    def monthly_summary(
        self,
        incomes: List[Dict[str, Any]],
        expenses: List[Dict[str, Any]],
        budgets: List[Dict[str, Any]],
        year: int,
        month: int,
    ) -> Dict[str, Any]:
        start, end = month_bounds(year, month)
        return {
            "period": {"year": year, "month": month, "start_date": start, "end_date": end},
            "summary": self.totals(incomes, expenses),
            "income_breakdown": self.category_totals(incomes),
            "expense_breakdown": self.category_totals(expenses),
            "budget_performance": [
                {
                    "category": status["category"],
                    "limit": status["limit"],
                    "spent": status["spent"],
                    "utilization": status["utilization"],
                }
                for status in map(self.budget_status, budgets)
            ],
            "top_expenses": self.top_expenses(expenses),
        }

    def expense_analysis(
        self,
        expenses: List[Dict[str, Any]],
        start: datetime,
        end: datetime,
    ) -> Dict[str, Any]:
        overall = _sum(expenses)
        category_analysis = {}
        for category, items in group_by(expenses, "category", default="Other").items():
            category_total = _sum(items)
            category_analysis[category] = CategoryAnalysis(
                count=len(items),
                total=round2(category_total),
                average=round2(category_total / len(items)),
                percentage=round2(percentage(category_total, overall)),
            ).to_dict()

        return {
            "period": {"start_date": start, "end_date": end},
            "summary": {
                "total_expenses": round2(overall),
                "transaction_count": len(expenses),
                "average_transaction": round2(overall / len(expenses)) if expenses else 0.0,
            },
            "category_analysis": category_analysis,
            "expenses": _newest_first(expenses),
        }

    def monthly_trend(
        self,
        incomes: List[Dict[str, Any]],
        expenses: List[Dict[str, Any]],
        now: datetime,
        months: int = TREND_MONTHS,
    ) -> List[Dict[str, Any]]:
        """Income and expense totals for each of the last ``months`` calendar months, oldest first."""
        buckets: Dict[tuple, Dict[str, float]] = {}
        for offset in range(months - 1, -1, -1):
            month_start = add_months(now, -offset)
            buckets[(month_start.year, month_start.month)] = {"income": 0.0, "expenses": 0.0}

        for field, rows in (("income", incomes), ("expenses", expenses)):
            for row in rows:
                when = to_datetime(row["date"])
                bucket = buckets.get((when.year, when.month))
                if bucket is not None:
                    bucket[field] += _amount(row)

        return [
            {
                "month": datetime(year, month, 1).strftime("%b %Y"),
                "income": round2(values["income"]),
                "expenses": round2(values["expenses"]),
            }
            for (year, month), values in buckets.items()
        ]

    def analytics_overview(
        self,
        current_incomes: List[Dict[str, Any]],
        current_expenses: List[Dict[str, Any]],
        history_incomes: List[Dict[str, Any]],
        history_expenses: List[Dict[str, Any]],
        now: datetime,
    ) -> Dict[str, Any]:
        breakdown = sorted(
            (
                {"category": category, "amount": amount}
                for category, amount in self.category_totals(current_expenses).items()
            ),
            key=lambda item: item["amount"],
            reverse=True,
        )
        return {
            "summary": self.totals(current_incomes, current_expenses),
            "category_breakdown": breakdown,
            "monthly_trend": self.monthly_trend(history_incomes, history_expenses, now),
            "top_expenses": self.top_expenses(current_expenses),
        }

    def dashboard(
        self,
        incomes: List[Dict[str, Any]],
        expenses: List[Dict[str, Any]],
        budgets: List[Dict[str, Any]],
        active_goals: List[Dict[str, Any]],
        pending_alerts: List[Dict[str, Any]],
        total_goals: int,
        start: datetime,
        end: datetime,
        period: str,
        now: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        now = now or datetime.utcnow()
        alerts = sorted(
            pending_alerts,
            key=lambda alert: to_datetime(alert["created_at"]),
            reverse=True,
        )[:RECENT_ALERTS_LIMIT]

        return {
            "overview": self.totals(incomes, expenses),
            "budgets": [self.budget_status(budget) for budget in budgets],
            "goals": [self.goal_progress(goal) for goal in active_goals],
            "recent_transactions": _newest_first(expenses)[:RECENT_TRANSACTIONS_LIMIT],
            "alerts": alerts,
            "stats": {
                "total_budgets": len(budgets),
                "active_budgets": sum(1 for b in budgets if to_datetime(b["end_date"]) >= now),
                "total_goals": total_goals,
                "active_goals": len(active_goals),
                "pending_alerts": len(alerts),
            },
            "period": {"start": start, "end": end, "type": period},
        }
