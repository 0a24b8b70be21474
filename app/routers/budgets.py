from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, status

from app.core.deps import get_budget_planner, get_store
from app.core.errors import NotFoundError
from app.core.rate_limit import rate_limited_user
from app.core.responses import success
from app.models.budget import BudgetCreate, BudgetInDB, BudgetPeriod, BudgetUpdate
from app.utils.budget_planner import BudgetPlanner
from app.utils.dates import to_datetime
from app.utils.stats import round2

router = APIRouter()


def with_stats(budget: Dict[str, Any]) -> Dict[str, Any]:
    limit = float(budget.get("limit", 0))
    spent = float(budget.get("spent", 0))
    threshold = float(budget.get("alert_threshold", 80))
    return {
        **budget,
        "utilization": round2(spent / limit * 100) if limit > 0 else 0.0,
        "remaining": round2(limit - spent),
        "is_over_budget": spent > limit,
        "should_alert": spent >= limit * threshold / 100,
    }


@router.get("/")
def list_budgets(
    category: Optional[str] = None,
    period: Optional[BudgetPeriod] = None,
    active: bool = False,
    user_id: str = Depends(rate_limited_user),
    store=Depends(get_store),
):
    if active:
        now = datetime.utcnow()
        budgets = store.get_budgets(user_id, start=now, end=now)
    else:
        budgets = store.get_budgets(user_id)

    if category:
        budgets = [b for b in budgets if b.get("category") == category]
    if period:
        budgets = [b for b in budgets if b.get("period") == period.value]

    budgets.sort(key=lambda b: to_datetime(b["created_at"]), reverse=True)
    return success([with_stats(b) for b in budgets])


@router.post("/", status_code=status.HTTP_201_CREATED)
def create_budget(budget: BudgetCreate, user_id: str = Depends(rate_limited_user), store=Depends(get_store)):
    budget_db = BudgetInDB(user_id=user_id, **budget.model_dump()).model_dump(mode="json")
    if not store.put_budget(budget_db):
        raise HTTPException(status_code=500, detail="Failed to save budget")
    return success(budget_db)


@router.get("/recommendations")
def budget_recommendations(
    period: BudgetPeriod = BudgetPeriod.MONTHLY,
    user_id: str = Depends(rate_limited_user),
    planner: BudgetPlanner = Depends(get_budget_planner),
):
    return success(planner.generate_recommendations(user_id, period.value))


@router.post("/ai-generate", status_code=status.HTTP_201_CREATED)
def generate_ai_budgets(user_id: str = Depends(rate_limited_user), planner: BudgetPlanner = Depends(get_budget_planner)):
    return success(planner.create_ai_budgets(user_id))


@router.get("/adjustments")
def budget_adjustments(user_id: str = Depends(rate_limited_user), planner: BudgetPlanner = Depends(get_budget_planner)):
    return success(planner.adjust_budgets(user_id))


@router.get("/{budget_id}")
def get_budget(budget_id: str, user_id: str = Depends(rate_limited_user), store=Depends(get_store)):
    budget = store.get_budget(user_id, budget_id)
    if not budget:
        raise NotFoundError("Budget", budget_id)
    return success(with_stats(budget))


@router.patch("/{budget_id}")
def update_budget(
    budget_id: str,
    budget_update: BudgetUpdate,
    user_id: str = Depends(rate_limited_user),
    store=Depends(get_store),
):
    mutable_fields = budget_update.model_dump(mode="json", exclude_unset=True)
    if not mutable_fields:
        raise HTTPException(status_code=400, detail="No fields to update")

    existing = store.get_budget(user_id, budget_id)
    if not existing:
        raise NotFoundError("Budget", budget_id)
    start = to_datetime(mutable_fields.get("start_date", existing["start_date"]))
    end = to_datetime(mutable_fields.get("end_date", existing["end_date"]))
    if end < start:
        raise ValueError("end_date must not be before start_date")

    updated = store.update_budget(user_id, budget_id, mutable_fields)
    if not updated:
        raise NotFoundError("Budget", budget_id)
    return success(with_stats(updated))


@router.delete("/{budget_id}")
def delete_budget(budget_id: str, user_id: str = Depends(rate_limited_user), store=Depends(get_store)):
    if not store.delete_budget(user_id, budget_id):
        raise NotFoundError("Budget", budget_id)
    return success({"message": "Budget deleted successfully"})
