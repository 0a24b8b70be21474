from datetime import datetime

from fastapi import APIRouter, Depends

from app.core.deps import get_store
from app.core.rate_limit import rate_limited_user
from app.core.responses import success
from app.models.fraud import AlertStatus
from app.models.goal import GoalStatus
from app.utils.analyzer import FinanceAnalyzer
from app.utils.dates import period_range

router = APIRouter()
finance_analyzer = FinanceAnalyzer()


@router.get("/")
def dashboard(period: str = "month", user_id: str = Depends(rate_limited_user), store=Depends(get_store)):
    """
    Overview for a named period: today, week, month, year, last30days,
    last90days or lastYear (anything else is treated as month).
    """
    now = datetime.utcnow()
    start, end = period_range(period, now)

    return success(finance_analyzer.dashboard(
        incomes=store.get_incomes(user_id, start=start, end=end),
        expenses=store.get_expenses(user_id, start=start, end=end),
        budgets=store.get_budgets(user_id, start=start, end=end),
        active_goals=store.get_goals(user_id, GoalStatus.IN_PROGRESS.value),
        pending_alerts=store.get_fraud_alerts(user_id, AlertStatus.PENDING.value),
        total_goals=len(store.get_goals(user_id)),
        start=start,
        end=end,
        period=period,
        now=now,
    ))
