from datetime import datetime

from fastapi import APIRouter, Depends, Query

from app.core.deps import get_health_analyzer, get_predictor, get_store
from app.core.rate_limit import rate_limited_user
from app.core.responses import success
from app.utils.analyzer import TREND_MONTHS, FinanceAnalyzer
from app.utils.dates import add_months, current_month_bounds
from app.utils.financial_health import FinancialHealthAnalyzer
from app.utils.predictor import ExpensePredictor

router = APIRouter()
finance_analyzer = FinanceAnalyzer()


@router.get("/")
def analytics_overview(user_id: str = Depends(rate_limited_user), store=Depends(get_store)):
    now = datetime.utcnow()
    month_start, month_end = current_month_bounds(now)
    trend_start, _ = current_month_bounds(add_months(now, -(TREND_MONTHS - 1)))

    return success(finance_analyzer.analytics_overview(
        store.get_incomes(user_id, start=month_start, end=month_end),
        store.get_expenses(user_id, start=month_start, end=month_end),
        store.get_incomes(user_id, start=trend_start, end=now),
        store.get_expenses(user_id, start=trend_start, end=now),
        now,
    ))


@router.get("/predictions")
def predict_next_month(user_id: str = Depends(rate_limited_user), predictor: ExpensePredictor = Depends(get_predictor)):
    return success(predictor.predict_next_month(user_id))


@router.get("/recurring")
def recurring_expenses(user_id: str = Depends(rate_limited_user), predictor: ExpensePredictor = Depends(get_predictor)):
    return success(predictor.predict_recurring(user_id))


@router.get("/upcoming-bills")
def upcoming_bills(
    days: int = Query(30, ge=1, le=365),
    user_id: str = Depends(rate_limited_user),
    predictor: ExpensePredictor = Depends(get_predictor),
):
    return success(predictor.predict_upcoming_bills(user_id, days))


@router.get("/health-score")
def health_score(
    user_id: str = Depends(rate_limited_user),
    analyzer: FinancialHealthAnalyzer = Depends(get_health_analyzer),
):
    return success(analyzer.calculate_health_score(user_id))


@router.get("/spending-patterns")
def spending_patterns(
    user_id: str = Depends(rate_limited_user),
    analyzer: FinancialHealthAnalyzer = Depends(get_health_analyzer),
):
    return success(analyzer.analyze_spending_patterns(user_id))


@router.get("/savings-opportunities")
def savings_opportunities(
    user_id: str = Depends(rate_limited_user),
    analyzer: FinancialHealthAnalyzer = Depends(get_health_analyzer),
):
    return success(analyzer.calculate_savings_opportunities(user_id))


@router.get("/recommendations")
def recommendations(
    user_id: str = Depends(rate_limited_user),
    analyzer: FinancialHealthAnalyzer = Depends(get_health_analyzer),
):
    return success(analyzer.generate_recommendations(user_id))
