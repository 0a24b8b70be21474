import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status

from app.core.deps import get_fraud_detector, get_store
from app.core.errors import NotFoundError
from app.core.rate_limit import rate_limited_user
from app.core.responses import success
from app.models.expense import EXPENSE_CATEGORIES, ExpenseCreate, ExpenseInDB, ExpenseUpdate
from app.utils.dates import to_datetime
from app.utils.fraud import FraudDetector

router = APIRouter()
logger = logging.getLogger(__name__)


def run_fraud_analysis(detector: FraudDetector, user_id: str, expense_id: str) -> None:
    """Score a freshly created expense after the response has been sent."""
    try:
        detector.analyze_expense(user_id, expense_id)
    except Exception as e:
        logger.error(f"Fraud detection failed for expense {expense_id}: {str(e)}", exc_info=True)


@router.get("/categories")
def list_categories():
    return success(EXPENSE_CATEGORIES)


@router.get("/")
def list_expenses(
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    category: Optional[str] = None,
    is_suspicious: Optional[bool] = None,
    user_id: str = Depends(rate_limited_user),
    store=Depends(get_store),
):
    # the date window only applies when both ends are given
    if start_date and end_date:
        expenses = store.get_expenses(user_id, start=start_date, end=end_date)
    else:
        expenses = store.get_expenses(user_id)

    if category:
        expenses = [exp for exp in expenses if exp.get("category") == category]
    if is_suspicious is not None:
        expenses = [exp for exp in expenses if bool(exp.get("is_suspicious")) == is_suspicious]

    expenses.sort(key=lambda exp: to_datetime(exp["date"]), reverse=True)
    return success(expenses)


@router.post("/", status_code=status.HTTP_201_CREATED)
def create_expense(
    expense: ExpenseCreate,
    background_tasks: BackgroundTasks,
    user_id: str = Depends(rate_limited_user),
    store=Depends(get_store),
    detector: FraudDetector = Depends(get_fraud_detector),
):
    expense_db = ExpenseInDB(user_id=user_id, **expense.model_dump()).model_dump(mode="json")
    if not store.put_expense(expense_db):
        raise HTTPException(status_code=500, detail="Failed to save expense")

    background_tasks.add_task(run_fraud_analysis, detector, user_id, expense_db["expense_id"])
    return success(expense_db)


@router.get("/{expense_id}")
def get_expense(expense_id: str, user_id: str = Depends(rate_limited_user), store=Depends(get_store)):
    expense = store.get_expense(user_id, expense_id)
    if not expense:
        raise NotFoundError("Expense", expense_id)
    return success(expense)


@router.patch("/{expense_id}")
def update_expense(
    expense_id: str,
    expense_update: ExpenseUpdate,
    user_id: str = Depends(rate_limited_user),
    store=Depends(get_store),
):
    mutable_fields = expense_update.model_dump(mode="json", exclude_unset=True)
    if not mutable_fields:
        raise HTTPException(status_code=400, detail="No fields to update")

    updated = store.update_expense(user_id, expense_id, mutable_fields)
    if not updated:
        raise NotFoundError("Expense", expense_id)
    return success(updated)


@router.delete("/{expense_id}")
def delete_expense(expense_id: str, user_id: str = Depends(rate_limited_user), store=Depends(get_store)):
    if not store.delete_expense(user_id, expense_id):
        raise NotFoundError("Expense", expense_id)
    return success({"message": "Expense deleted successfully"})
