from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status

from app.core.deps import get_store
from app.core.errors import NotFoundError
from app.core.rate_limit import rate_limited_user
from app.core.responses import success
from app.models.income import IncomeCreate, IncomeInDB, IncomeUpdate
from app.utils.dates import to_datetime

router = APIRouter()


@router.get("/")
def list_incomes(
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    category: Optional[str] = None,
    user_id: str = Depends(rate_limited_user),
    store=Depends(get_store),
):
    if start_date and end_date:
        incomes = store.get_incomes(user_id, start=start_date, end=end_date)
    else:
        incomes = store.get_incomes(user_id)

    if category:
        incomes = [income for income in incomes if income.get("category") == category]

    incomes.sort(key=lambda income: to_datetime(income["date"]), reverse=True)
    return success(incomes)


@router.post("/", status_code=status.HTTP_201_CREATED)
def create_income(income: IncomeCreate, user_id: str = Depends(rate_limited_user), store=Depends(get_store)):
    income_db = IncomeInDB(user_id=user_id, **income.model_dump()).model_dump(mode="json")
    if not store.put_income(income_db):
        raise HTTPException(status_code=500, detail="Failed to save income")
    return success(income_db)


@router.get("/{income_id}")
def get_income(income_id: str, user_id: str = Depends(rate_limited_user), store=Depends(get_store)):
    income = store.get_income(user_id, income_id)
    if not income:
        raise NotFoundError("Income", income_id)
    return success(income)


@router.patch("/{income_id}")
def update_income(
    income_id: str,
    income_update: IncomeUpdate,
    user_id: str = Depends(rate_limited_user),
    store=Depends(get_store),
):
    mutable_fields = income_update.model_dump(mode="json", exclude_unset=True)
    if not mutable_fields:
        raise HTTPException(status_code=400, detail="No fields to update")

    updated = store.update_income(user_id, income_id, mutable_fields)
    if not updated:
        raise NotFoundError("Income", income_id)
    return success(updated)


@router.delete("/{income_id}")
def delete_income(income_id: str, user_id: str = Depends(rate_limited_user), store=Depends(get_store)):
    if not store.delete_income(user_id, income_id):
        raise NotFoundError("Income", income_id)
    return success({"message": "Income deleted successfully"})
