import logging
from datetime import date
from typing import Dict, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status

from app.core.security import get_current_user_id
from app.db import dynamo
from app.models.expense import ExpenseCategory, ExpenseCreate, ExpenseInDB, ExpensePublic, ExpenseUpdate
from app.utils.analyzer import FinanceAnalyzer, expense_date

router = APIRouter()
logger = logging.getLogger(__name__)
finance_analyzer = FinanceAnalyzer()

SortField = Literal["date", "amount", "category", "created_at"]


@router.post("/", response_model=ExpensePublic, status_code=status.HTTP_201_CREATED)
def create_expense(expense: ExpenseCreate, user_id: str = Depends(get_current_user_id)):
    expense_db = ExpenseInDB.from_payload(user_id, expense)
    dynamo.put_expense(expense_db.model_dump())
    logger.info(f"Created expense {expense_db.expense_id} for user {user_id}")
    return ExpensePublic(**expense_db.model_dump())


@router.get("/")
def list_expenses(
    category: Optional[ExpenseCategory] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    sort_by: Optional[SortField] = None,
    sort_order: str = Query("asc", pattern="^(asc|desc)$"),
    limit: int = Query(20, ge=1, le=100),
    page: int = Query(1, ge=1),
    user_id: str = Depends(get_current_user_id),
):
    expenses = dynamo.query_expenses(
        user_id, start_date=start_date, end_date=end_date, category=category
    )
    if sort_by:
        expenses.sort(key=lambda exp: exp[sort_by], reverse=sort_order == "desc")

    offset = (page - 1) * limit
    return {
        "expenses": [ExpensePublic(**exp) for exp in expenses[offset:offset + limit]],
        "total": len(expenses),
        "page": page,
        "limit": limit,
    }


@router.get("/calendar/{year}/{month}")
def calendar_view(
    year: int,
    month: int = Path(..., ge=1, le=12),
    user_id: str = Depends(get_current_user_id),
):
    """Expenses of a month grouped by day of month."""
    expenses = dynamo.query_expenses(user_id, year=year, month=month)
    calendar_data: Dict[int, Dict] = {}
    for exp in sorted(expenses, key=expense_date):
        day = calendar_data.setdefault(expense_date(exp).day, {"total": 0, "expenses": []})
        day["total"] += exp["amount"]
        day["expenses"].append(ExpensePublic(**exp))
    return calendar_data


@router.get("/summary/{year}/{month}")
def monthly_summary(
    year: int,
    month: int = Path(..., ge=1, le=12),
    user_id: str = Depends(get_current_user_id),
):
    expenses = dynamo.query_expenses(user_id, year=year, month=month)
    return {
        "total": finance_analyzer.monthly_total(expenses),
        "categories": finance_analyzer.category_totals(expenses),
    }


@router.get("/{expense_id}", response_model=ExpensePublic)
def get_expense(expense_id: str, user_id: str = Depends(get_current_user_id)):
    expense = dynamo.get_expense(user_id, expense_id)
    if not expense:
        raise HTTPException(status_code=404, detail="Expense not found")
    return ExpensePublic(**expense)


@router.put("/{expense_id}", response_model=ExpensePublic)
def update_expense(
    expense_id: str,
    expense_update: ExpenseUpdate,
    user_id: str = Depends(get_current_user_id),
):
    fields = expense_update.model_dump()
    fields["year"] = expense_update.date.year
    fields["month"] = expense_update.date.month

    updated = dynamo.update_expense(user_id, expense_id, fields)
    if not updated:
        raise HTTPException(status_code=404, detail="Expense not found")

    return ExpensePublic(**updated)


@router.delete("/{expense_id}")
def delete_expense(expense_id: str, user_id: str = Depends(get_current_user_id)):
    deleted = dynamo.delete_expense(user_id, expense_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Expense not found")
    logger.info(f"Deleted expense {expense_id} for user {user_id}")
    return {"message": "Expense deleted successfully"}
