"""
Savings Goals Router
One target amount per user and month, plus progress and encouragement views
"""
import logging
from datetime import date, datetime
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, Response, status

from app.core.security import get_current_user_id
from app.db import dynamo
from app.models.savings_goal import SavingsGoalPublic, SavingsGoalStatus, SavingsGoalUpsert
from app.utils.analyzer import FinanceAnalyzer, clamped_achievement, month_window
from app.utils.insights import generate_nudges

router = APIRouter()
logger = logging.getLogger(__name__)
finance_analyzer = FinanceAnalyzer()


def _today() -> date:
    return datetime.utcnow().date()


def _goal_status(user_id: str, year: int, month: int, missing_detail: str) -> SavingsGoalStatus:
    goal = dynamo.get_savings_goal(user_id, year, month)
    if not goal:
        raise HTTPException(status_code=404, detail=missing_detail)

    expenses = dynamo.query_expenses(user_id, year=year, month=month)
    return SavingsGoalStatus(**finance_analyzer.goal_status(goal, finance_analyzer.monthly_total(expenses)))


@router.post("/", response_model=SavingsGoalPublic)
def create_or_update_goal(
    goal: SavingsGoalUpsert,
    response: Response,
    user_id: str = Depends(get_current_user_id),
):
    stored, created = dynamo.upsert_savings_goal(user_id, goal.year, goal.month, goal.target_amount)
    response.status_code = status.HTTP_201_CREATED if created else status.HTTP_200_OK
    logger.info(
        f"{'Created' if created else 'Updated'} savings goal {goal.year}-{goal.month:02d} for user {user_id}"
    )
    return SavingsGoalPublic(**stored)


@router.get("/current", response_model=SavingsGoalStatus)
def get_current_goal(user_id: str = Depends(get_current_user_id)):
    today = _today()
    return _goal_status(user_id, today.year, today.month, "No savings goal set for the current month")


@router.get("/progress")
def get_progress_overview(
    months: int = Query(6, ge=1, le=120),
    user_id: str = Depends(get_current_user_id),
):
    """Goal-by-goal progress for the trailing window of months."""
    window = month_window(_today(), months)
    goals = dynamo.get_savings_goals_between(user_id, window[0], window[-1])

    overview = []
    for goal in goals:
        expenses = dynamo.query_expenses(user_id, year=goal["year"], month=goal["month"])
        total = finance_analyzer.monthly_total(expenses)
        overview.append({
            "year": goal["year"],
            "month": goal["month"],
            "targetAmount": goal["target_amount"],
            "totalExpenses": total,
            "percentageAchieved": clamped_achievement(goal["target_amount"], total),
            "isOverspending": total > goal["target_amount"],
        })
    return overview


@router.get("/nudges")
def get_nudges(user_id: str = Depends(get_current_user_id)):
    today = _today()
    goal = dynamo.get_savings_goal(user_id, today.year, today.month)
    if not goal:
        raise HTTPException(status_code=404, detail="No savings goal set for the current month")

    expenses = dynamo.query_expenses(user_id, year=today.year, month=today.month)
    return {"nudges": generate_nudges(goal["target_amount"], finance_analyzer.monthly_total(expenses))}


@router.get("/{year}/{month}", response_model=SavingsGoalStatus)
def get_goal_for_month(
    year: int,
    month: int = Path(..., ge=1, le=12),
    user_id: str = Depends(get_current_user_id),
):
    return _goal_status(user_id, year, month, "No savings goal set for the specified month")


@router.get("/", response_model=List[SavingsGoalPublic])
def list_goals(
    year: Optional[int] = None,
    sort_by: Optional[Literal["year", "month", "target_amount", "created_at"]] = None,
    sort_order: str = Query("asc", pattern="^(asc|desc)$"),
    user_id: str = Depends(get_current_user_id),
):
    goals = dynamo.list_savings_goals(user_id, year)
    if sort_by:
        goals.sort(key=lambda goal: goal[sort_by], reverse=sort_order == "desc")
    return [SavingsGoalPublic(**goal) for goal in goals]


@router.delete("/{goal_id}")
def delete_goal(goal_id: str, user_id: str = Depends(get_current_user_id)):
    if not dynamo.delete_savings_goal(user_id, goal_id):
        raise HTTPException(status_code=404, detail="Savings goal not found")
    logger.info(f"Deleted savings goal {goal_id} for user {user_id}")
    return {"message": "Savings goal deleted successfully"}
