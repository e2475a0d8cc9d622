"""
Analytics Router
Category distribution, spending trends, period comparisons, savings progress,
insights and the monthly spending summary
"""
import logging
from datetime import date, datetime, timedelta
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from app.core.security import get_current_user_id
from app.db import dynamo
from app.utils.analyzer import (
    DEFAULT_TREND_WINDOW_DAYS,
    TREND_PERIODS,
    FinanceAnalyzer,
    month_window,
    parse_comparison_period,
    previous_month,
)
from app.utils.insights import generate_insights

router = APIRouter()
logger = logging.getLogger(__name__)
finance_analyzer = FinanceAnalyzer()


def _today() -> date:
    return datetime.utcnow().date()


@router.get("/category-distribution")
def category_distribution(
    year: Optional[int] = None,
    month: Optional[int] = Query(None, ge=1, le=12),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    user_id: str = Depends(get_current_user_id),
):
    """
    Spending per category with each category's share of the total.
    A (year, month) pair takes precedence over a (startDate, endDate) range.
    """
    if year is not None and month is not None:
        expenses = dynamo.query_expenses(user_id, year=year, month=month)
    elif start_date is not None and end_date is not None:
        expenses = dynamo.query_expenses(user_id, start_date=start_date, end_date=end_date)
    else:
        expenses = dynamo.query_expenses(user_id)
    return finance_analyzer.category_distribution(expenses)


@router.get("/spending-trends")
def spending_trends(
    period: str,
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    category: Optional[str] = None,
    user_id: str = Depends(get_current_user_id),
):
    if period not in TREND_PERIODS:
        raise HTTPException(status_code=400, detail="Invalid period specified")

    today = _today()
    end = end_date or today
    start = start_date or today - timedelta(days=DEFAULT_TREND_WINDOW_DAYS)
    expenses = dynamo.query_expenses(user_id, start_date=start, end_date=end, category=category)
    return {"trends": finance_analyzer.spending_trends(expenses, period)}


@router.get("/category-comparison")
def category_comparison(
    compare_type: Optional[str] = Query(None, alias="compareType"),
    current: Optional[str] = None,
    previous: Optional[str] = None,
    user_id: str = Depends(get_current_user_id),
):
    if not compare_type or not current or not previous:
        raise HTTPException(status_code=400, detail="Missing required parameters")

    try:
        current_filter = parse_comparison_period(compare_type, current)
        previous_filter = parse_comparison_period(compare_type, previous)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    current_expenses = dynamo.query_expenses(user_id, **current_filter)
    previous_expenses = dynamo.query_expenses(user_id, **previous_filter)
    return finance_analyzer.category_comparison(current, previous, current_expenses, previous_expenses)


@router.get("/savings-progress")
def savings_progress(
    months: int = Query(6, ge=1, le=120),
    user_id: str = Depends(get_current_user_id),
):
    window = month_window(_today(), months)
    goals = dynamo.get_savings_goals_between(user_id, window[0], window[-1])

    monthly_expenses = {}
    for goal in goals:
        key = (goal["year"], goal["month"])
        expenses = dynamo.query_expenses(user_id, year=key[0], month=key[1])
        monthly_expenses[key] = finance_analyzer.monthly_total(expenses)

    return finance_analyzer.savings_progress(goals, monthly_expenses)


@router.get("/insights")
def financial_insights(user_id: str = Depends(get_current_user_id)):
    today = _today()
    prev_year, prev_month = previous_month(today.year, today.month)

    current_expenses = dynamo.query_expenses(user_id, year=today.year, month=today.month)
    previous_expenses = dynamo.query_expenses(user_id, year=prev_year, month=prev_month)
    goal = dynamo.get_savings_goal(user_id, today.year, today.month)

    insights = generate_insights(
        finance_analyzer.category_totals(current_expenses),
        finance_analyzer.category_totals(previous_expenses),
        goal,
    )
    logger.info(f"Generated {len(insights)} insights for user {user_id}")
    return {"insights": insights}


@router.get("/summary")
def spending_summary(user_id: str = Depends(get_current_user_id)):
    today = _today()
    prev_year, prev_month = previous_month(today.year, today.month)

    current_expenses = dynamo.query_expenses(user_id, year=today.year, month=today.month)
    previous_expenses = dynamo.query_expenses(user_id, year=prev_year, month=prev_month)
    goal = dynamo.get_savings_goal(user_id, today.year, today.month)

    return finance_analyzer.spending_summary(
        today.year, today.month, current_expenses, previous_expenses, goal
    )
