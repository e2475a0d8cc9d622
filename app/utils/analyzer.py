from __future__ import annotations

import calendar
from collections import defaultdict
from dataclasses import asdict, dataclass
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Iterable, List, Optional, Tuple

TREND_PERIODS = ("daily", "weekly", "monthly")
COMPARE_TYPES = ("month-to-month", "year-to-year")
DEFAULT_TREND_WINDOW_DAYS = 30

MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)

ZERO = Decimal("0")
HUNDRED = Decimal("100")
CENT = Decimal("0.01")


def to_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def ratio(part: Any, whole: Any) -> Decimal:
    """part / whole * 100 unrounded; 0 when whole is 0."""
    whole = to_decimal(whole)
    if whole == 0:
        return ZERO
    return to_decimal(part) / whole * HUNDRED


def percentage(part: Any, whole: Any) -> Decimal:
    """part / whole * 100 rounded to cents; 0 when whole is 0."""
    return ratio(part, whole).quantize(CENT, rounding=ROUND_HALF_UP)


def round_money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def expense_date(expense: Dict[str, Any]) -> date:
    value = expense["date"]
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def shift_month(year: int, month: int, offset: int) -> Tuple[int, int]:
    index = year * 12 + (month - 1) + offset
    return index // 12, index % 12 + 1


def previous_month(year: int, month: int) -> Tuple[int, int]:
    return shift_month(year, month, -1)


def month_window(today: date, months: int) -> List[Tuple[int, int]]:
    """The trailing `months` (year, month) pairs ending at today's month, oldest first."""
    return [shift_month(today.year, today.month, offset) for offset in range(-(months - 1), 1)]


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def parse_comparison_period(compare_type: str, value: str) -> Dict[str, int]:
    """
    Turn a comparison period identifier into a year/month filter.
    month-to-month expects "YYYY-MM", year-to-year expects "YYYY".
    """
    if compare_type not in COMPARE_TYPES:
        raise ValueError(f"Invalid compareType '{compare_type}'")

    try:
        if compare_type == "month-to-month":
            year_part, month_part = value.split("-")
            year, month = int(year_part), int(month_part)
            if not 1 <= month <= 12:
                raise ValueError
            return {"year": year, "month": month}
        return {"year": int(value)}
    except ValueError:
        expected = "YYYY-MM" if compare_type == "month-to-month" else "YYYY"
        raise ValueError(f"Invalid period '{value}', expected {expected}") from None


@dataclass
class MonthlyProgress:
    """Savings outcome of one month against its goal."""

    year: int
    month: int
    monthName: str
    targetAmount: Decimal
    totalExpenses: Decimal
    savedAmount: Decimal
    achievementPercentage: Decimal
    isGoalMet: bool

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class FinanceAnalyzer:
    """
    Aggregation engine behind the analytics endpoints. Every method works on
    expense records already scoped to one user (dicts with amount, category
    and date) so the same logic serves routes and tests alike.
    """

    def monthly_total(self, expenses: Iterable[Dict[str, Any]]) -> Decimal:
        return sum((to_decimal(exp.get("amount", 0)) for exp in expenses), ZERO)

    def category_totals(self, expenses: Iterable[Dict[str, Any]]) -> Dict[str, Decimal]:
        """Grouped sums keyed by category, in order of first appearance."""
        totals: Dict[str, Decimal] = {}
        for exp in expenses:
            category = exp["category"]
            totals[category] = totals.get(category, ZERO) + to_decimal(exp.get("amount", 0))
        return totals

    def daily_totals(self, expenses: Iterable[Dict[str, Any]]) -> Dict[date, Decimal]:
        totals: Dict[date, Decimal] = defaultdict(lambda: ZERO)
        for exp in expenses:
            totals[expense_date(exp)] += to_decimal(exp.get("amount", 0))
        return dict(totals)

    def category_distribution(self, expenses: List[Dict[str, Any]]) -> Dict[str, Any]:
        totals = self.category_totals(expenses)
        if not totals:
            return {"total": ZERO, "categories": []}

        total = sum(totals.values(), ZERO)
        categories = [
            {"category": category, "amount": amount, "percentage": percentage(amount, total)}
            for category, amount in sorted(totals.items(), key=lambda item: item[1], reverse=True)
        ]
        return {"total": total, "categories": categories}

    def spending_trends(self, expenses: List[Dict[str, Any]], period: str) -> List[Dict[str, Any]]:
        """Bucket expenses by day, ISO week or month; buckets sorted by start date."""
        if period not in TREND_PERIODS:
            raise ValueError("Invalid period specified")

        buckets: Dict[Tuple[int, ...], Decimal] = defaultdict(lambda: ZERO)
        for exp in expenses:
            day = expense_date(exp)
            if period == "daily":
                key = (day.year, day.month, day.day)
            elif period == "weekly":
                iso_year, iso_week, _ = day.isocalendar()
                key = (iso_year, iso_week)
            else:
                key = (day.year, day.month)
            buckets[key] += to_decimal(exp.get("amount", 0))

        trends = []
        for key in sorted(buckets):
            amount = buckets[key]
            if period == "daily":
                trends.append({"date": date(*key).isoformat(), "amount": amount})
            elif period == "weekly":
                iso_year, iso_week = key
                start = date.fromisocalendar(iso_year, iso_week, 1)
                trends.append({
                    "week": f"{iso_year}-W{iso_week:02d}",
                    "startDate": start.isoformat(),
                    "endDate": (start + timedelta(days=6)).isoformat(),
                    "amount": amount,
                })
            else:
                year, month = key
                trends.append({
                    "year": year,
                    "month": month,
                    "monthName": MONTH_NAMES[month - 1],
                    "amount": amount,
                })
        return trends

    def category_comparison(
        self,
        current_period: str,
        previous_period: str,
        current_expenses: List[Dict[str, Any]],
        previous_expenses: List[Dict[str, Any]],
    ) -> Dict[str, Any]:
        current_categories = self.category_totals(current_expenses)
        previous_categories = self.category_totals(previous_expenses)
        current_total = sum(current_categories.values(), ZERO)
        previous_total = sum(previous_categories.values(), ZERO)

        changes: Dict[str, Any] = {
            "total": {
                "amount": current_total - previous_total,
                "percentage": percentage(current_total - previous_total, previous_total),
            },
            "categories": {},
        }
        all_categories = list(current_categories)
        all_categories += [cat for cat in previous_categories if cat not in current_categories]
        for category in all_categories:
            current_amount = current_categories.get(category, ZERO)
            previous_amount = previous_categories.get(category, ZERO)
            changes["categories"][category] = {
                "amount": current_amount - previous_amount,
                "percentage": percentage(current_amount - previous_amount, previous_amount),
            }

        return {
            "current": {"period": current_period, "total": current_total, "categories": current_categories},
            "previous": {"period": previous_period, "total": previous_total, "categories": previous_categories},
            "changes": changes,
        }

    def savings_progress(
        self,
        goals: List[Dict[str, Any]],
        monthly_expenses: Dict[Tuple[int, int], Decimal],
    ) -> Dict[str, Any]:
        """
        Compare each month's goal with what was spent that month.

        ``goals`` must be in chronological order; ``monthly_expenses`` maps
        (year, month) to that month's total. Achievement is uncapped and goes
        negative once spending passes the target.
        """
        progress: List[MonthlyProgress] = []
        for goal in goals:
            year, month = int(goal["year"]), int(goal["month"])
            target = to_decimal(goal["target_amount"])
            spent = monthly_expenses.get((year, month), ZERO)
            saved = target - spent
            progress.append(MonthlyProgress(
                year=year,
                month=month,
                monthName=MONTH_NAMES[month - 1],
                targetAmount=target,
                totalExpenses=spent,
                savedAmount=saved,
                achievementPercentage=percentage(saved, target),
                isGoalMet=saved >= 0,
            ))

        if not progress:
            return {
                "average": {"targetAmount": ZERO, "savedAmount": ZERO, "achievementRate": ZERO},
                "monthlyProgress": [],
                "bestMonth": None,
                "worstMonth": None,
            }

        count = Decimal(len(progress))
        average = {
            "targetAmount": round_money(sum((m.targetAmount for m in progress), ZERO) / count),
            "savedAmount": round_money(sum((m.savedAmount for m in progress), ZERO) / count),
            "achievementRate": round_money(sum((m.achievementPercentage for m in progress), ZERO) / count),
        }

        best = worst = progress[0]
        for month_progress in progress[1:]:
            if month_progress.achievementPercentage > best.achievementPercentage:
                best = month_progress
            if month_progress.achievementPercentage < worst.achievementPercentage:
                worst = month_progress

        return {
            "average": average,
            "monthlyProgress": [m.to_dict() for m in progress],
            "bestMonth": best.to_dict(),
            "worstMonth": worst.to_dict(),
        }

    def spending_summary(
        self,
        year: int,
        month: int,
        current_expenses: List[Dict[str, Any]],
        previous_expenses: List[Dict[str, Any]],
        goal: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Current month at a glance, compared with the month before."""
        prev_year, prev_month = previous_month(year, month)
        categories = self.category_totals(current_expenses)
        total_spent = sum(categories.values(), ZERO)

        top_category = None
        for name, amount in categories.items():
            if top_category is None or amount > top_category["amount"]:
                top_category = {"name": name, "amount": amount}
        if top_category is not None:
            top_category["percentage"] = percentage(top_category["amount"], total_spent)

        highest_spend_day = None
        for day, amount in sorted(self.daily_totals(current_expenses).items()):
            if highest_spend_day is None or amount > highest_spend_day["amount"]:
                highest_spend_day = {"date": day.isoformat(), "amount": amount}

        budget_progress = None
        if goal is not None:
            target = to_decimal(goal["target_amount"])
            budget_progress = {
                "savingsGoal": target,
                "remainingToSave": target - total_spent,
                "percentageAchieved": percentage(target - total_spent, target),
                "isOverspending": total_spent > target,
            }

        previous_total = self.monthly_total(previous_expenses)
        monthly_change = total_spent - previous_total

        return {
            "currentMonth": {
                "year": year,
                "month": month,
                "totalSpent": total_spent,
                "budgetProgress": budget_progress,
                "topCategory": top_category,
                "averageDailySpend": round_money(total_spent / days_in_month(year, month)),
                "highestSpendDay": highest_spend_day,
            },
            "previousMonth": {
                "year": prev_year,
                "month": prev_month,
                "totalSpent": previous_total,
            },
            "trend": {
                "monthlyChange": {
                    "amount": monthly_change,
                    "percentage": percentage(monthly_change, previous_total),
                },
                # Zero change is reported as decreased
                "direction": "increased" if monthly_change > 0 else "decreased",
            },
        }

    def goal_status(self, goal: Dict[str, Any], total_expenses: Decimal) -> Dict[str, Any]:
        """Goal record plus spending figures; percentage achieved is clamped to 0-100."""
        target = to_decimal(goal["target_amount"])
        return {
            **goal,
            "total_expenses": total_expenses,
            "remaining_amount": target - total_expenses,
            "percentage_achieved": clamped_achievement(target, total_expenses),
            "is_overspending": total_expenses > target,
        }


def clamped_achievement(target: Decimal, spent: Decimal, exact: bool = False) -> Decimal:
    """Share of the target left unspent, limited to 0-100. Rounded to cents unless exact."""
    achieved = ratio(target - spent, target) if exact else percentage(target - spent, target)
    return min(HUNDRED, max(ZERO, achieved))
