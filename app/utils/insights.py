"""
Insight and nudge rules.

Both rule sets turn aggregated numbers for the current month into short
advisory messages. They are independent features: insights are typed
messages with a severity, nudges are plain strings for the goal screen.
"""
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, List, Optional

from app.utils.analyzer import ZERO, clamped_achievement, ratio, to_decimal

CATEGORY_INCREASE_THRESHOLD = Decimal("30")
SAVINGS_PROGRESS_THRESHOLD = Decimal("75")
CATEGORY_SHARE_THRESHOLD = Decimal("30")
NO_SPEND_DAY_RATIO = Decimal("0.8")


def _whole_percent(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def generate_insights(
    current_totals: Dict[str, Decimal],
    previous_totals: Dict[str, Decimal],
    goal: Optional[Dict[str, Any]] = None,
) -> List[Dict[str, Any]]:
    """
    Apply the monthly insight rules to per-category totals of the current and
    previous month. Goal-based rules are skipped when no goal is set.
    """
    insights = []
    total_spent = sum(current_totals.values(), ZERO)

    # 1. Category spending compared with last month
    for category, amount in current_totals.items():
        if category not in previous_totals:
            continue
        previous_amount = previous_totals[category]
        change = ratio(amount - previous_amount, previous_amount)
        if change > CATEGORY_INCREASE_THRESHOLD:
            insights.append({
                "type": "overspending_warning",
                "category": category,
                "message": f"Your {category} spending has increased by {_whole_percent(change)}% this month.",
                "severity": "warning",
            })

    # 2. Savings goal progress
    if goal is not None:
        target = to_decimal(goal["target_amount"])
        achievement = ratio(target - total_spent, target)
        if achievement >= SAVINGS_PROGRESS_THRESHOLD:
            insights.append({
                "type": "savings_progress",
                "message": f"You're {_whole_percent(achievement)}% of the way to your monthly savings goal!",
                "severity": "positive",
            })

    # 3. Dominant categories
    for category, amount in current_totals.items():
        share = ratio(amount, total_spent)
        if share > CATEGORY_SHARE_THRESHOLD:
            insights.append({
                "type": "category_insight",
                "category": category,
                "message": f"{category} makes up {_whole_percent(share)}% of your monthly expenses.",
                "severity": "info",
            })

    # 4. No-spend day suggestion
    if goal is not None and total_spent > to_decimal(goal["target_amount"]) * NO_SPEND_DAY_RATIO:
        insights.append({
            "type": "suggestion",
            "message": "Try a no-spend day tomorrow to get closer to your savings goal.",
            "severity": "tip",
        })

    return insights


def generate_nudges(target_amount: Decimal, total_expenses: Decimal) -> List[str]:
    """Encouragement messages for the current month's goal, in display order."""
    target = to_decimal(target_amount)
    achieved = clamped_achievement(target, total_expenses, exact=True)
    nudges = []

    if achieved >= 50:
        nudges.append("You're halfway to your savings goal!")
    if achieved >= 75:
        nudges.append("You're almost there! Keep pushing towards your savings goal!")
    if total_expenses > target:
        nudges.append("You've spent more than your savings target this month. Time to review your expenses!")
    if total_expenses < target / 2:
        nudges.append("Try a no-spend day tomorrow?")
    if achieved >= 100:
        nudges.append("Congratulations! You've achieved your savings goal for this month!")
    if achieved < 25:
        nudges.append("You're just starting! Keep going, every little bit counts!")

    return nudges
