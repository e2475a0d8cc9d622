from datetime import date
from decimal import Decimal

import pytest

from app.utils.analyzer import (
    FinanceAnalyzer,
    month_window,
    parse_comparison_period,
    percentage,
    previous_month,
    ratio,
)

sample_expenses = [
    {"category": "Food", "amount": Decimal("50"), "date": "2024-05-01"},
    {"category": "Food", "amount": Decimal("30"), "date": "2024-05-03"},
    {"category": "Transport", "amount": Decimal("20"), "date": "2024-05-03"},
]


def test_calculate_totals():
    analyzer = FinanceAnalyzer()
    assert analyzer.monthly_total(sample_expenses) == Decimal("100")
    assert analyzer.category_totals(sample_expenses) == {"Food": Decimal("80"), "Transport": Decimal("20")}


def test_totals_are_exact_for_many_small_amounts():
    analyzer = FinanceAnalyzer()
    expenses = [{"category": "Food", "amount": Decimal("0.10"), "date": "2024-05-01"}] * 1000
    assert analyzer.monthly_total(expenses) == Decimal("100.00")


def test_category_distribution():
    result = FinanceAnalyzer().category_distribution(sample_expenses)
    assert result["total"] == Decimal("100")
    assert {(c["category"], c["amount"], c["percentage"]) for c in result["categories"]} == {
        ("Food", Decimal("80"), Decimal("80.00")),
        ("Transport", Decimal("20"), Decimal("20.00")),
    }


def test_category_distribution_percentages_sum_to_100():
    expenses = [
        {"category": "Food", "amount": Decimal("10"), "date": "2024-05-01"},
        {"category": "Health", "amount": Decimal("10"), "date": "2024-05-01"},
        {"category": "Other", "amount": Decimal("10"), "date": "2024-05-01"},
    ]
    result = FinanceAnalyzer().category_distribution(expenses)
    total_percentage = sum(c["percentage"] for c in result["categories"])
    assert abs(total_percentage - Decimal("100")) <= Decimal("0.01") * len(result["categories"])


def test_category_distribution_without_expenses():
    assert FinanceAnalyzer().category_distribution([]) == {"total": Decimal("0"), "categories": []}


def test_category_distribution_with_zero_total():
    expenses = [{"category": "Food", "amount": Decimal("0"), "date": "2024-05-01"}]
    result = FinanceAnalyzer().category_distribution(expenses)
    assert result["total"] == 0
    assert result["categories"][0]["percentage"] == 0


def test_percentage_guards_zero_denominator():
    assert percentage(Decimal("5"), Decimal("0")) == 0
    assert ratio(Decimal("5"), Decimal("0")) == 0


def test_ratio_keeps_full_precision():
    assert ratio(Decimal("30004"), Decimal("100000")) == Decimal("30.004")
    assert percentage(Decimal("30004"), Decimal("100000")) == Decimal("30.00")


def test_daily_trends():
    trends = FinanceAnalyzer().spending_trends(sample_expenses, "daily")
    assert trends == [
        {"date": "2024-05-01", "amount": Decimal("50")},
        {"date": "2024-05-03", "amount": Decimal("50")},
    ]


def test_weekly_trends_use_iso_weeks():
    expenses = [
        {"category": "Food", "amount": Decimal("5"), "date": "2024-12-30"},  # ISO week 2025-W01
        {"category": "Food", "amount": Decimal("7"), "date": "2025-01-05"},  # same week, Sunday
        {"category": "Food", "amount": Decimal("1"), "date": "2024-12-29"},  # 2024-W52
    ]
    trends = FinanceAnalyzer().spending_trends(expenses, "weekly")
    assert trends == [
        {"week": "2024-W52", "startDate": "2024-12-23", "endDate": "2024-12-29", "amount": Decimal("1")},
        {"week": "2025-W01", "startDate": "2024-12-30", "endDate": "2025-01-05", "amount": Decimal("12")},
    ]


def test_monthly_trends():
    expenses = sample_expenses + [{"category": "Food", "amount": Decimal("9"), "date": "2024-04-30"}]
    trends = FinanceAnalyzer().spending_trends(expenses, "monthly")
    assert trends == [
        {"year": 2024, "month": 4, "monthName": "April", "amount": Decimal("9")},
        {"year": 2024, "month": 5, "monthName": "May", "amount": Decimal("100")},
    ]


def test_unknown_trend_period_is_rejected():
    with pytest.raises(ValueError):
        FinanceAnalyzer().spending_trends(sample_expenses, "hourly")


def test_parse_comparison_period():
    assert parse_comparison_period("month-to-month", "2024-05") == {"year": 2024, "month": 5}
    assert parse_comparison_period("year-to-year", "2023") == {"year": 2023}
    with pytest.raises(ValueError):
        parse_comparison_period("month-to-month", "2024")
    with pytest.raises(ValueError):
        parse_comparison_period("month-to-month", "2024-13")
    with pytest.raises(ValueError):
        parse_comparison_period("week-to-week", "2024-05")


def test_category_comparison_deltas():
    previous = [
        {"category": "Food", "amount": Decimal("40"), "date": "2024-04-02"},
        {"category": "Health", "amount": Decimal("15"), "date": "2024-04-09"},
    ]
    result = FinanceAnalyzer().category_comparison("2024-05", "2024-04", sample_expenses, previous)

    assert result["current"] == {
        "period": "2024-05", "total": Decimal("100"),
        "categories": {"Food": Decimal("80"), "Transport": Decimal("20")},
    }
    assert result["previous"]["total"] == Decimal("55")
    assert result["changes"]["total"] == {"amount": Decimal("45"), "percentage": Decimal("81.82")}
    assert result["changes"]["categories"]["Food"] == {"amount": Decimal("40"), "percentage": Decimal("100.00")}
    # Not spent last period: percentage falls back to 0
    assert result["changes"]["categories"]["Transport"] == {"amount": Decimal("20"), "percentage": 0}
    assert result["changes"]["categories"]["Health"] == {"amount": Decimal("-15"), "percentage": Decimal("-100.00")}


def test_savings_progress_overspent_month():
    goals = [{"year": 2024, "month": 5, "target_amount": Decimal("500")}]
    result = FinanceAnalyzer().savings_progress(goals, {(2024, 5): Decimal("600")})
    month = result["monthlyProgress"][0]
    assert month["savedAmount"] == Decimal("-100")
    assert month["achievementPercentage"] == Decimal("-20.00")
    assert month["isGoalMet"] is False
    assert month["monthName"] == "May"


def test_savings_progress_goal_met_on_exact_spend():
    goals = [{"year": 2024, "month": 5, "target_amount": Decimal("500")}]
    result = FinanceAnalyzer().savings_progress(goals, {(2024, 5): Decimal("500")})
    assert result["monthlyProgress"][0]["savedAmount"] == 0
    assert result["monthlyProgress"][0]["isGoalMet"] is True


def test_savings_progress_averages_and_extremes():
    goals = [
        {"year": 2024, "month": 3, "target_amount": Decimal("100")},
        {"year": 2024, "month": 4, "target_amount": Decimal("200")},
        {"year": 2024, "month": 5, "target_amount": Decimal("100")},
    ]
    spent = {(2024, 3): Decimal("50"), (2024, 4): Decimal("100"), (2024, 5): Decimal("150")}
    result = FinanceAnalyzer().savings_progress(goals, spent)

    assert result["average"] == {
        "targetAmount": Decimal("133.33"),
        "savedAmount": Decimal("33.33"),
        "achievementRate": Decimal("16.67"),
    }
    # March and April tie at 50%; the first one wins
    assert (result["bestMonth"]["year"], result["bestMonth"]["month"]) == (2024, 3)
    assert result["worstMonth"]["month"] == 5
    assert result["monthlyProgress"][2]["achievementPercentage"] == Decimal("-50.00")


def test_savings_progress_without_goals():
    result = FinanceAnalyzer().savings_progress([], {})
    assert result["monthlyProgress"] == []
    assert result["bestMonth"] is None and result["worstMonth"] is None
    assert result["average"]["achievementRate"] == 0


def test_spending_summary():
    previous = [{"category": "Food", "amount": Decimal("80"), "date": "2024-04-10"}]
    goal = {"target_amount": Decimal("500")}
    result = FinanceAnalyzer().spending_summary(2024, 5, sample_expenses, previous, goal)

    current = result["currentMonth"]
    assert current["totalSpent"] == Decimal("100")
    assert current["topCategory"] == {"name": "Food", "amount": Decimal("80"), "percentage": Decimal("80.00")}
    assert current["averageDailySpend"] == Decimal("3.23")  # 100 / 31
    assert current["highestSpendDay"] == {"date": "2024-05-01", "amount": Decimal("50")}
    assert current["budgetProgress"] == {
        "savingsGoal": Decimal("500"),
        "remainingToSave": Decimal("400"),
        "percentageAchieved": Decimal("80.00"),
        "isOverspending": False,
    }
    assert result["previousMonth"] == {"year": 2024, "month": 4, "totalSpent": Decimal("80")}
    assert result["trend"]["monthlyChange"] == {"amount": Decimal("20"), "percentage": Decimal("25.00")}
    assert result["trend"]["direction"] == "increased"


def test_spending_summary_unchanged_month_reports_decreased():
    result = FinanceAnalyzer().spending_summary(2024, 5, sample_expenses, sample_expenses, None)
    assert result["trend"]["monthlyChange"]["amount"] == 0
    assert result["trend"]["direction"] == "decreased"
    assert result["currentMonth"]["budgetProgress"] is None


def test_spending_summary_overspending_goal_and_january_rollover():
    expenses = [{"category": "Shopping", "amount": Decimal("600"), "date": "2024-01-20"}]
    result = FinanceAnalyzer().spending_summary(2024, 1, expenses, [], {"target_amount": Decimal("500")})
    assert result["previousMonth"]["year"] == 2023
    assert result["previousMonth"]["month"] == 12
    assert result["trend"]["monthlyChange"]["percentage"] == 0
    progress = result["currentMonth"]["budgetProgress"]
    assert progress["remainingToSave"] == Decimal("-100")
    assert progress["percentageAchieved"] == Decimal("-20.00")
    assert progress["isOverspending"] is True


def test_spending_summary_empty_month():
    result = FinanceAnalyzer().spending_summary(2024, 2, [], [], None)
    assert result["currentMonth"]["topCategory"] is None
    assert result["currentMonth"]["highestSpendDay"] is None
    assert result["currentMonth"]["averageDailySpend"] == 0


def test_month_helpers():
    assert previous_month(2024, 1) == (2023, 12)
    assert month_window(date(2024, 2, 10), 4) == [(2023, 11), (2023, 12), (2024, 1), (2024, 2)]
    assert month_window(date(2024, 2, 10), 1) == [(2024, 2)]
