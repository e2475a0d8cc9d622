from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from app.core.security import create_access_token
from app.db import dynamo
from app.main import app
from app.routers import analytics, goals

TODAY = date(2024, 5, 15)


class InMemoryDynamo:
    """Stand-in for app.db.dynamo keeping items in dicts, stored the way DynamoDB would."""

    def __init__(self):
        self.users: Dict[str, Dict[str, Any]] = {}
        self.expenses: Dict[Tuple[str, str], Dict[str, Any]] = {}
        self.goals: Dict[Tuple[str, str], Dict[str, Any]] = {}

    @staticmethod
    def _store(item):
        return dynamo._from_dynamo(dynamo._convert_for_dynamo(item))

    # Users
    def get_user_by_email(self, email):
        return next((u for u in self.users.values() if u["email"] == email), None)

    def get_user_by_id(self, user_id):
        return self.users.get(user_id)

    def put_user(self, user_item):
        if user_item["user_id"] in self.users:
            return False
        self.users[user_item["user_id"]] = self._store(user_item)
        return True

    def update_user(self, user_id, updates):
        if user_id not in self.users:
            return None
        self.users[user_id].update(self._store(updates))
        return self.users[user_id]

    # Expenses
    def put_expense(self, expense_item):
        self.expenses[(expense_item["user_id"], expense_item["expense_id"])] = self._store(expense_item)
        return True

    def get_expense(self, user_id, expense_id):
        return self.expenses.get((user_id, expense_id))

    def query_expenses(
        self,
        user_id: str,
        year: Optional[int] = None,
        month: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        category: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        category = dynamo._convert_for_dynamo(category)
        return [
            dict(item) for (owner, _), item in self.expenses.items()
            if owner == user_id
            and (year is None or item["year"] == year)
            and (month is None or item["month"] == month)
            and (start_date is None or item["date"] >= start_date.isoformat())
            and (end_date is None or item["date"] <= end_date.isoformat())
            and (not category or item["category"] == category)
        ]

    def update_expense(self, user_id, expense_id, updates):
        item = self.expenses.get((user_id, expense_id))
        if item is None:
            return None
        item.update(self._store(updates))
        return dict(item)

    def delete_expense(self, user_id, expense_id):
        return self.expenses.pop((user_id, expense_id), None) is not None

    # Savings goals
    def upsert_savings_goal(self, user_id, year, month, target_amount):
        now = datetime.utcnow().isoformat()
        key = (user_id, dynamo.goal_period(year, month))
        existing = self.goals.get(key)
        goal = {
            "user_id": user_id,
            "period": key[1],
            "goal_id": existing["goal_id"] if existing else str(uuid4()),
            "created_at": existing["created_at"] if existing else now,
            "updated_at": now,
            "year": year,
            "month": month,
            "target_amount": Decimal(target_amount),
        }
        self.goals[key] = goal
        return dict(goal), existing is None

    def get_savings_goal(self, user_id, year, month):
        return self.goals.get((user_id, dynamo.goal_period(year, month)))

    def list_savings_goals(self, user_id, year=None):
        return [
            dict(goal) for (owner, period), goal in sorted(self.goals.items())
            if owner == user_id and (year is None or goal["year"] == year)
        ]

    def get_savings_goals_between(self, user_id, start, end):
        low, high = dynamo.goal_period(*start), dynamo.goal_period(*end)
        return [
            dict(goal) for (owner, period), goal in sorted(self.goals.items())
            if owner == user_id and low <= period <= high
        ]

    def delete_savings_goal(self, user_id, goal_id):
        for key, goal in list(self.goals.items()):
            if key[0] == user_id and goal["goal_id"] == goal_id:
                del self.goals[key]
                return True
        return False


PATCHED_FUNCTIONS = [
    "get_user_by_email", "get_user_by_id", "put_user", "update_user",
    "put_expense", "get_expense", "query_expenses", "update_expense", "delete_expense",
    "upsert_savings_goal", "get_savings_goal", "list_savings_goals",
    "get_savings_goals_between", "delete_savings_goal",
]


@pytest.fixture
def store(monkeypatch):
    fake = InMemoryDynamo()
    for name in PATCHED_FUNCTIONS:
        monkeypatch.setattr(dynamo, name, getattr(fake, name))
    monkeypatch.setattr(analytics, "_today", lambda: TODAY)
    monkeypatch.setattr(goals, "_today", lambda: TODAY)
    return fake


@pytest.fixture
def client(store):
    return TestClient(app)


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {create_access_token({'sub': 'user-1'})}"}


@pytest.fixture
def other_user_headers():
    return {"Authorization": f"Bearer {create_access_token({'sub': 'user-2'})}"}


@pytest.fixture
def add_expense(client, auth_headers):
    def _add(amount, category, day, description="", headers=None):
        response = client.post(
            "/api/expenses/",
            json={"amount": amount, "category": category, "date": day, "description": description},
            headers=headers or auth_headers,
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _add
