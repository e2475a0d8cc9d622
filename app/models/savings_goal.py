from typing import Optional

from pydantic import BaseModel, Field

from app.models.common import Money


class SavingsGoalUpsert(BaseModel):
    target_amount: Money = Field(..., ge=0)
    year: int = Field(..., ge=1, le=9999)
    month: int = Field(..., ge=1, le=12)


class SavingsGoalPublic(BaseModel):
    goal_id: str
    target_amount: Money
    year: int
    month: int
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class SavingsGoalStatus(SavingsGoalPublic):
    """A goal together with how the month's spending measures up against it."""

    total_expenses: Money
    remaining_amount: Money
    percentage_achieved: Money
    is_overspending: bool
