from datetime import date as date_type
from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, Field

from app.models.common import Money


class ExpenseCategory(str, Enum):
    FOOD = "Food"
    TRANSPORT = "Transport"
    ENTERTAINMENT = "Entertainment"
    SHOPPING = "Shopping"
    HEALTH = "Health"
    OTHER = "Other"


class ExpenseCreate(BaseModel):
    amount: Money = Field(..., ge=0)
    category: ExpenseCategory
    description: Optional[str] = ""
    date: date_type = Field(default_factory=lambda: datetime.utcnow().date())


class ExpenseUpdate(BaseModel):
    # PUT replaces every mutable field
    amount: Money = Field(..., ge=0)
    category: ExpenseCategory
    description: Optional[str] = ""
    date: date_type


class ExpenseInDB(BaseModel):
    user_id: str
    expense_id: str = Field(default_factory=lambda: str(uuid4()))
    amount: Money
    category: ExpenseCategory
    description: Optional[str] = ""
    date: date_type
    year: int
    month: int
    created_at: str = Field(default_factory=lambda: datetime.utcnow().isoformat())

    @classmethod
    def from_payload(cls, user_id: str, payload: ExpenseCreate) -> "ExpenseInDB":
        """Build a stored record, deriving year/month from the expense date."""
        return cls(
            user_id=user_id,
            year=payload.date.year,
            month=payload.date.month,
            **payload.model_dump(),
        )


class ExpensePublic(BaseModel):
    expense_id: str
    amount: Money
    category: ExpenseCategory
    description: Optional[str] = ""
    date: date_type
    year: int
    month: int
    created_at: Optional[str] = None
