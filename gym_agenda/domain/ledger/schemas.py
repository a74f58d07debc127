"""Ledger domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import validate_positive_amount


class BankResponse(BaseModel):
    amount: float


class LedgerEntryResponse(BaseModel):
    id: int
    amount: float
    cause: str
    reference: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True


class RenewRequest(BaseModel):
    """Schema for a subscription renewal (the client reports the cash payment)"""

    months: int
    price: float

    @field_validator("months")
    @classmethod
    def validate_months(cls, v: int) -> int:
        if v < 1:
            raise ValueError("months must be at least 1")
        return v

    @field_validator("price")
    @classmethod
    def validate_price(cls, v: float) -> float:
        return validate_positive_amount(v, "price")


class SubscriptionResponse(BaseModel):
    name: str
    subscriptionExpiry: datetime
    subscriptionStatus: str


class ExpenseCreate(BaseModel):
    """Schema for recording an expense"""

    name: str
    cost: float
    date: datetime

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("name is required")
        return v.strip()

    @field_validator("cost")
    @classmethod
    def validate_cost(cls, v: float) -> float:
        return validate_positive_amount(v)


class ExpenseResponse(BaseModel):
    id: str
    name: str
    cost: float
    date: datetime

    class Config:
        from_attributes = True


class ExpenseDeleteResponse(BaseModel):
    deleted: str
    refunded: float
    bank: float


class GoalCreate(BaseModel):
    """Schema for creating a savings goal"""

    name: str
    cost: float

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("name is required")
        return v.strip()

    @field_validator("cost")
    @classmethod
    def validate_cost(cls, v: float) -> float:
        return validate_positive_amount(v)


class GoalResponse(BaseModel):
    id: str
    name: str
    cost: float
    status: str
    createdAt: datetime
    completedAt: Optional[datetime] = None
    progress: float = 0.0


class GoalsResponse(BaseModel):
    bank: float
    goals: list[GoalResponse]
