"""Ledger router - FastAPI endpoints for the bank, subscriptions, expenses and goals"""

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user, require_client, require_owner
from ...database import get_db
from ...models import User
from ..users.status import subscription_status
from .schemas import (
    BankResponse,
    ExpenseCreate,
    ExpenseDeleteResponse,
    ExpenseResponse,
    GoalCreate,
    GoalResponse,
    GoalsResponse,
    LedgerEntryResponse,
    RenewRequest,
    SubscriptionResponse,
)
from .service import LedgerService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ledger", tags=["Ledger"])


def get_ledger_service(db: Session = Depends(get_db)) -> LedgerService:
    """Dependency injection for LedgerService"""
    return LedgerService(db)


# ============================================================================
# BANK
# ============================================================================


@router.get("/bank", response_model=BankResponse)
async def get_bank(
    _owner: User = Depends(require_owner),
    service: LedgerService = Depends(get_ledger_service),
):
    """Current cash total"""
    return BankResponse(amount=service.get_bank_total())


@router.get("/entries", response_model=list[LedgerEntryResponse])
async def get_entries(
    limit: int = Query(100, ge=1, le=1000),
    _owner: User = Depends(require_owner),
    service: LedgerService = Depends(get_ledger_service),
):
    """Audit trail of bank movements, newest first"""
    return service.get_entries(limit)


# ============================================================================
# SUBSCRIPTIONS
# ============================================================================


@router.post("/subscription/renew", response_model=SubscriptionResponse)
async def renew_subscription(
    data: RenewRequest,
    client: User = Depends(require_client),
    service: LedgerService = Depends(get_ledger_service),
    db: Session = Depends(get_db),
):
    """Extend the caller's subscription"""
    name = client.name
    service.renew_subscription(name, data.months, data.price)
    user = db.get(User, name)
    return SubscriptionResponse(
        name=name,
        subscriptionExpiry=user.subscription_expiry,
        subscriptionStatus=subscription_status(user),
    )


@router.post("/subscription/settle-overdue", response_model=SubscriptionResponse)
async def settle_overdue(
    client: User = Depends(require_client),
    service: LedgerService = Depends(get_ledger_service),
    db: Session = Depends(get_db),
):
    """Pay the missed month together with the current one"""
    name = client.name
    service.settle_overdue(name)
    user = db.get(User, name)
    return SubscriptionResponse(
        name=name,
        subscriptionExpiry=user.subscription_expiry,
        subscriptionStatus=subscription_status(user),
    )


# ============================================================================
# EXPENSES
# ============================================================================


@router.get("/expenses", response_model=list[ExpenseResponse])
async def list_expenses(
    _user: User = Depends(get_current_user),
    service: LedgerService = Depends(get_ledger_service),
):
    """All expenses, newest first"""
    return service.list_expenses()


@router.post("/expenses", response_model=ExpenseResponse)
async def record_expense(
    data: ExpenseCreate,
    _owner: User = Depends(require_owner),
    service: LedgerService = Depends(get_ledger_service),
):
    """Record an expense; its cost is taken from the bank"""
    return service.record_expense(data.name, data.cost, data.date)


@router.delete("/expenses/{expense_id}", response_model=ExpenseDeleteResponse)
async def delete_expense(
    expense_id: str,
    _owner: User = Depends(require_owner),
    service: LedgerService = Depends(get_ledger_service),
):
    """Delete an expense; its cost goes back to the bank"""
    return service.delete_expense(expense_id)


# ============================================================================
# GOALS
# ============================================================================


@router.get("/goals", response_model=GoalsResponse)
async def list_goals(
    _owner: User = Depends(require_owner),
    service: LedgerService = Depends(get_ledger_service),
):
    """Savings goals with progress; goals the bank now covers are completed first"""
    return service.list_goals()


@router.post("/goals", response_model=GoalResponse)
async def create_goal(
    data: GoalCreate,
    _owner: User = Depends(require_owner),
    service: LedgerService = Depends(get_ledger_service),
):
    """Create a savings goal"""
    goal = service.create_goal(data.name, data.cost)
    return GoalResponse(
        id=goal.id,
        name=goal.name,
        cost=goal.cost,
        status=goal.status,
        createdAt=goal.created_at,
        completedAt=goal.completed_at,
    )


@router.delete("/goals/{goal_id}")
async def delete_goal(
    goal_id: str,
    _owner: User = Depends(require_owner),
    service: LedgerService = Depends(get_ledger_service),
):
    """Delete a savings goal (no effect on the bank)"""
    service.delete_goal(goal_id)
    return {"message": "Goal deleted successfully"}


__all__ = ["router", "get_ledger_service"]
