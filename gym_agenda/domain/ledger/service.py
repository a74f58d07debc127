"""Ledger service - Bank movements, subscription payments, expenses and savings goals"""

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...config import MONTHLY_FEE
from ...database import run_in_transaction
from ...models import Expense, Goal, User
from ...shared.timeutils import end_of_month, utcnow
from ..users.status import STATUS_OVERDUE, subscription_status
from .repository import LedgerRepository

logger = logging.getLogger(__name__)

# Ledger entry causes
CAUSE_SIGNUP = "signup"
CAUSE_RENEWAL = "renewal"
CAUSE_OVERDUE = "overdue_settlement"
CAUSE_EXPENSE = "expense"
CAUSE_EXPENSE_REFUND = "expense_refund"
CAUSE_BLOCK_REFUND = "block_refund"
CAUSE_UNBLOCK = "unblock_payment"

GOAL_ACTIVE = "active"
GOAL_COMPLETED = "completed"

# Settling an overdue subscription pays last month and the current one
OVERDUE_MONTHS = 2


def move_money(db: Session, amount: float, cause: str, reference: Optional[str] = None) -> float:
    """
    Apply a signed bank movement inside the caller's transaction.

    The bank is read and rewritten (never blindly incremented) and an audit
    entry is appended, so the bank total always equals the sum of the entries.
    """
    bank = LedgerRepository.get_or_create_bank(db)
    bank.amount = (bank.amount or 0.0) + amount
    LedgerRepository.add_entry(db, amount, cause, reference)
    return bank.amount


def apply_signup_payment(db: Session, user: User, now: Optional[datetime] = None) -> None:
    """First month paid at registration: active until the end of the current month"""
    user.subscription_expiry = end_of_month(now)
    move_money(db, MONTHLY_FEE, CAUSE_SIGNUP, user.name)


def _as_naive_utc(moment: datetime) -> datetime:
    if moment.tzinfo is not None:
        return moment.astimezone(timezone.utc).replace(tzinfo=None)
    return moment


class LedgerService:
    """Service layer for the shared ledger"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = LedgerRepository()

    # ------------------------------------------------------------------
    # Bank
    # ------------------------------------------------------------------

    def get_bank_total(self) -> float:
        bank = self.repo.get_bank(self.db)
        return float(bank.amount) if bank else 0.0

    def get_entries(self, limit: int = 100):
        return self.repo.get_entries(self.db, limit)

    def ensure_bank(self) -> None:
        run_in_transaction(self.db, self.repo.get_or_create_bank, name="seed_bank")

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def renew_subscription(
        self,
        user_name: str,
        months: int,
        price: float,
        now: Optional[datetime] = None,
    ) -> datetime:
        """
        Extend a subscription by ``months`` and credit ``price`` to the bank.

        The extension starts from the later of now and the current expiry and
        always ends on the last day of a month at 23:59:59.999.
        """
        if months < 1:
            raise HTTPException(status_code=400, detail="months must be at least 1")
        if price <= 0:
            raise HTTPException(status_code=400, detail="price must be a positive number")
        now = now or utcnow()

        def _renew(db: Session) -> datetime:
            user = db.get(User, user_name)
            if not user:
                raise HTTPException(status_code=404, detail="User not found")

            current = user.subscription_expiry
            base = current if current and current > now else now
            user.subscription_expiry = end_of_month(base, months)
            user.is_suspended = False
            move_money(db, price, CAUSE_RENEWAL, user_name)
            return user.subscription_expiry

        new_expiry = run_in_transaction(self.db, _renew, name="renew_subscription")
        logger.info(f"💳 {user_name} renewed {months} month(s) for {price:.2f}, expiry {new_expiry.isoformat()}")
        return new_expiry

    def settle_overdue(self, user_name: str, now: Optional[datetime] = None) -> datetime:
        """Pay last month and the current one; active until the end of this month"""
        now = now or utcnow()
        amount = MONTHLY_FEE * OVERDUE_MONTHS

        def _settle(db: Session) -> datetime:
            user = db.get(User, user_name)
            if not user:
                raise HTTPException(status_code=404, detail="User not found")
            if subscription_status(user, now) != STATUS_OVERDUE:
                raise HTTPException(status_code=409, detail="Subscription is not overdue")

            user.subscription_expiry = end_of_month(now)
            move_money(db, amount, CAUSE_OVERDUE, user_name)
            return user.subscription_expiry

        new_expiry = run_in_transaction(self.db, _settle, name="settle_overdue")
        logger.info(f"💳 {user_name} settled overdue subscription ({amount:.2f})")
        return new_expiry

    # ------------------------------------------------------------------
    # Expenses
    # ------------------------------------------------------------------

    def list_expenses(self) -> list[Expense]:
        return self.repo.get_expenses(self.db)

    def record_expense(self, name: str, cost: float, date: datetime) -> Expense:
        """Create an expense and debit the bank in one transaction"""
        name = (name or "").strip()
        if not name:
            raise HTTPException(status_code=400, detail="Expense name is required")
        if cost is None or cost <= 0:
            raise HTTPException(status_code=400, detail="Expense cost must be a positive number")
        if date is None:
            raise HTTPException(status_code=400, detail="Expense date is required")

        def _record(db: Session) -> Expense:
            expense = Expense(name=name, cost=cost, date=_as_naive_utc(date))
            db.add(expense)
            db.flush()
            move_money(db, -cost, CAUSE_EXPENSE, expense.id)
            return expense

        expense = run_in_transaction(self.db, _record, name="record_expense")
        logger.info(f"🧾 Expense '{name}' recorded ({cost:.2f})")
        return expense

    def delete_expense(self, expense_id: str) -> dict:
        """Delete an expense and refund its cost to the bank in one transaction"""

        def _delete(db: Session) -> dict:
            expense = self.repo.get_expense(db, expense_id)
            if not expense:
                raise HTTPException(status_code=404, detail="Expense not found")
            cost = expense.cost
            db.delete(expense)
            balance = move_money(db, cost, CAUSE_EXPENSE_REFUND, expense_id)
            return {"deleted": expense_id, "refunded": cost, "bank": balance}

        result = run_in_transaction(self.db, _delete, name="delete_expense")
        logger.info(f"🗑️ Expense {expense_id} deleted, refunded {result['refunded']:.2f}")
        return result

    # ------------------------------------------------------------------
    # Goals
    # ------------------------------------------------------------------

    def create_goal(self, name: str, cost: float) -> Goal:
        name = (name or "").strip()
        if not name:
            raise HTTPException(status_code=400, detail="Goal name is required")
        if cost is None or cost <= 0:
            raise HTTPException(status_code=400, detail="Goal cost must be a positive number")

        def _create(db: Session) -> Goal:
            goal = Goal(name=name, cost=cost, status=GOAL_ACTIVE)
            db.add(goal)
            return goal

        return run_in_transaction(self.db, _create, name="create_goal")

    def delete_goal(self, goal_id: str) -> None:
        def _delete(db: Session) -> None:
            goal = self.repo.get_goal(db, goal_id)
            if not goal:
                raise HTTPException(status_code=404, detail="Goal not found")
            db.delete(goal)

        run_in_transaction(self.db, _delete, name="delete_goal")

    def evaluate_goals(self, now: Optional[datetime] = None) -> list[Goal]:
        """
        Complete every active goal the bank total now covers.

        The bank is read outside the goal update: completion is advisory and a
        slightly stale total only delays it to the next evaluation.
        """
        total = self.get_bank_total()
        completed_at = now or utcnow()

        def _evaluate(db: Session) -> list[Goal]:
            reached = [g for g in self.repo.get_goals(db, GOAL_ACTIVE) if g.cost <= total]
            for goal in reached:
                goal.status = GOAL_COMPLETED
                goal.completed_at = completed_at
            return reached

        reached = run_in_transaction(self.db, _evaluate, name="evaluate_goals")
        for goal in reached:
            logger.info(f"🎯 Goal '{goal.name}' completed (bank {total:.2f} >= {goal.cost:.2f})")
        return reached

    def list_goals(self, now: Optional[datetime] = None) -> dict:
        """Ledger view load: evaluate goals, then return them with the bank total"""
        self.evaluate_goals(now)
        total = self.get_bank_total()
        goals = self.repo.get_goals(self.db)
        return {
            "bank": total,
            "goals": [
                {
                    "id": g.id,
                    "name": g.name,
                    "cost": g.cost,
                    "status": g.status,
                    "createdAt": g.created_at,
                    "completedAt": g.completed_at,
                    "progress": min(1.0, max(0.0, total / g.cost)) if g.cost else 1.0,
                }
                for g in goals
            ],
        }


__all__ = [
    "LedgerService",
    "move_money",
    "apply_signup_payment",
]
