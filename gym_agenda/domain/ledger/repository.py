"""Ledger repository - Database operations for the bank, ledger entries, expenses and goals"""

from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...models import BANK_DOC_ID, Bank, Expense, Goal, LedgerEntry


class LedgerRepository:
    """Repository for ledger database operations"""

    @staticmethod
    def get_bank(db: Session) -> Optional[Bank]:
        return db.get(Bank, BANK_DOC_ID)

    @staticmethod
    def get_or_create_bank(db: Session) -> Bank:
        """A missing bank document counts as a zero balance"""
        bank = db.get(Bank, BANK_DOC_ID)
        if not bank:
            bank = Bank(id=BANK_DOC_ID, amount=0.0)
            db.add(bank)
            db.flush()
        return bank

    @staticmethod
    def add_entry(db: Session, amount: float, cause: str, reference: Optional[str]) -> LedgerEntry:
        entry = LedgerEntry(amount=amount, cause=cause, reference=reference)
        db.add(entry)
        return entry

    @staticmethod
    def get_entries(db: Session, limit: int = 100) -> list[LedgerEntry]:
        return (
            db.query(LedgerEntry)
            .order_by(LedgerEntry.created_at.desc(), LedgerEntry.id.desc())
            .limit(limit)
            .all()
        )

    @staticmethod
    def sum_entries(db: Session) -> float:
        return float(db.query(func.coalesce(func.sum(LedgerEntry.amount), 0.0)).scalar())

    # Expenses
    @staticmethod
    def get_expense(db: Session, expense_id: str) -> Optional[Expense]:
        return db.get(Expense, expense_id)

    @staticmethod
    def get_expenses(db: Session) -> list[Expense]:
        return db.query(Expense).order_by(Expense.date.desc(), Expense.created_at.desc()).all()

    # Goals
    @staticmethod
    def get_goal(db: Session, goal_id: str) -> Optional[Goal]:
        return db.get(Goal, goal_id)

    @staticmethod
    def get_goals(db: Session, status: Optional[str] = None) -> list[Goal]:
        query = db.query(Goal)
        if status:
            query = query.filter(Goal.status == status)
        return query.order_by(Goal.created_at.asc()).all()
