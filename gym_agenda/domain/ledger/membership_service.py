"""Membership service - Block, unblock and rename members with their ledger effects"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...config import MONTHLY_FEE
from ...database import run_in_transaction
from ...models import ROLE_CLIENT, PushSubscription, User
from ...shared.timeutils import EPOCH, days_remaining, end_of_month, utcnow
from ...shared.validators import validate_name
from ..schedule.repository import ScheduleRepository
from ..schedule.slots import remove_member_from_day
from .service import CAUSE_BLOCK_REFUND, CAUSE_UNBLOCK, move_money

logger = logging.getLogger(__name__)

DAYS_PER_MONTH = 30


def unused_months(expiry: Optional[datetime], now: Optional[datetime] = None) -> int:
    """Whole months still paid for, rounding partial months up"""
    remaining = days_remaining(expiry, now)
    return -(-remaining // DAYS_PER_MONTH)


class MembershipService:
    """Owner operations on member records that move money or touch bookings"""

    def __init__(self, db: Session):
        self.db = db
        self.schedule_repo = ScheduleRepository()

    def _get_client(self, db: Session, name: str) -> User:
        user = db.get(User, name)
        if not user:
            raise HTTPException(status_code=404, detail="User not found")
        if user.role != ROLE_CLIENT:
            raise HTTPException(status_code=400, detail="Only client accounts can be managed")
        return user

    def block_user(self, name: str, now: Optional[datetime] = None) -> dict:
        """
        Block a client: refund unused months, expire the subscription and cancel
        every booking they hold, all in one transaction.
        """
        now = now or utcnow()

        def _block(db: Session) -> dict:
            user = self._get_client(db, name)
            if user.is_blocked:
                raise HTTPException(status_code=409, detail="User is already blocked")

            days = self.schedule_repo.get_days(db)
            refund = unused_months(user.subscription_expiry, now) * MONTHLY_FEE
            if refund > 0:
                move_money(db, -refund, CAUSE_BLOCK_REFUND, name)

            user.is_blocked = True
            user.subscription_expiry = EPOCH
            cancelled = sum(remove_member_from_day(day, name) for day in days)
            return {"name": name, "refunded": refund, "cancelledBookings": cancelled}

        result = run_in_transaction(self.db, _block, name="block_user")
        logger.info(
            f"⛔ {name} blocked, refunded {result['refunded']:.2f}, "
            f"cancelled {result['cancelledBookings']} booking(s)"
        )
        return result

    def unblock_user(self, name: str, now: Optional[datetime] = None) -> dict:
        """Unblock a client as a fresh monthly payment: active to the end of this month"""

        def _unblock(db: Session) -> dict:
            user = self._get_client(db, name)
            if not user.is_blocked:
                raise HTTPException(status_code=409, detail="User is not blocked")

            user.is_blocked = False
            user.subscription_expiry = end_of_month(now)
            move_money(db, MONTHLY_FEE, CAUSE_UNBLOCK, name)
            return {"name": name, "charged": MONTHLY_FEE, "subscriptionExpiry": user.subscription_expiry}

        result = run_in_transaction(self.db, _unblock, name="unblock_user")
        logger.info(f"✅ {name} unblocked, charged {result['charged']:.2f}")
        return result

    def rename_user(self, old_name: str, new_name: str) -> dict:
        """
        Re-key a client record under a new name.

        The record is copied (with ``previous_name``) and the old one deleted.
        Bookings held under the old name are cancelled, not transferred; the
        push registration follows the user.
        """
        try:
            old_name = validate_name(old_name)
            new_name = validate_name(new_name)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e
        if old_name == new_name:
            raise HTTPException(status_code=400, detail="New name must be different")

        def _rename(db: Session) -> dict:
            source = self._get_client(db, old_name)
            if db.get(User, new_name):
                raise HTTPException(status_code=409, detail=f"Name '{new_name}' is already taken")

            db.add(
                User(
                    name=new_name,
                    role=source.role,
                    is_blocked=source.is_blocked,
                    subscription_expiry=source.subscription_expiry,
                    is_suspended=source.is_suspended,
                    previous_name=old_name,
                    created_at=source.created_at,
                )
            )
            db.delete(source)

            cancelled = sum(
                remove_member_from_day(day, old_name) for day in self.schedule_repo.get_days(db)
            )

            registration = db.get(PushSubscription, old_name)
            if registration:
                db.merge(
                    PushSubscription(
                        name=new_name, role=registration.role, token=registration.token
                    )
                )
                db.delete(registration)

            return {"name": new_name, "previousName": old_name, "cancelledBookings": cancelled}

        result = run_in_transaction(self.db, _rename, name="rename_user")
        logger.info(f"✏️ {old_name} renamed to {new_name}, cancelled {result['cancelledBookings']} booking(s)")
        return result
