"""User service - Login/registration, sessions and the owner's member views"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...database import run_in_transaction
from ...models import ROLE_CLIENT, ROLES, User
from ...shared.timeutils import utcnow
from ...shared.validators import validate_name
from ..ledger.service import apply_signup_payment
from .repository import UserRepository
from .status import STATUS_ACTIVE, subscription_status

logger = logging.getLogger(__name__)


def serialize_user(user: User, now: Optional[datetime] = None) -> dict:
    status = subscription_status(user, now)
    return {
        "name": user.name,
        "role": user.role,
        "isBlocked": bool(user.is_blocked),
        "subscriptionExpiry": user.subscription_expiry,
        "subscriptionStatus": status,
        "previousName": user.previous_name,
        # Clients without an active subscription are reminded to renew on load
        "expiryReminder": user.role == ROLE_CLIENT and status != STATUS_ACTIVE,
    }


class UserService:
    """Service layer for member records"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = UserRepository()

    def login(self, name: str, role: str, has_paid: bool = False, now: Optional[datetime] = None) -> dict:
        """
        Log in by name, registering the user on first use.

        A name is bound to the role it registered with; logging in with the other
        role is refused. A client who says they already paid this month is
        registered with an active subscription and the fee goes to the bank.
        """
        try:
            name = validate_name(name)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e
        if role not in ROLES:
            raise HTTPException(status_code=400, detail=f"Unknown role: {role}")

        def _login(db: Session) -> tuple[User, bool]:
            user = self.repo.get_user(db, name)
            if user:
                if user.role != role:
                    raise HTTPException(
                        status_code=409,
                        detail=f"A user with this name already exists as {user.role}",
                    )
                if user.is_blocked:
                    raise HTTPException(
                        status_code=403, detail="This account has been blocked. Contact the owner."
                    )
                return user, False

            user = User(name=name, role=role, is_blocked=False, is_suspended=False)
            db.add(user)
            if role == ROLE_CLIENT and has_paid:
                apply_signup_payment(db, user, now)
            return user, True

        user, created = run_in_transaction(self.db, _login, name="login")
        if created:
            logger.info(f"👤 Registered {role} '{name}' (paid: {bool(has_paid)})")
        return {**serialize_user(user, now), "created": created}

    def list_clients(self, now: Optional[datetime] = None) -> list[dict]:
        return [serialize_user(u, now) for u in self.repo.get_clients(self.db)]

    def expired_subscriptions(self, now: Optional[datetime] = None) -> list[dict]:
        """Owner notification feed: one message per client whose subscription has lapsed"""
        now = now or utcnow()
        return [
            {
                "id": client.name,
                "message": f"L'abbonamento di {client.name} è scaduto.",
                "date": client.subscription_expiry,
            }
            for client in self.repo.get_expired_clients(self.db, now)
        ]

    def set_suspended(self, name: str, suspended: bool, now: Optional[datetime] = None) -> dict:
        """Admin status edit: suspend or reinstate a member without touching the expiry"""

        def _update(db: Session) -> User:
            user = self.repo.get_user(db, name)
            if not user:
                raise HTTPException(status_code=404, detail="User not found")
            if user.role != ROLE_CLIENT:
                raise HTTPException(status_code=400, detail="Only client accounts can be managed")
            user.is_suspended = suspended
            return user

        user = run_in_transaction(self.db, _update, name="set_suspended")
        logger.info(f"🛠️ {name} {'suspended' if suspended else 'reinstated'}")
        return serialize_user(user, now)
