"""User repository - Database operations for member records"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...models import ROLE_CLIENT, User


class UserRepository:
    """Repository for user database operations"""

    @staticmethod
    def get_user(db: Session, name: str) -> Optional[User]:
        return db.get(User, name)

    @staticmethod
    def get_clients(db: Session) -> list[User]:
        return db.query(User).filter(User.role == ROLE_CLIENT).order_by(User.name.asc()).all()

    @staticmethod
    def get_expired_clients(db: Session, now: datetime) -> list[User]:
        """Non-blocked clients whose subscription expiry is in the past, latest expiry first"""
        return (
            db.query(User)
            .filter(
                User.role == ROLE_CLIENT,
                User.is_blocked.is_(False),
                User.subscription_expiry.isnot(None),
                User.subscription_expiry < now,
            )
            .order_by(User.subscription_expiry.desc())
            .all()
        )
