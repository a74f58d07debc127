"""Push registration repository"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import PushSubscription


class PushSubscriptionRepository:
    @staticmethod
    def get(db: Session, name: str) -> Optional[PushSubscription]:
        return db.get(PushSubscription, name)

    @staticmethod
    def get_by_role(db: Session, role: str) -> list[PushSubscription]:
        return db.query(PushSubscription).filter(PushSubscription.role == role).all()

    @staticmethod
    def delete_tokens(db: Session, tokens: list[str]) -> int:
        if not tokens:
            return 0
        return (
            db.query(PushSubscription)
            .filter(PushSubscription.token.in_(tokens))
            .delete(synchronize_session=False)
        )
