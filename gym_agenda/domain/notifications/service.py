"""Notification service - Push registrations and role-wide broadcasts"""

import logging

from sqlalchemy.orm import Session

from ...database import run_in_transaction
from ...models import PushSubscription
from .gateway import FirebasePushGateway
from .payload import build_push_data
from .repository import PushSubscriptionRepository

logger = logging.getLogger(__name__)

# FCM accepts at most 500 tokens per multicast request
MAX_TOKENS_PER_BATCH = 500


def chunked(items: list, size: int) -> list[list]:
    return [items[i : i + size] for i in range(0, len(items), size)]


class NotificationService:
    def __init__(self, db: Session, gateway: FirebasePushGateway):
        self.db = db
        self.gateway = gateway
        self.repo = PushSubscriptionRepository()

    def subscribe(self, name: str, role: str, token: str) -> None:
        """Store or replace the push token registered for a user name"""

        def _upsert(db: Session) -> None:
            registration = self.repo.get(db, name)
            if registration:
                registration.role = role
                registration.token = token
            else:
                db.add(PushSubscription(name=name, role=role, token=token))

        run_in_transaction(self.db, _upsert, name="subscribe")
        logger.info(f"🔔 Push registration saved for {role} '{name}'")

    def notify(self, target_role: str, title: str, body: str) -> dict:
        """
        Broadcast a data-only message to every registration with the given role.

        Tokens are sent in batches; counts are summed across batches and
        registrations whose token is permanently invalid are removed. A batch the
        gateway fails to send counts as failed for all its tokens without stopping
        the others; only when every batch fails is the error raised.
        """
        tokens = [r.token for r in self.repo.get_by_role(self.db, target_role)]
        if not tokens:
            logger.info(f"📭 No push registrations for role '{target_role}'")
            return {
                "success": True,
                "successCount": 0,
                "failureCount": 0,
                "message": f"No subscribers with role {target_role}",
            }

        data = build_push_data(title, body)
        success_count = 0
        failure_count = 0
        invalid_tokens: list[str] = []
        batches = chunked(tokens, MAX_TOKENS_PER_BATCH)
        batch_errors: list[Exception] = []
        for batch in batches:
            try:
                result = self.gateway.send_multicast(batch, data)
            except Exception as e:
                logger.error(f"❌ Push batch of {len(batch)} to '{target_role}' failed: {e}")
                failure_count += len(batch)
                batch_errors.append(e)
                continue
            success_count += result.success_count
            failure_count += result.failure_count
            invalid_tokens.extend(result.invalid_tokens)

        removed = 0
        if invalid_tokens:
            removed = run_in_transaction(
                self.db,
                lambda db: self.repo.delete_tokens(db, invalid_tokens),
                name="prune_push_tokens",
            )
            logger.info(f"🧹 Removed {removed} invalid push registration(s)")

        if len(batch_errors) == len(batches):
            raise batch_errors[-1]

        logger.info(
            f"📨 Notified role '{target_role}': {success_count} sent, {failure_count} failed"
        )
        return {
            "success": True,
            "successCount": success_count,
            "failureCount": failure_count,
            "removedCount": removed,
            "failedBatches": len(batch_errors),
        }
