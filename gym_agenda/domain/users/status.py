"""Subscription status derivation"""

from datetime import datetime
from typing import Optional

from ...models import User
from ...shared.timeutils import start_of_month, utcnow

STATUS_ACTIVE = "active"
STATUS_SUSPENDED = "suspended"
STATUS_EXPIRED = "expired"
STATUS_OVERDUE = "overdue"


def subscription_status(user: User, now: Optional[datetime] = None) -> str:
    """
    Status is derived from the expiry date plus the suspension flag, never stored.

    - suspended: the owner suspended the member, whatever the expiry
    - active: expiry in the future
    - overdue: expiry fell during the previous calendar month (last month unpaid)
    - expired: no expiry, or expired before the previous month
    """
    now = now or utcnow()
    if user.is_suspended:
        return STATUS_SUSPENDED

    expiry = user.subscription_expiry
    if expiry and expiry > now:
        return STATUS_ACTIVE
    if expiry and start_of_month(now, -1) <= expiry < start_of_month(now):
        return STATUS_OVERDUE
    return STATUS_EXPIRED
