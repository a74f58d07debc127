"""
Calendar helpers shared by the schedule and ledger domains.

Timestamps are stored as naive UTC datetimes. Anything that depends on the
calendar (ISO week, month boundaries, the weekly label) is computed in the
gym's configured time zone and converted back to naive UTC for storage.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from dateutil.relativedelta import relativedelta

from ..config import GYM_TIMEZONE

# Sentinel used for "subscription already expired" (blocked users)
EPOCH = datetime(1970, 1, 1)

ITALIAN_MONTHS = [
    "gennaio",
    "febbraio",
    "marzo",
    "aprile",
    "maggio",
    "giugno",
    "luglio",
    "agosto",
    "settembre",
    "ottobre",
    "novembre",
    "dicembre",
]


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def gym_timezone() -> ZoneInfo:
    return ZoneInfo(GYM_TIMEZONE)


def to_local(moment: datetime) -> datetime:
    """Naive UTC -> aware datetime in the gym's time zone"""
    return moment.replace(tzinfo=timezone.utc).astimezone(gym_timezone())


def to_utc_naive(moment: datetime) -> datetime:
    """Aware datetime -> naive UTC"""
    return moment.astimezone(timezone.utc).replace(tzinfo=None)


def iso_week_id(now: Optional[datetime] = None) -> str:
    """
    ISO 8601 week identifier such as ``2026-W43``.

    Weeks start on Monday and the year is the ISO year (the year of the week's
    Thursday), so the last days of December can belong to week 1 of the next year.
    """
    local = to_local(now or utcnow())
    iso_year, iso_week, _ = local.isocalendar()
    return f"{iso_year}-W{iso_week}"


def end_of_month(now: Optional[datetime] = None, months_ahead: int = 0) -> datetime:
    """Last millisecond (23:59:59.999 local) of the month ``months_ahead`` after ``now``"""
    local = to_local(now or utcnow())
    # day=31 is clamped to the last day of the target month
    closing = local + relativedelta(
        months=months_ahead, day=31, hour=23, minute=59, second=59, microsecond=999000
    )
    return to_utc_naive(closing)


def start_of_month(now: Optional[datetime] = None, months_ahead: int = 0) -> datetime:
    local = to_local(now or utcnow())
    opening = local + relativedelta(
        months=months_ahead, day=1, hour=0, minute=0, second=0, microsecond=0
    )
    return to_utc_naive(opening)


def days_remaining(expiry: Optional[datetime], now: Optional[datetime] = None) -> int:
    """Whole days (rounded up) between now and expiry, 0 when already expired"""
    if not expiry:
        return 0
    delta = expiry - (now or utcnow())
    if delta <= timedelta(0):
        return 0
    return -(-delta // timedelta(days=1))


def week_range_label(now: Optional[datetime] = None) -> str:
    """Label of the current Monday-Sunday week, e.g. 'Settimana dal 19 ottobre al 25 ottobre'"""
    local = to_local(now or utcnow()).date()
    monday = local - timedelta(days=local.weekday())
    sunday = monday + timedelta(days=6)

    def _fmt(day) -> str:
        return f"{day.day:02d} {ITALIAN_MONTHS[day.month - 1]}"

    return f"Settimana dal {_fmt(monday)} al {_fmt(sunday)}"
