"""Schedule service - Weekly day documents, slot management and bookings"""

import logging
from collections import defaultdict
from datetime import datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...database import DocumentMissingError, run_in_transaction
from ...models import PERIODS, WEEKDAYS, User
from ...shared.timeutils import iso_week_id, week_range_label
from .repository import ScheduleRepository
from .slots import (
    compute_is_open,
    find_slot,
    make_slot,
    serialize_day,
    sort_slots,
    toggle_member,
)

logger = logging.getLogger(__name__)

RESET_PERFORMED = "performed"
RESET_SKIPPED = "skipped"


def _validate_day_and_period(day: str, period: str) -> None:
    if day not in WEEKDAYS:
        raise HTTPException(status_code=400, detail=f"Unknown day: {day}")
    if period not in PERIODS:
        raise HTTPException(status_code=400, detail=f"Unknown period: {period}")


class ScheduleService:
    """Service layer for the weekly schedule"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ScheduleRepository()

    def seed(self) -> int:
        """Create the fixed set of day documents and the schedule metadata. Idempotent."""

        def _seed(db: Session) -> int:
            existing = {d.day for d in self.repo.get_days(db)}
            missing = [day for day in WEEKDAYS if day not in existing]
            for day in missing:
                self.repo.create_day(db, day)
            if not self.repo.get_schedule_state(db):
                self.repo.create_schedule_state(db)
            return len(missing)

        created = run_in_transaction(self.db, _seed, name="seed_schedule")
        if created:
            logger.info(f"📅 Seeded {created} day documents")
        return created

    def list_schedule(self, now: Optional[datetime] = None) -> dict:
        days = self.repo.get_days(self.db)
        return {
            "weekId": iso_week_id(now),
            "weekLabel": week_range_label(now),
            "days": [serialize_day(d) for d in days],
        }

    def add_slot(
        self,
        day: str,
        period: str,
        time_range: str,
        owner_name: Optional[str],
    ) -> dict:
        """Append a slot to one period of a day, keeping the period sorted by start time"""
        _validate_day_and_period(day, period)
        if not time_range or not time_range.strip():
            raise HTTPException(status_code=400, detail="Time range is required")

        def _add(db: Session) -> dict:
            day_doc = self.repo.get_day(db, day)
            if not day_doc:
                raise DocumentMissingError(f"Day document '{day}' does not exist")

            slot = make_slot(day, period, time_range, owner_name)
            setattr(day_doc, period, sort_slots(list(getattr(day_doc, period) or []) + [slot]))
            day_doc.is_open = True
            return slot

        slot = run_in_transaction(self.db, _add, name="add_slot")
        logger.info(f"➕ Slot {slot['id']} ({slot['timeRange']}) added to {day}/{period} by {owner_name}")
        return slot

    def toggle_booking(self, slot_id: str, user_name: str) -> dict:
        """
        Book the slot for the user, or cancel the booking if the user already holds it.

        The slot is located inside the transaction by scanning every day document,
        so a slot that was moved or deleted concurrently is never written blindly.
        """

        def _toggle(db: Session) -> dict:
            user = db.get(User, user_name)
            if not user:
                raise HTTPException(status_code=404, detail="User not found")
            if user.is_blocked:
                raise HTTPException(status_code=403, detail="Blocked users cannot book slots")

            for day_doc in self.repo.get_days(db):
                located = find_slot(day_doc, slot_id)
                if not located:
                    continue
                period, index = located
                slots = list(getattr(day_doc, period))
                updated, booked = toggle_member(slots[index], user_name)
                slots[index] = updated
                setattr(day_doc, period, slots)
                return {
                    "action": "booked" if booked else "unbooked",
                    "day": day_doc.day,
                    "period": period,
                    "slot": updated,
                }

            raise HTTPException(status_code=404, detail="Slot not found")

        result = run_in_transaction(self.db, _toggle, name="toggle_booking")
        logger.info(f"📌 {user_name} {result['action']} slot {slot_id}")
        return result

    def delete_slots(self, targets: list[dict]) -> int:
        """
        Delete slots given as {day, period, slotId}. Unknown ids are ignored.

        Returns the number of slots actually removed.
        """
        if not targets:
            return 0

        by_day: dict[str, dict[str, set]] = defaultdict(lambda: defaultdict(set))
        for target in targets:
            _validate_day_and_period(target["day"], target["period"])
            by_day[target["day"]][target["period"]].add(target["slotId"])

        def _delete(db: Session) -> int:
            removed = 0
            for day_doc in self.repo.get_days(db, by_day.keys()):
                for period, ids in by_day[day_doc.day].items():
                    current = list(getattr(day_doc, period) or [])
                    kept = [s for s in current if s.get("id") not in ids]
                    removed += len(current) - len(kept)
                    setattr(day_doc, period, kept)
                day_doc.is_open = compute_is_open(day_doc)
            return removed

        removed = run_in_transaction(self.db, _delete, name="delete_slots")
        logger.info(f"🗑️ Deleted {removed} of {len(targets)} requested slots")
        return removed

    def weekly_reset(self, now: Optional[datetime] = None) -> dict:
        """Empty every day once per ISO week, no matter how many callers race to do it"""
        week_id = iso_week_id(now)

        def _reset(db: Session) -> str:
            meta = self.repo.get_schedule_state(db)
            if meta and meta.last_reset_week_id == week_id:
                return RESET_SKIPPED

            days = self.repo.get_days(db)
            if len(days) < len(WEEKDAYS):
                logger.warning(f"⚠️ Weekly reset found only {len(days)} day documents")
            for day_doc in days:
                day_doc.morning = []
                day_doc.afternoon = []
                day_doc.is_open = False

            if meta:
                meta.last_reset_week_id = week_id
            else:
                self.repo.create_schedule_state(db, week_id)
            return RESET_PERFORMED

        status = run_in_transaction(self.db, _reset, name="weekly_reset")
        if status == RESET_PERFORMED:
            logger.info(f"🔄 Weekly schedule reset performed for {week_id}")
        return {"status": status, "weekId": week_id}
