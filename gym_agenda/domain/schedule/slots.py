"""Pure helpers for the slot lists stored inside day documents"""

import time
import uuid
from typing import Iterable, Optional

from sqlalchemy.orm.attributes import flag_modified

from ...models import PERIODS, DaySchedule
from ...shared.validators import parse_time_range

# Unparsable ranges sort after every parsed one
_UNPARSED = 24 * 60 + 1


def new_slot_id(day: str, period: str) -> str:
    return f"{day}-{period}-{int(time.time() * 1000)}-{uuid.uuid4().hex[:6]}"


def make_slot(day: str, period: str, time_range: str, created_by: Optional[str]) -> dict:
    start, end = parse_time_range(time_range)
    return {
        "id": new_slot_id(day, period),
        "timeRange": time_range.strip(),
        "startMinute": start,
        "endMinute": end,
        "bookedBy": [],
        "createdBy": created_by,
    }


def slot_sort_key(slot: dict) -> tuple:
    start = slot.get("startMinute")
    end = slot.get("endMinute")
    return (
        _UNPARSED if start is None else start,
        _UNPARSED if end is None else end,
        slot.get("timeRange", ""),
    )


def sort_slots(slots: Iterable[dict]) -> list[dict]:
    return sorted(slots, key=slot_sort_key)


def normalize_slot(slot: dict) -> dict:
    """Copy of a stored slot with a unique, sorted bookedBy list"""
    booked = slot.get("bookedBy") or []
    if isinstance(booked, str):
        booked = [booked]
    return {**slot, "bookedBy": sorted(set(booked))}


def compute_is_open(day: DaySchedule) -> bool:
    return bool(day.morning) or bool(day.afternoon)


def find_slot(day: DaySchedule, slot_id: str) -> Optional[tuple[str, int]]:
    """(period, index) of ``slot_id`` inside ``day``"""
    for period in PERIODS:
        for index, slot in enumerate(getattr(day, period) or []):
            if slot.get("id") == slot_id:
                return period, index
    return None


def toggle_member(slot: dict, name: str) -> tuple[dict, bool]:
    """Add ``name`` to bookedBy when absent, remove it when present. Returns (slot, booked)"""
    current = normalize_slot(slot)
    if name in current["bookedBy"]:
        current["bookedBy"] = [n for n in current["bookedBy"] if n != name]
        return current, False
    current["bookedBy"] = sorted(current["bookedBy"] + [name])
    return current, True


def remove_member_from_day(day: DaySchedule, name: str) -> int:
    """
    Remove ``name`` from every slot of the day and return how many bookings were dropped.

    The day row is always marked as written so that a concurrent transaction
    holding an older version of it conflicts.
    """
    removed = 0
    for period in PERIODS:
        cleaned = []
        for slot in getattr(day, period) or []:
            current = normalize_slot(slot)
            if name in current["bookedBy"]:
                current["bookedBy"] = [n for n in current["bookedBy"] if n != name]
                removed += 1
            cleaned.append(current)
        setattr(day, period, cleaned)
        flag_modified(day, period)
    return removed


def serialize_day(day: DaySchedule) -> dict:
    return {
        "day": day.day,
        "morning": [normalize_slot(s) for s in day.morning or []],
        "afternoon": [normalize_slot(s) for s in day.afternoon or []],
        "isOpen": bool(day.is_open),
    }
