"""Shared validation utilities"""

import re
from typing import Optional

MAX_NAME_LENGTH = 80

# "9:00 - 12:30", "09:00-12:30", "09.00 – 12.30"
TIME_RANGE_RE = re.compile(
    r"^\s*(\d{1,2})[:.](\d{2})\s*[-–—]\s*(\d{1,2})[:.](\d{2})\s*$"
)


def validate_name(name: Optional[str]) -> str:
    """
    Normalize a user name (the name is the user's primary key).

    Raises:
        ValueError: If the name is blank or too long
    """
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValueError("Name is required")
    if len(cleaned) > MAX_NAME_LENGTH:
        raise ValueError(f"Name must be at most {MAX_NAME_LENGTH} characters")
    return cleaned


def validate_positive_amount(value: float, field: str = "cost") -> float:
    if value is None or value <= 0:
        raise ValueError(f"{field} must be a positive number")
    return value


def parse_time_range(time_range: str) -> tuple[Optional[int], Optional[int]]:
    """
    Parse a slot time range into minutes since midnight.

    Returns (start, end); both are None when the text is not a recognizable range,
    in which case the slot is still accepted and sorted after the parsed ones.
    """
    match = TIME_RANGE_RE.match(time_range or "")
    if not match:
        return None, None

    start_h, start_m, end_h, end_m = (int(g) for g in match.groups())
    if start_h > 24 or end_h > 24 or start_m > 59 or end_m > 59:
        return None, None
    return start_h * 60 + start_m, end_h * 60 + end_m
