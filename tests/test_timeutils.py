from datetime import datetime

import pytest

from gym_agenda.domain.ledger.membership_service import unused_months
from gym_agenda.domain.users.status import subscription_status
from gym_agenda.models import User
from gym_agenda.shared import timeutils
from gym_agenda.shared.timeutils import (
    days_remaining,
    end_of_month,
    iso_week_id,
    start_of_month,
    week_range_label,
)
from gym_agenda.shared.validators import parse_time_range, validate_name

from .conftest import NOW

END_OF_OCTOBER = datetime(2026, 10, 31, 23, 59, 59, 999000)


@pytest.mark.parametrize(
    "moment, expected",
    [
        (NOW, "2026-W43"),
        (datetime(2021, 1, 3, 12, 0), "2020-W53"),
        (datetime(2024, 12, 30, 8, 0), "2025-W1"),
        (datetime(2026, 10, 25, 23, 0), "2026-W43"),
    ],
)
def test_iso_week_id_uses_iso_year(moment, expected):
    assert iso_week_id(moment) == expected


def test_end_of_month_snaps_to_last_millisecond():
    assert end_of_month(NOW) == END_OF_OCTOBER
    assert end_of_month(datetime(2026, 11, 15), 2) == datetime(2027, 1, 31, 23, 59, 59, 999000)
    assert end_of_month(datetime(2028, 1, 31), 1) == datetime(2028, 2, 29, 23, 59, 59, 999000)


def test_month_edges_follow_gym_timezone(monkeypatch):
    monkeypatch.setattr(timeutils, "GYM_TIMEZONE", "Europe/Rome")

    # 31 October is after the switch back to CET (UTC+1)
    assert end_of_month(NOW) == datetime(2026, 10, 31, 22, 59, 59, 999000)
    # 1 October is still CEST (UTC+2)
    assert start_of_month(NOW) == datetime(2026, 9, 30, 22, 0)
    # Already January in Rome
    assert end_of_month(datetime(2026, 12, 31, 23, 30)) == datetime(2027, 1, 31, 22, 59, 59, 999000)
    assert end_of_month(datetime(2027, 1, 15), 13) == datetime(2028, 2, 29, 22, 59, 59, 999000)


def test_start_of_month_previous_month():
    assert start_of_month(NOW) == datetime(2026, 10, 1)
    assert start_of_month(datetime(2026, 1, 10), -1) == datetime(2025, 12, 1)


def test_days_remaining_rounds_up():
    assert days_remaining(END_OF_OCTOBER, NOW) == 13
    assert days_remaining(datetime(2026, 10, 1), NOW) == 0
    assert days_remaining(None, NOW) == 0


def test_unused_months_rounds_partial_months_up():
    assert unused_months(END_OF_OCTOBER, NOW) == 1
    assert unused_months(datetime(2026, 11, 30, 23, 59), NOW) == 2
    assert unused_months(datetime(2026, 9, 30), NOW) == 0


def test_week_range_label():
    assert week_range_label(NOW) == "Settimana dal 19 ottobre al 25 ottobre"
    assert week_range_label(datetime(2026, 12, 31)) == "Settimana dal 28 dicembre al 03 gennaio"


def test_parse_time_range():
    assert parse_time_range("9:00 - 10:30") == (540, 630)
    assert parse_time_range("09.00–12.30") == (540, 750)
    assert parse_time_range("mattina presto") == (None, None)
    assert parse_time_range("25:00 - 26:00") == (None, None)


def test_validate_name_trims_and_rejects_blank():
    assert validate_name("  Anna ") == "Anna"
    with pytest.raises(ValueError):
        validate_name("   ")
    with pytest.raises(ValueError):
        validate_name("x" * 81)


@pytest.mark.parametrize(
    "expiry, suspended, expected",
    [
        (datetime(2026, 11, 30), False, "active"),
        (datetime(2026, 9, 30, 23, 59, 59), False, "overdue"),
        (datetime(2026, 8, 31), False, "expired"),
        (None, False, "expired"),
        (datetime(2026, 11, 30), True, "suspended"),
    ],
)
def test_subscription_status_is_derived(expiry, suspended, expected):
    user = User(name="Luca", role="client", subscription_expiry=expiry, is_suspended=suspended)
    assert subscription_status(user, NOW) == expected
