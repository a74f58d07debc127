from datetime import timedelta

import pytest
from fastapi import HTTPException
from sqlalchemy.orm import sessionmaker

from gym_agenda.domain.ledger import membership_service
from gym_agenda.domain.ledger.membership_service import MembershipService
from gym_agenda.domain.schedule import service as schedule_service
from gym_agenda.domain.schedule.service import RESET_PERFORMED, RESET_SKIPPED, ScheduleService
from gym_agenda.domain.users.service import UserService
from gym_agenda.models import SCHEDULE_STATE_KEY, WEEKDAYS, AppMeta, DaySchedule, User

from .conftest import NOW, as_user


def _all_booked_names(db):
    db.expire_all()
    names = []
    for day in db.query(DaySchedule).all():
        for slot in (day.morning or []) + (day.afternoon or []):
            names.extend(slot["bookedBy"])
    return names


def test_seed_creates_fixed_week(db):
    days = db.query(DaySchedule).all()
    assert sorted(d.day for d in days) == sorted(WEEKDAYS)
    assert all(d.morning == [] and d.afternoon == [] and not d.is_open for d in days)
    assert ScheduleService(db).seed() == 0


def test_booking_scenario(client, owner, anna):
    response = client.post(
        "/schedule/slots",
        json={"day": "Lunedì", "period": "morning", "timeRange": "09:00 - 10:00"},
        headers=as_user("Mario"),
    )
    assert response.status_code == 200
    slot = response.json()
    assert slot["createdBy"] == "Mario"
    assert slot["bookedBy"] == []

    booked = client.post(f"/schedule/slots/{slot['id']}/toggle", headers=as_user("Anna"))
    assert booked.status_code == 200
    assert booked.json()["action"] == "booked"
    assert booked.json()["slot"]["bookedBy"] == ["Anna"]
    assert booked.json()["slot"]["createdBy"] == "Mario"

    unbooked = client.post(f"/schedule/slots/{slot['id']}/toggle", headers=as_user("Anna"))
    assert unbooked.json()["action"] == "unbooked"
    assert unbooked.json()["slot"]["bookedBy"] == []


def test_toggle_twice_restores_membership(db, owner, anna):
    service = ScheduleService(db)
    slot = service.add_slot("Martedì", "afternoon", "18:00 - 19:00", "Mario")
    service.toggle_booking(slot["id"], "Mario")

    service.toggle_booking(slot["id"], "Anna")
    result = service.toggle_booking(slot["id"], "Anna")

    assert result["slot"]["bookedBy"] == ["Mario"]


def test_add_slot_opens_day_and_sorts_numerically(db, owner):
    service = ScheduleService(db)
    service.add_slot("Giovedì", "morning", "10:00 - 11:00", "Mario")
    service.add_slot("Giovedì", "morning", "9:00 - 10:00", "Mario")
    service.add_slot("Giovedì", "morning", "su appuntamento", "Mario")

    db.expire_all()
    day = db.get(DaySchedule, "Giovedì")
    assert day.is_open
    assert [s["timeRange"] for s in day.morning] == [
        "9:00 - 10:00",
        "10:00 - 11:00",
        "su appuntamento",
    ]


def test_add_slot_rejects_unknown_day(db):
    with pytest.raises(HTTPException) as exc:
        ScheduleService(db).add_slot("Funday", "morning", "09:00 - 10:00", "Mario")
    assert exc.value.status_code == 400


def test_add_slot_requires_owner(client, anna):
    response = client.post(
        "/schedule/slots",
        json={"day": "Lunedì", "period": "morning", "timeRange": "09:00 - 10:00"},
        headers=as_user("Anna"),
    )
    assert response.status_code == 403


def test_add_slot_missing_day_document_is_fatal(client, db, owner):
    db.delete(db.get(DaySchedule, "Sabato"))
    db.commit()

    response = client.post(
        "/schedule/slots",
        json={"day": "Sabato", "period": "morning", "timeRange": "09:00 - 10:00"},
        headers=as_user("Mario"),
    )

    assert response.status_code == 500
    assert db.query(DaySchedule).count() == len(WEEKDAYS) - 1


def test_toggle_unknown_slot_is_not_found(client, anna):
    response = client.post("/schedule/slots/does-not-exist/toggle", headers=as_user("Anna"))
    assert response.status_code == 404


def test_delete_slots_ignores_unknown_ids(client, db, owner):
    service = ScheduleService(db)
    keep = service.add_slot("Venerdì", "morning", "08:00 - 09:00", "Mario")
    drop = service.add_slot("Venerdì", "morning", "09:00 - 10:00", "Mario")
    only = service.add_slot("Domenica", "afternoon", "17:00 - 18:00", "Mario")

    response = client.post(
        "/schedule/slots/delete",
        json={
            "slots": [
                {"day": "Venerdì", "period": "morning", "slotId": drop["id"]},
                {"day": "Domenica", "period": "afternoon", "slotId": only["id"]},
                {"day": "Lunedì", "period": "morning", "slotId": "ghost"},
            ]
        },
        headers=as_user("Mario"),
    )

    assert response.status_code == 200
    assert response.json() == {"requested": 3, "deleted": 2}
    db.expire_all()
    assert [s["id"] for s in db.get(DaySchedule, "Venerdì").morning] == [keep["id"]]
    assert db.get(DaySchedule, "Venerdì").is_open
    assert not db.get(DaySchedule, "Domenica").is_open


def test_weekly_reset_runs_once_per_week(db, owner, anna):
    service = ScheduleService(db)
    slot = service.add_slot("Lunedì", "morning", "09:00 - 10:00", "Mario")
    service.toggle_booking(slot["id"], "Anna")

    first = service.weekly_reset(NOW)
    service.add_slot("Mercoledì", "morning", "09:00 - 10:00", "Mario")
    second = service.weekly_reset(NOW + timedelta(days=3))

    assert first == {"status": RESET_PERFORMED, "weekId": "2026-W43"}
    assert second == {"status": RESET_SKIPPED, "weekId": "2026-W43"}
    db.expire_all()
    assert db.get(AppMeta, SCHEDULE_STATE_KEY).last_reset_week_id == "2026-W43"
    assert db.get(DaySchedule, "Lunedì").morning == []
    assert not db.get(DaySchedule, "Lunedì").is_open
    # Slots added after this week's reset survive until next week
    assert len(db.get(DaySchedule, "Mercoledì").morning) == 1

    assert service.weekly_reset(NOW + timedelta(days=7))["status"] == RESET_PERFORMED
    db.expire_all()
    assert db.get(DaySchedule, "Mercoledì").morning == []


def test_owner_schedule_load_triggers_reset(client, db, owner, anna):
    ScheduleService(db).add_slot("Lunedì", "morning", "09:00 - 10:00", "Mario")

    as_client = client.get("/schedule", headers=as_user("Anna"))
    assert as_client.json()["reset"] is None
    assert len(as_client.json()["days"][0]["morning"]) == 1

    as_owner = client.get("/schedule", headers=as_user("Mario"))
    assert as_owner.status_code == 200
    body = as_owner.json()
    assert body["reset"] == RESET_PERFORMED
    assert [d["day"] for d in body["days"]] == WEEKDAYS
    assert body["days"][0]["morning"] == []

    assert client.get("/schedule", headers=as_user("Mario")).json()["reset"] == RESET_SKIPPED


def test_schedule_requires_known_user(client):
    assert client.get("/schedule").status_code == 401
    assert client.get("/schedule", headers=as_user("Nessuno")).status_code == 401


def test_blocked_user_cannot_toggle(db, owner, anna):
    service = ScheduleService(db)
    slot = service.add_slot("Lunedì", "morning", "09:00 - 10:00", "Mario")
    MembershipService(db).block_user("Anna", NOW)

    with pytest.raises(HTTPException) as exc:
        service.toggle_booking(slot["id"], "Anna")
    assert exc.value.status_code == 403
    assert "Anna" not in _all_booked_names(db)


def _run_once_midway(monkeypatch, module, helper_name, concurrent_write):
    """
    Patch ``module.helper_name`` so that the first time it is called, a write from
    another session commits before the helper runs. The caller's transaction then
    holds stale day documents and must conflict and be retried.
    """
    original = getattr(module, helper_name)
    state = {"fired": False}

    def interleaved(*args, **kwargs):
        if not state["fired"]:
            state["fired"] = True
            concurrent_write()
        return original(*args, **kwargs)

    monkeypatch.setattr(module, helper_name, interleaved)
    return state


@pytest.fixture
def other_session(engine):
    session = sessionmaker(bind=engine, autoflush=False)()
    yield session
    session.close()


def test_concurrent_toggles_keep_both_bookings(db, other_session, owner, anna, monkeypatch):
    UserService(db).login("Bea", "client", now=NOW)
    slot = ScheduleService(db).add_slot("Lunedì", "morning", "09:00 - 10:00", "Mario")

    state = _run_once_midway(
        monkeypatch,
        schedule_service,
        "toggle_member",
        lambda: ScheduleService(other_session).toggle_booking(slot["id"], "Bea"),
    )

    result = ScheduleService(db).toggle_booking(slot["id"], "Anna")

    assert state["fired"]
    assert result["action"] == "booked"
    assert result["slot"]["bookedBy"] == ["Anna", "Bea"]
    db.expire_all()
    assert db.get(DaySchedule, "Lunedì").morning[0]["bookedBy"] == ["Anna", "Bea"]


def test_block_committed_during_toggle_wins(db, other_session, owner, anna, monkeypatch):
    slot = ScheduleService(db).add_slot("Lunedì", "morning", "09:00 - 10:00", "Mario")

    _run_once_midway(
        monkeypatch,
        schedule_service,
        "toggle_member",
        lambda: MembershipService(other_session).block_user("Anna", NOW),
    )

    with pytest.raises(HTTPException) as exc:
        ScheduleService(db).toggle_booking(slot["id"], "Anna")

    assert exc.value.status_code == 403
    assert "Anna" not in _all_booked_names(db)


def test_toggle_committed_during_block_is_purged(db, other_session, owner, anna, monkeypatch):
    slot = ScheduleService(db).add_slot("Lunedì", "morning", "09:00 - 10:00", "Mario")

    _run_once_midway(
        monkeypatch,
        membership_service,
        "remove_member_from_day",
        lambda: ScheduleService(other_session).toggle_booking(slot["id"], "Anna"),
    )

    result = MembershipService(db).block_user("Anna", NOW)

    assert result["cancelledBookings"] == 1
    assert "Anna" not in _all_booked_names(db)
    db.expire_all()
    assert db.get(User, "Anna").is_blocked
