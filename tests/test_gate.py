import threading

import pytest

from app import create_app
from config import TestConfig
from models import db, Booking, AuditLog, BookingLink, Calendar, TimeSlotRule
from scheduling import gate, state_machine, storage
from scheduling.availability import available_slots_for_link
from scheduling.errors import CapacityExceeded, ValidationError

from conftest import MONDAY, TUESDAY, FailingNotifier, booking_form, fresh

BASE = "https://book.example.test"


def submit(calendar, link, notifier=None, clock=None, **form):
    return gate.submit(calendar, link, booking_form(**form), notifier=notifier, base_url=BASE, clock=clock)


def test_pending_submission_holds_the_slot(calendar, link, monday_rule, notifier, clock):
    booking = submit(calendar, link, notifier, clock)

    assert booking.status == "pending"
    assert booking.confirmation_token
    assert booking.seat == 0
    assert booking.slot_date == MONDAY and booking.slot_time == "09:00"
    assert booking.duration == 30

    slots = {s.time: s.available for s in available_slots_for_link(calendar.id, link, MONDAY, MONDAY)}
    assert slots["09:00"] is False
    assert slots["09:30"] is True


def test_pending_submission_asks_admin_with_capability_urls(calendar, link, monday_rule, notifier, clock):
    booking = submit(calendar, link, notifier, clock)

    assert notifier.kinds() == ["admin_approval_request"]
    event = notifier.events[0]
    prefix = f"{BASE}/book/{calendar.id}/consult"
    assert event["approve_url"] == f"{prefix}/approve/{booking.id}?token={booking.confirmation_token}"
    assert event["deny_url"] == f"{prefix}/deny/{booking.id}?token={booking.confirmation_token}"


def test_auto_accept_confirms_and_notifies_customer(calendar, auto_link, monday_rule, notifier, clock):
    booking = submit(calendar, auto_link, notifier, clock)

    assert booking.status == "confirmed"
    assert booking.confirmation_token
    assert notifier.kinds() == ["customer_confirmation"]
    assert notifier.events[0]["approve_url"] is None


def test_pending_booking_counts_against_capacity(calendar, link, monday_rule, notifier, clock):
    submit(calendar, link, notifier, clock)

    with pytest.raises(CapacityExceeded) as exc:
        submit(calendar, link, notifier, clock, name="Grace Hopper", email="grace@example.com")

    assert exc.value.public_message == "This slot is no longer available"
    assert storage.count_active_bookings(calendar.id, MONDAY, "09:00") == 1
    assert AuditLog.query.filter_by(action="BOOKING_FAIL_CAPACITY").count() == 1


@pytest.mark.parametrize("overrides,message", [
    ({"date": None}, "Please select a date"),
    ({"date": "2026-02-30"}, "Please select a date"),
    ({"time": None}, "Please select a time"),
    ({"time": "25:00"}, "Please select a time"),
    ({"name": ""}, "Name is required"),
    ({"email": None}, "Email is required"),
    ({"email": "ada-at-example"}, "Please enter a valid email address"),
    ({"phone": "12-34"}, "Please enter a valid phone number"),
    ({"guests": "several"}, "Guests must be a number"),
])
def test_validation_errors(calendar, link, monday_rule, notifier, clock, overrides, message):
    with pytest.raises(ValidationError) as exc:
        submit(calendar, link, notifier, clock, **overrides)

    assert exc.value.public_message == message
    assert Booking.query.count() == 0
    assert notifier.events == []


def test_capacity_is_checked_before_required_fields(calendar, link, monday_rule, notifier, clock):
    submit(calendar, link, notifier, clock)

    with pytest.raises(CapacityExceeded):
        submit(calendar, link, notifier, clock, name="")


def test_fields_are_typed_and_filtered(calendar, link, monday_rule, notifier, clock):
    booking = submit(
        calendar, link, notifier, clock,
        time="9:30", phone="+1 (555) 010-2030", guests="3", notes="window seat", favourite_colour="blue",
    )

    assert booking.slot_time == "09:30"
    assert booking.phone == "+1 (555) 010-2030"
    assert booking.notes == "window seat"
    assert booking.fields_data["guests"] == 3
    assert booking.fields_data["date"] == MONDAY
    assert booking.fields_data["time"] == "09:30"
    assert "favourite_colour" not in booking.fields_data


def test_no_matching_rule_defaults_to_capacity_one(calendar, link, notifier, clock):
    submit(calendar, link, notifier, clock, date=TUESDAY, time="15:00")

    with pytest.raises(CapacityExceeded):
        submit(calendar, link, notifier, clock, date=TUESDAY, time="15:00", email="b@example.com")


def test_capacity_two_accepts_two(calendar, link, notifier, clock):
    db.session.add(TimeSlotRule(calendar_id=calendar.id, day_of_week=1, start_time="09:00",
                                end_time="10:00", slot_duration=30, buffer_time=0, max_bookings=2))
    db.session.commit()

    first = submit(calendar, link, notifier, clock)
    second = submit(calendar, link, notifier, clock, email="b@example.com")
    with pytest.raises(CapacityExceeded):
        submit(calendar, link, notifier, clock, email="c@example.com")

    assert {first.seat, second.seat} == {0, 1}


def test_many_submissions_for_last_seat_accept_exactly_one(calendar, link, monday_rule, notifier, clock):
    accepted = 0
    for i in range(10):
        try:
            submit(calendar, link, notifier, clock, email=f"guest{i}@example.com")
            accepted += 1
        except CapacityExceeded:
            pass

    assert accepted == 1
    assert storage.count_active_bookings(calendar.id, MONDAY, "09:00") == 1


def test_stale_capacity_read_is_caught_by_seat_constraint(calendar, link, monday_rule, notifier, clock, monkeypatch):
    # Every submission sees the cell as empty, as two concurrent requests would
    monkeypatch.setattr(storage, "count_active_bookings", lambda *args: 0)
    monkeypatch.setattr(storage, "taken_seats", lambda *args: set())

    submit(calendar, link, notifier, clock)
    with pytest.raises(CapacityExceeded):
        submit(calendar, link, notifier, clock, email="racer@example.com")

    monkeypatch.undo()
    assert storage.count_active_bookings(calendar.id, MONDAY, "09:00") == 1
    assert Booking.query.count() == 1


def test_notification_failure_keeps_the_booking(calendar, auto_link, monday_rule, clock):
    booking = submit(calendar, auto_link, FailingNotifier(), clock)

    stored = fresh(booking.id)
    assert stored is not None
    assert stored.status == "confirmed"


def test_cancelled_booking_frees_its_seat(calendar, link, monday_rule, notifier, clock):
    first = submit(calendar, link, notifier, clock)
    state_machine.admin_cancel(first.id, clock=clock)

    second = submit(calendar, link, notifier, clock, email="next@example.com")

    assert fresh(first.id).seat is None
    assert second.seat == 0
    assert storage.count_active_bookings(calendar.id, MONDAY, "09:00") == 1


@pytest.mark.parametrize("spelling", ["2026-10-019", "2026-010-19", "+2026-10-19"])
def test_alternate_date_spellings_are_rejected(calendar, link, monday_rule, notifier, clock, spelling):
    submit(calendar, link, notifier, clock)

    with pytest.raises(ValidationError) as exc:
        submit(calendar, link, notifier, clock, date=spelling, email="again@example.com")

    assert exc.value.public_message == "Please select a date"
    assert storage.count_active_bookings(calendar.id, MONDAY, "09:00") == 1
    assert Booking.query.count() == 1


def test_submitted_slot_is_stored_in_canonical_form(calendar, link, monday_rule, notifier, clock):
    booking = submit(calendar, link, notifier, clock, date=f" {MONDAY} ", time="9:00")
    assert (booking.slot_date, booking.slot_time) == (MONDAY, "09:00")

    with pytest.raises(CapacityExceeded):
        submit(calendar, link, notifier, clock, time="09:00", email="again@example.com")


@pytest.fixture
def shared_db_app(tmp_path, clock):
    # every thread gets its own connection to the same file
    class FileConfig(TestConfig):
        SQLALCHEMY_DATABASE_URI = "sqlite:///" + str(tmp_path / "race.db")
        SQLALCHEMY_ENGINE_OPTIONS = {"connect_args": {"check_same_thread": False, "timeout": 30}}

    app = create_app(FileConfig, clock=clock)
    with app.app_context():
        db.create_all()
        calendar = Calendar(name="Court 1", timezone="UTC")
        db.session.add(calendar)
        db.session.flush()
        db.session.add(TimeSlotRule(calendar_id=calendar.id, day_of_week=1, start_time="09:00",
                                    end_time="12:00", slot_duration=30, buffer_time=0, max_bookings=1))
        db.session.add(BookingLink(calendar_id=calendar.id, slug="consult", name="Consultation",
                                   auto_accept=False))
        db.session.commit()
        calendar_id = calendar.id

    yield app, calendar_id

    with app.app_context():
        db.engine.dispose()


def test_concurrent_submissions_for_one_seat_accept_exactly_one(shared_db_app, clock):
    app, calendar_id = shared_db_app
    threads_count = 8
    barrier = threading.Barrier(threads_count)
    outcomes = []
    lock = threading.Lock()

    def book(i):
        with app.app_context():
            calendar = storage.get_calendar(calendar_id)
            link = storage.get_link(calendar_id, "consult")
            barrier.wait()
            try:
                gate.submit(calendar, link, booking_form(email=f"guest{i}@example.com"), clock=clock)
                outcome = "accepted"
            except CapacityExceeded:
                outcome = "full"
            except Exception as exc:
                outcome = repr(exc)
            with lock:
                outcomes.append(outcome)

    threads = [threading.Thread(target=book, args=(i,)) for i in range(threads_count)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=60)

    assert sorted(outcomes) == ["accepted"] + ["full"] * (threads_count - 1)
    with app.app_context():
        assert storage.count_active_bookings(calendar_id, MONDAY, "09:00") == 1
        assert Booking.query.count() == 1
