from datetime import datetime

import pytest

from app import create_app
from config import TestConfig
from models import db, Booking, BookingLink, Calendar, TimeSlotRule
from scheduling.clock import FixedClock
from scheduling.notifications import Notifier

# Thursday; the first bookable Monday is MONDAY
TODAY = "2026-10-15"
MONDAY = "2026-10-19"
TUESDAY = "2026-10-20"


class RecordingNotifier(Notifier):
    def __init__(self):
        self.events = []

    def notify(self, event_kind, booking, link, calendar, approve_url=None, deny_url=None):
        self.events.append({
            "kind": event_kind.value,
            "booking_id": booking.id,
            "status": booking.status,
            "approve_url": approve_url,
            "deny_url": deny_url,
        })

    def kinds(self):
        return [e["kind"] for e in self.events]


class FailingNotifier(Notifier):
    def notify(self, event_kind, booking, link, calendar, approve_url=None, deny_url=None):
        raise RuntimeError("smtp down")


@pytest.fixture
def clock():
    return FixedClock(TODAY, now=datetime(2026, 10, 15, 12, 0, 0))


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def app(clock, notifier):
    app = create_app(TestConfig, clock=clock, notifier=notifier)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def calendar(app):
    cal = Calendar(name="Studio", timezone="UTC", allowed_origins=["https://Example.com/"])
    db.session.add(cal)
    db.session.commit()
    return cal


@pytest.fixture
def monday_rule(calendar):
    rule = TimeSlotRule(
        calendar_id=calendar.id,
        day_of_week=1,
        start_time="09:00",
        end_time="12:00",
        slot_duration=30,
        buffer_time=0,
        max_bookings=1,
    )
    db.session.add(rule)
    db.session.commit()
    return rule


@pytest.fixture
def link(calendar):
    link = BookingLink(
        calendar_id=calendar.id,
        slug="consult",
        name="Consultation",
        duration=30,
        min_notice=24,
        max_advance=30,
        auto_accept=False,
        fields=[
            {"id": "name", "label": "Name", "field_type": "text", "required": True},
            {"id": "email", "label": "Email", "field_type": "email", "required": True},
            {"id": "guests", "label": "Guests", "field_type": "number", "required": False},
        ],
    )
    db.session.add(link)
    db.session.commit()
    return link


@pytest.fixture
def auto_link(calendar):
    link = BookingLink(
        calendar_id=calendar.id,
        slug="drop-in",
        name="Drop-in",
        duration=30,
        auto_accept=True,
    )
    db.session.add(link)
    db.session.commit()
    return link


def booking_form(**overrides):
    form = {
        "date": MONDAY,
        "time": "09:00",
        "name": "Ada Lovelace",
        "email": "ada@example.com",
    }
    form.update(overrides)
    return {k: v for k, v in form.items() if v is not None}


def fresh(booking_id):
    """Reload a booking, discarding whatever this session has cached."""
    db.session.expire_all()
    return db.session.get(Booking, booking_id)
