"""
Booking consistency gate: validates a public submission and inserts it only
while the requested cell still has capacity.
"""
import logging

from scheduling import state_machine, storage
from scheduling.availability import cell_capacity
from scheduling.dates import format_date, minutes_to_time, parse_date, parse_time
from scheduling.errors import CapacityExceeded, ValidationError
from scheduling.fields import check_required, coerce_fields, normalize_phone
from security.tokens import DEFAULT_TOKEN_BYTES
from utils.audit import log_event

logger = logging.getLogger(__name__)


def _slot_from_form(form):
    parsed = parse_date((form.get("date") or "").strip())
    if parsed is None:
        raise ValidationError("Please select a date")

    raw_time = (form.get("time") or "").strip()
    minutes = parse_time(raw_time) if raw_time else None
    if minutes is None:
        raise ValidationError("Please select a time")
    # cells are keyed by these exact strings
    return format_date(*parsed), minutes_to_time(minutes)


def submit(calendar, link, form, notifier=None, base_url: str = "", clock=None,
           token_bytes: int = DEFAULT_TOKEN_BYTES):
    """
    Validate ``form`` (a mapping of submitted strings) and create the booking.

    Checks run in this order and stop at the first failure: date/time
    present, capacity, required fields, field formats. Raises a
    ``BookingError`` subclass on rejection.
    """
    slot_date, slot_time = _slot_from_form(form)

    rules = storage.list_rules(calendar.id)
    capacity = cell_capacity(rules, slot_date)
    if storage.count_active_bookings(calendar.id, slot_date, slot_time) >= capacity:
        _capacity_rejected(calendar, link, slot_date, slot_time)

    check_required(form, link.fields)
    fields_data = coerce_fields(form, link.fields)

    phone = (form.get("phone") or "").strip() or None
    if phone and normalize_phone(phone) is None:
        raise ValidationError("Please enter a valid phone number")
    notes = (form.get("notes") or "").strip() or None

    # responders interpolate these alongside the custom answers
    fields_data["date"] = slot_date
    fields_data["time"] = slot_time

    details = {
        "slot_date": slot_date,
        "slot_time": slot_time,
        "name": fields_data["name"],
        "email": fields_data["email"],
        "phone": phone,
        "notes": notes,
        "fields_data": fields_data,
    }

    try:
        return state_machine.create_booking(
            calendar, link, details, capacity,
            notifier=notifier, base_url=base_url, clock=clock, token_bytes=token_bytes,
        )
    except CapacityExceeded:
        # lost the last seat to a concurrent submission
        _capacity_rejected(calendar, link, slot_date, slot_time)


def _capacity_rejected(calendar, link, slot_date, slot_time):
    logger.info("Capacity reached for calendar %s at %s %s", calendar.id, slot_date, slot_time)
    log_event("BOOKING_FAIL_CAPACITY", entity="calendar", entity_id=calendar.id,
              metadata={"link": link.slug, "slot_date": slot_date, "slot_time": slot_time})
    raise CapacityExceeded()
