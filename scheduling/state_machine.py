"""
Booking lifecycle.

    pending   -> confirmed | cancelled
    confirmed -> cancelled
    cancelled, completed: terminal (completed is never set here)

Public approve/deny are authorised only by the booking's confirmation token
and succeed at most once: the decision is a conditional write on
``status = 'pending'``, so a replayed or racing call finds nothing to update
and gets ``AlreadyDecided``. The token is kept after the decision.
"""
import logging
from urllib.parse import quote

from models.booking import BookingStatus
from scheduling import storage
from scheduling.clock import SystemClock
from scheduling.errors import AlreadyDecided, InvalidToken, NotFound
from scheduling.notifications import EventKind, dispatch
from security.tokens import (
    DEFAULT_TOKEN_BYTES,
    generate_booking_id,
    generate_confirmation_token,
    tokens_match,
)
from utils.audit import log_event

logger = logging.getLogger(__name__)

PENDING = BookingStatus.PENDING.value
CONFIRMED = BookingStatus.CONFIRMED.value
CANCELLED = BookingStatus.CANCELLED.value


def decision_urls(base_url: str, calendar, link, booking):
    base = (base_url or "").rstrip("/")
    token = quote(booking.confirmation_token or "", safe="")
    prefix = f"{base}/book/{calendar.id}/{link.slug}"
    return (
        f"{prefix}/approve/{booking.id}?token={token}",
        f"{prefix}/deny/{booking.id}?token={token}",
    )


def create_booking(calendar, link, details: dict, capacity: int, notifier=None,
                   base_url: str = "", clock=None, token_bytes: int = DEFAULT_TOKEN_BYTES):
    """
    Store a new booking in its initial state and fire the matching
    notification. ``details`` carries the validated slot and customer values.
    """
    clock = clock or SystemClock()
    now = clock.now()
    status = CONFIRMED if link.auto_accept else PENDING

    values = dict(
        details,
        id=generate_booking_id(),
        calendar_id=calendar.id,
        booking_link_id=link.id,
        duration=link.duration,
        status=status,
        # Auto-accepted bookings get one too, it just never gets used
        confirmation_token=generate_confirmation_token(token_bytes),
        created_at=now,
        updated_at=now,
    )
    booking = storage.insert_booking_within_capacity(values, capacity)

    log_event("BOOKING_CREATE", entity="booking", entity_id=booking.id,
              metadata={"status": status, "slot_date": booking.slot_date, "slot_time": booking.slot_time})

    if link.auto_accept:
        dispatch(notifier, EventKind.CUSTOMER_CONFIRMATION, booking, link, calendar)
    else:
        approve_url, deny_url = decision_urls(base_url, calendar, link, booking)
        dispatch(notifier, EventKind.ADMIN_APPROVAL_REQUEST, booking, link, calendar,
                 approve_url=approve_url, deny_url=deny_url)
    return booking


def _load_for_decision(calendar, link, booking_id: str, token: str):
    booking = storage.get_booking(booking_id)
    if booking is None or booking.calendar_id != calendar.id or booking.booking_link_id != link.id:
        raise NotFound()

    if not tokens_match(booking.confirmation_token, token):
        log_event("BOOKING_DECISION_REJECTED", entity="booking", entity_id=booking.id,
                  metadata={"reason": "invalid_token"})
        raise InvalidToken()

    if booking.status != PENDING:
        log_event("BOOKING_DECISION_REJECTED", entity="booking", entity_id=booking.id,
                  metadata={"reason": "already_decided", "status": booking.status})
        raise AlreadyDecided(booking.status)
    return booking


def _decide(calendar, link, booking_id, token, new_status, clock):
    clock = clock or SystemClock()
    booking = _load_for_decision(calendar, link, booking_id, token)

    if not storage.set_booking_status(booking.id, new_status, expected=PENDING, now=clock.now()):
        # Another request decided first
        current = storage.get_booking(booking.id)
        raise AlreadyDecided(current.status if current else new_status)
    return storage.get_booking(booking.id)


def approve(calendar, link, booking_id: str, token: str, notifier=None, clock=None):
    booking = _decide(calendar, link, booking_id, token, CONFIRMED, clock)
    log_event("BOOKING_APPROVE", entity="booking", entity_id=booking.id)
    dispatch(notifier, EventKind.CUSTOMER_CONFIRMATION, booking, link, calendar)
    return booking


def deny(calendar, link, booking_id: str, token: str, notifier=None, clock=None):
    booking = _decide(calendar, link, booking_id, token, CANCELLED, clock)
    log_event("BOOKING_DENY", entity="booking", entity_id=booking.id)
    dispatch(notifier, EventKind.CUSTOMER_DENIAL, booking, link, calendar)
    return booking


def admin_cancel(booking_id: str, reason: str = None, clock=None, calendar_id: str = None):
    """
    Privileged cancel. No token and no state guard: the admin surface has
    already authenticated the caller.
    """
    clock = clock or SystemClock()
    booking = storage.get_booking(booking_id)
    if booking is None or (calendar_id is not None and booking.calendar_id != calendar_id):
        raise NotFound()

    previous = booking.status
    storage.set_booking_status(booking.id, CANCELLED, now=clock.now())
    log_event("ADMIN_BOOKING_CANCEL", entity="booking", entity_id=booking.id,
              metadata={"reason": reason or "Admin cancellation", "previous_status": previous})
    logger.info("Booking %s cancelled by admin (was %s)", booking.id, previous)
    return storage.get_booking(booking.id)
