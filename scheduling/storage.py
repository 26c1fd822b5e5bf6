"""
Persistence adapter for the booking engine.

All reads and writes the availability generator, consistency gate and state
machine need go through these functions; nothing else touches
``Booking.status``, ``Booking.confirmation_token`` or ``Booking.seat``.
"""
import logging
from datetime import datetime

from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from models import db
from models.booking import Booking, ACTIVE_STATUSES
from models.booking_link import BookingLink
from models.calendar import Calendar
from models.time_slot_rule import TimeSlotRule
from scheduling.errors import CapacityExceeded, DependencyFailure

logger = logging.getLogger(__name__)


def get_calendar(calendar_id: str):
    if not calendar_id:
        return None
    return db.session.get(Calendar, calendar_id)


def get_link(calendar_id: str, slug: str, enabled_only: bool = True):
    q = BookingLink.query.filter_by(calendar_id=calendar_id, slug=slug)
    if enabled_only:
        q = q.filter(BookingLink.enabled.is_(True))
    return q.first()


def list_rules(calendar_id: str):
    return (
        TimeSlotRule.query
        .filter_by(calendar_id=calendar_id)
        .order_by(TimeSlotRule.start_time.asc())
        .all()
    )


def count_active_bookings(calendar_id: str, slot_date: str, slot_time: str) -> int:
    return (
        db.session.query(func.count(Booking.id))
        .filter(
            Booking.calendar_id == calendar_id,
            Booking.slot_date == slot_date,
            Booking.slot_time == slot_time,
            Booking.status.in_(ACTIVE_STATUSES),
        )
        .scalar()
    ) or 0


def list_bookings(calendar_id: str, start_date: str, end_date: str, active_only: bool = True):
    q = Booking.query.filter(
        Booking.calendar_id == calendar_id,
        Booking.slot_date >= start_date,
        Booking.slot_date <= end_date,
    )
    if active_only:
        q = q.filter(Booking.status.in_(ACTIVE_STATUSES))
    return q.order_by(Booking.slot_date.asc(), Booking.slot_time.asc()).all()


def list_bookings_since(calendar_id: str, since: datetime):
    return (
        Booking.query
        .filter(Booking.calendar_id == calendar_id, Booking.created_at > since)
        .order_by(Booking.created_at.asc())
        .all()
    )


def get_booking(booking_id: str):
    if not booking_id:
        return None
    return db.session.get(Booking, booking_id)


def taken_seats(calendar_id: str, slot_date: str, slot_time: str) -> set:
    rows = (
        db.session.query(Booking.seat)
        .filter(
            Booking.calendar_id == calendar_id,
            Booking.slot_date == slot_date,
            Booking.slot_time == slot_time,
            Booking.seat.isnot(None),
        )
        .all()
    )
    return {r[0] for r in rows}


def insert_booking_within_capacity(values: dict, capacity: int) -> Booking:
    """
    Insert a booking only if the cell still has a free seat.

    Each active booking holds a seat ordinal in ``[0, capacity)`` and the
    ``uq_booking_cell_seat`` constraint rejects a second writer on the same
    seat, so two racing submissions cannot both take the last one. On a
    collision the snapshot is re-read and the next free seat tried.
    """
    cell = (values["calendar_id"], values["slot_date"], values["slot_time"])

    for attempt in range(max(capacity, 1)):
        taken = taken_seats(*cell)
        seat = next((s for s in range(capacity) if s not in taken), None)
        if seat is None:
            raise CapacityExceeded()

        booking = Booking(seat=seat, **values)
        db.session.add(booking)
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            logger.info("Seat %s of %s %s was taken concurrently (attempt %d)", seat, cell[1], cell[2], attempt + 1)
            continue
        except SQLAlchemyError as exc:
            db.session.rollback()
            logger.exception("Failed to insert booking for %s %s", cell[1], cell[2])
            raise DependencyFailure(str(exc)) from exc
        return booking

    raise CapacityExceeded()


def insert_or_replace_booking(booking: Booking) -> Booking:
    try:
        merged = db.session.merge(booking)
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception("Failed to save booking %s", booking.id)
        raise DependencyFailure(str(exc)) from exc
    return merged


def set_booking_status(booking_id: str, status: str, expected: str = None, now: datetime = None) -> bool:
    """
    Conditional status write. Returns False when ``expected`` was given and
    the stored status no longer matches it (nothing is written then).
    Moving to a terminal status releases the booking's seat.
    """
    values = {"status": status, "updated_at": now or datetime.utcnow()}
    if status not in ACTIVE_STATUSES:
        values["seat"] = None

    stmt = update(Booking).where(Booking.id == booking_id)
    if expected is not None:
        stmt = stmt.where(Booking.status == expected)
    stmt = stmt.values(**values).execution_options(synchronize_session=False)

    try:
        result = db.session.execute(stmt)
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception("Failed to set booking %s to %s", booking_id, status)
        raise DependencyFailure(str(exc)) from exc

    # The commit expired loaded instances, so callers see the new status on next access
    return result.rowcount == 1
