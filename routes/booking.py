from flask import Blueprint, request, jsonify, current_app, g

from models.booking import BookingStatus
from scheduling import gate, state_machine, storage
from scheduling.availability import available_slots_for_link, booking_window
from scheduling.dates import add_minutes
from scheduling.errors import NotFound
from utils.cors import cors_preflight, with_cors

booking_bp = Blueprint("booking", __name__, url_prefix="/book")

PENDING_MESSAGE = "Your booking request has been received and is awaiting approval."


def _clock():
    return current_app.extensions["booking_clock"]


def _notifier():
    return current_app.extensions["booking_notifier"]


def _base_url() -> str:
    return (current_app.config.get("PUBLIC_BASE_URL") or request.host_url).rstrip("/")


def _load_calendar_and_link(calendar_id: str, slug: str):
    calendar = storage.get_calendar(calendar_id)
    if not calendar:
        raise NotFound("Calendar not found")
    g.booking_calendar = calendar

    link = storage.get_link(calendar.id, slug)
    if not link:
        raise NotFound("Booking link not found")
    return calendar, link


@booking_bp.before_request
def _preflight():
    if request.method != "OPTIONS":
        return None
    calendar_id = (request.view_args or {}).get("calendar_id")
    calendar = storage.get_calendar(calendar_id)
    # Unknown calendar: answer permissively, the real request will 404
    return cors_preflight(request.headers.get("Origin"), calendar.allowed_origins if calendar else [])


@booking_bp.after_request
def _apply_cors(resp):
    calendar = getattr(g, "booking_calendar", None)
    if calendar is not None and request.method != "OPTIONS":
        with_cors(resp, request.headers.get("Origin"), calendar.allowed_origins)
    return resp


# ---------- PUBLIC: availability page ----------
@booking_bp.get("/<calendar_id>/<slug>")
def booking_page(calendar_id: str, slug: str):
    calendar, link = _load_calendar_and_link(calendar_id, slug)

    today = _clock().today(calendar.timezone)
    window = booking_window(
        link,
        today,
        requested_date=request.args.get("date"),
        days=request.args.get("days", 1),
        max_days=current_app.config.get("BOOKING_MAX_DAYS", 30),
    )
    slots = available_slots_for_link(calendar.id, link, window.view_start, window.view_end)

    notitle = request.args.get("notitle")
    hide_title = notitle in ("1", "true") if notitle is not None else link.hide_title

    return jsonify(
        calendar={
            "id": calendar.id,
            "name": calendar.name,
            "description": calendar.description,
            "timezone": calendar.timezone,
        },
        link={
            "id": link.id,
            "slug": link.slug,
            "name": link.name,
            "description": link.description,
            "duration": link.duration,
            "auto_accept": link.auto_accept,
            "fields": link.fields or [],
        },
        window=window.to_dict(),
        slots=[s.to_dict() for s in slots],
        display={
            "hide_title": hide_title,
            "css": request.args.get("css"),
            "css_url": request.args.get("css_url"),
            "htmx": request.headers.get("HX-Request") == "true",
        },
    ), 200


# ---------- PUBLIC: submit a booking (CAPACITY SAFE) ----------
@booking_bp.post("/<calendar_id>/<slug>/submit")
def submit_booking(calendar_id: str, slug: str):
    calendar, link = _load_calendar_and_link(calendar_id, slug)

    booking = gate.submit(
        calendar,
        link,
        request.form,
        notifier=_notifier(),
        base_url=_base_url(),
        clock=_clock(),
        token_bytes=current_app.config.get("CONFIRMATION_TOKEN_BYTES", 24),
    )

    confirmed = booking.status == BookingStatus.CONFIRMED.value
    return jsonify(
        booking={
            "id": booking.id,
            "status": booking.status,
            "slot_date": booking.slot_date,
            "slot_time": booking.slot_time,
            "end_time": add_minutes(booking.slot_time, booking.duration),
            "duration": booking.duration,
            "name": booking.name,
        },
        message=link.confirmation_message if confirmed else PENDING_MESSAGE,
    ), 201


# ---------- TOKEN LINKS: approve / deny a pending booking ----------
@booking_bp.post("/<calendar_id>/<slug>/approve/<booking_id>")
def approve_booking(calendar_id: str, slug: str, booking_id: str):
    calendar, link = _load_calendar_and_link(calendar_id, slug)
    booking = state_machine.approve(
        calendar, link, booking_id, request.args.get("token", ""),
        notifier=_notifier(), clock=_clock(),
    )
    return jsonify(id=booking.id, status=booking.status, message="Booking approved"), 200


@booking_bp.post("/<calendar_id>/<slug>/deny/<booking_id>")
def deny_booking(calendar_id: str, slug: str, booking_id: str):
    calendar, link = _load_calendar_and_link(calendar_id, slug)
    booking = state_machine.deny(
        calendar, link, booking_id, request.args.get("token", ""),
        notifier=_notifier(), clock=_clock(),
    )
    return jsonify(id=booking.id, status=booking.status, message="Booking denied"), 200
