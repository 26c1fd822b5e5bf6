from datetime import datetime, timezone

from flask import Blueprint, jsonify, request, current_app

from scheduling import state_machine, storage
from scheduling.dates import add_days, parse_date
from scheduling.errors import NotFound
from security.admin_key import require_admin_key

admin_bp = Blueprint("admin", __name__, url_prefix="/admin")


# ---------- ADMIN: list bookings of a calendar ----------
@admin_bp.get("/calendars/<calendar_id>/bookings")
@require_admin_key
def list_calendar_bookings(calendar_id: str):
    calendar = storage.get_calendar(calendar_id)
    if not calendar:
        raise NotFound("Calendar not found")

    today = current_app.extensions["booking_clock"].today(calendar.timezone)
    start = request.args.get("start") or today
    end = request.args.get("end") or add_days(today, 30)
    if parse_date(start) is None or parse_date(end) is None:
        return jsonify(error="Invalid date. Use YYYY-MM-DD"), 400

    status = request.args.get("status")
    since = request.args.get("since")
    if since:
        # polling for new bookings: created after the timestamp, any slot date
        try:
            since_dt = datetime.fromisoformat(since)
        except ValueError:
            return jsonify(error="Invalid since. Use an ISO timestamp"), 400
        if since_dt.tzinfo is not None:
            # created_at is stored as naive UTC
            since_dt = since_dt.astimezone(timezone.utc).replace(tzinfo=None)
        rows = storage.list_bookings_since(calendar.id, since_dt)
    else:
        rows = storage.list_bookings(calendar.id, start, end, active_only=False)
    if status:
        rows = [b for b in rows if b.status == status]

    return jsonify([b.to_dict() for b in rows]), 200


# ---------- ADMIN: cancel any booking ----------
@admin_bp.post("/calendars/<calendar_id>/bookings/<booking_id>/cancel")
@require_admin_key
def admin_cancel_booking(calendar_id: str, booking_id: str):
    data = request.get_json(silent=True) or {}
    reason = (data.get("reason") or "").strip() or "Admin cancellation"

    booking = state_machine.admin_cancel(
        booking_id,
        reason=reason,
        clock=current_app.extensions["booking_clock"],
        calendar_id=calendar_id,
    )
    return jsonify(id=booking.id, status=booking.status, message="Cancelled by admin"), 200
