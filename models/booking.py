import enum
from datetime import datetime
from models.db import db


class BookingStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


ACTIVE_STATUSES = (BookingStatus.PENDING.value, BookingStatus.CONFIRMED.value)


class Booking(db.Model):
    __tablename__ = "bookings"

    id = db.Column(db.String(36), primary_key=True)
    calendar_id = db.Column(db.String(36), db.ForeignKey("calendars.id"), nullable=False, index=True)
    booking_link_id = db.Column(db.String(36), db.ForeignKey("booking_links.id"), nullable=False, index=True)

    slot_date = db.Column(db.String(10), nullable=False)  # YYYY-MM-DD
    slot_time = db.Column(db.String(5), nullable=False)   # HH:MM
    duration = db.Column(db.Integer, nullable=False)

    name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(30), nullable=True)
    notes = db.Column(db.Text, nullable=True)
    fields_data = db.Column(db.JSON, nullable=True)

    status = db.Column(db.String(20), nullable=False, default=BookingStatus.PENDING.value)
    confirmation_token = db.Column(db.String(128), nullable=True)

    # Capacity ordinal held while the booking is active; NULL once cancelled
    seat = db.Column(db.Integer, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        # Hard business-rule: one active booking per seat of a cell (prevents overbooking)
        db.UniqueConstraint("calendar_id", "slot_date", "slot_time", "seat", name="uq_booking_cell_seat"),
        db.Index("ix_bookings_cell", "calendar_id", "slot_date", "slot_time"),
    )

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    def to_dict(self, include_token: bool = False) -> dict:
        out = {
            "id": self.id,
            "calendar_id": self.calendar_id,
            "booking_link_id": self.booking_link_id,
            "slot_date": self.slot_date,
            "slot_time": self.slot_time,
            "duration": self.duration,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "notes": self.notes,
            "fields_data": self.fields_data or {},
            "status": self.status,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
        if include_token:
            out["confirmation_token"] = self.confirmation_token
        return out
