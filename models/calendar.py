import uuid
from datetime import datetime
from models.db import db


def _uuid() -> str:
    return str(uuid.uuid4())


class Calendar(db.Model):
    __tablename__ = "calendars"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    name = db.Column(db.String(120), nullable=False, default="New Calendar")
    description = db.Column(db.Text, nullable=True)
    timezone = db.Column(db.String(64), nullable=False, default="UTC")

    # Empty list means every origin may embed the booking pages
    allowed_origins = db.Column(db.JSON, nullable=False, default=list)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    booking_links = db.relationship("BookingLink", back_populates="calendar", cascade="all, delete-orphan")
    time_slot_rules = db.relationship("TimeSlotRule", back_populates="calendar", cascade="all, delete-orphan")
