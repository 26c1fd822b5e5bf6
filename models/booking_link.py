import uuid
from datetime import datetime
from models.db import db


def default_fields():
    return [
        {"id": "name", "label": "Name", "field_type": "text", "required": True, "placeholder": "Your name"},
        {"id": "email", "label": "Email", "field_type": "email", "required": True, "placeholder": "your@email.com"},
    ]


class BookingLink(db.Model):
    __tablename__ = "booking_links"

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    calendar_id = db.Column(db.String(36), db.ForeignKey("calendars.id"), nullable=False, index=True)

    slug = db.Column(db.String(80), nullable=False)
    name = db.Column(db.String(120), nullable=False, default="Book a Meeting")
    description = db.Column(db.Text, nullable=True)

    duration = db.Column(db.Integer, nullable=False, default=30)      # minutes per booking
    min_notice = db.Column(db.Integer, nullable=False, default=24)    # hours
    max_advance = db.Column(db.Integer, nullable=False, default=30)   # days

    auto_accept = db.Column(db.Boolean, nullable=False, default=True)
    enabled = db.Column(db.Boolean, nullable=False, default=True)
    hide_title = db.Column(db.Boolean, nullable=False, default=False)
    confirmation_message = db.Column(db.String(255), nullable=False, default="Your booking has been confirmed!")

    # [{id, label, field_type, required, placeholder}]
    fields = db.Column(db.JSON, nullable=False, default=default_fields)
    # [{name, channel, target_field, subject, body, enabled}]
    responders = db.Column(db.JSON, nullable=False, default=list)
    admin_responders = db.Column(db.JSON, nullable=False, default=list)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    calendar = db.relationship("Calendar", back_populates="booking_links")

    __table_args__ = (
        db.UniqueConstraint("calendar_id", "slug", name="uq_booking_link_slug"),
    )
