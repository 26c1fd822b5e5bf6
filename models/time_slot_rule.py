import uuid
from models.db import db


class TimeSlotRule(db.Model):
    __tablename__ = "time_slot_rules"

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    calendar_id = db.Column(db.String(36), db.ForeignKey("calendars.id"), nullable=False, index=True)

    # Exactly one of these is set: a weekly rule (0=Sunday) or a one-off date (YYYY-MM-DD)
    day_of_week = db.Column(db.Integer, nullable=True)
    specific_date = db.Column(db.String(10), nullable=True)

    start_time = db.Column(db.String(5), nullable=False)  # HH:MM, calendar-local
    end_time = db.Column(db.String(5), nullable=False)
    slot_duration = db.Column(db.Integer, nullable=False, default=30)
    buffer_time = db.Column(db.Integer, nullable=False, default=0)
    max_bookings = db.Column(db.Integer, nullable=False, default=1)

    calendar = db.relationship("Calendar", back_populates="time_slot_rules")

    __table_args__ = (
        db.CheckConstraint(
            "(day_of_week IS NULL) <> (specific_date IS NULL)",
            name="ck_time_slot_rules_one_schedule",
        ),
        db.CheckConstraint("max_bookings >= 1", name="ck_time_slot_rules_capacity"),
    )

    def applies_to(self, date_str: str, dow) -> bool:
        if self.day_of_week is not None and self.day_of_week == dow:
            return True
        return self.specific_date is not None and self.specific_date == date_str

    def validate(self) -> list:
        """
        Returns a list of problems, empty when the rule is usable.
        """
        from scheduling.dates import parse_date, parse_time

        errors = []
        if (self.day_of_week is None) == (self.specific_date is None):
            errors.append("Exactly one of day_of_week or specific_date must be set")
        if self.day_of_week is not None and not 0 <= self.day_of_week <= 6:
            errors.append("day_of_week must be between 0 (Sunday) and 6 (Saturday)")
        if self.specific_date is not None and parse_date(self.specific_date) is None:
            errors.append("specific_date must be YYYY-MM-DD")

        start = parse_time(self.start_time or "")
        end = parse_time(self.end_time or "")
        if start is None or end is None:
            errors.append("start_time and end_time must be HH:MM")
        elif end <= start:
            errors.append("end_time must be after start_time")

        if (self.slot_duration or 0) <= 0:
            errors.append("slot_duration must be positive")
        if (self.buffer_time or 0) < 0:
            errors.append("buffer_time cannot be negative")
        if (self.max_bookings or 0) < 1:
            errors.append("max_bookings must be at least 1")
        return errors
