from .db import db
from .audit_log import AuditLog
from .calendar import Calendar
from .booking_link import BookingLink
from .time_slot_rule import TimeSlotRule
from .booking import Booking, BookingStatus, ACTIVE_STATUSES
