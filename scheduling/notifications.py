"""
Notification trigger for booking state changes.

The booking engine only knows the ``Notifier`` contract and the three event
kinds. Channel selection, templating and delivery belong to the notifier;
``ResponderNotifier`` is the default one and walks the responders configured
on the booking link.
"""
import enum
import logging
from typing import Optional

from scheduling.dates import format_time
from utils.emailer import send_email
from utils.sms import send_sms

logger = logging.getLogger(__name__)


class EventKind(str, enum.Enum):
    CUSTOMER_CONFIRMATION = "customer_confirmation"
    CUSTOMER_DENIAL = "customer_denial"
    ADMIN_APPROVAL_REQUEST = "admin_approval_request"


class ResponderChannel(str, enum.Enum):
    EMAIL = "email"
    SMS = "sms"


DENIAL_BODY = (
    "Hi {name},\n\n"
    "Unfortunately, your booking request for {date} at {time} could not be approved at this time.\n\n"
    "Please contact us for more information or to reschedule.\n\n"
    "Thank you for your understanding."
)


class Notifier:
    """Interface the booking engine calls after a state change has been stored."""

    def notify(self, event_kind: EventKind, booking, link, calendar,
               approve_url: Optional[str] = None, deny_url: Optional[str] = None) -> None:
        raise NotImplementedError


class NullNotifier(Notifier):
    def notify(self, event_kind, booking, link, calendar, approve_url=None, deny_url=None):
        logger.debug("Notification %s for booking %s dropped", event_kind.value, booking.id)


def interpolate_template(template: str, fields: dict) -> str:
    """Replace ``{{key}}`` placeholders; unknown placeholders stay as they are."""
    result = template or ""
    for key, value in fields.items():
        if isinstance(value, bool):
            replacement = "true" if value else "false"
        else:
            replacement = str(value)
        result = result.replace("{{" + key + "}}", replacement)
    return result


def customer_fields(booking) -> dict:
    data = dict(booking.fields_data or {})
    data["name"] = booking.name
    data["email"] = booking.email
    data["date"] = booking.slot_date
    data["time"] = booking.slot_time
    if booking.phone:
        data.setdefault("phone", booking.phone)
    return data


def _channel(responder: dict) -> Optional[ResponderChannel]:
    try:
        return ResponderChannel(responder.get("channel"))
    except ValueError:
        return None


class ResponderNotifier(Notifier):
    """Sends the link's configured responders over email (SMTP) or SMS (Twilio)."""

    def notify(self, event_kind, booking, link, calendar, approve_url=None, deny_url=None):
        if event_kind == EventKind.CUSTOMER_CONFIRMATION:
            self._customer_confirmation(booking, link)
        elif event_kind == EventKind.CUSTOMER_DENIAL:
            self._customer_denial(booking, link)
        elif event_kind == EventKind.ADMIN_APPROVAL_REQUEST:
            self._admin_approval_request(booking, link, approve_url, deny_url)

    def _customer_confirmation(self, booking, link):
        fields = customer_fields(booking)
        for responder in link.responders or []:
            if not responder.get("enabled", True):
                continue
            target = fields.get(responder.get("target_field") or "")
            if not isinstance(target, str) or not target:
                continue
            subject = interpolate_template(responder.get("subject", ""), fields)
            body = interpolate_template(responder.get("body", ""), fields)
            self._deliver(responder, target, subject, body)

    def _customer_denial(self, booking, link):
        fields = customer_fields(booking)
        fields["status"] = "denied"
        body = DENIAL_BODY.format(
            name=booking.name or "Guest",
            date=booking.slot_date or "the requested date",
            time=format_time(booking.slot_time or ""),
        )
        subject = f"Booking Request Update for {link.name}"
        for responder in link.responders or []:
            if not responder.get("enabled", True):
                continue
            target = fields.get(responder.get("target_field") or "")
            if not isinstance(target, str) or not target:
                target = fields.get("email")
            if not target:
                continue
            self._deliver(responder, target, subject, body)

    def _admin_approval_request(self, booking, link, approve_url, deny_url):
        admin_responders = link.admin_responders or []
        if not admin_responders:
            logger.info("No admin responders configured for booking link %s", link.name)
            return

        data = {
            "name": booking.name,
            "email": booking.email,
            "date": booking.slot_date,
            "time": format_time(booking.slot_time),
            "duration": booking.duration,
            "event": link.name,
            "approve_url": approve_url or "",
            "deny_url": deny_url or "",
        }
        for responder in admin_responders:
            if not responder.get("enabled", True):
                continue
            # For admin responders target_field holds the recipient address itself
            target = responder.get("target_field") or ""
            if not target:
                logger.warning("Admin responder %r has no target configured", responder.get("name"))
                continue
            subject = interpolate_template(responder.get("subject", ""), data)
            body = interpolate_template(responder.get("body", ""), data)
            self._deliver(responder, target, subject, body)

    def _deliver(self, responder, target, subject, body):
        channel = _channel(responder)
        if channel == ResponderChannel.EMAIL:
            ok, error = send_email(target, subject, body)
        elif channel == ResponderChannel.SMS:
            ok, error = send_sms(target, body)
        else:
            logger.warning("Responder %r uses unsupported channel %r", responder.get("name"), responder.get("channel"))
            return
        if not ok:
            logger.warning("Responder %r could not deliver to %s: %s", responder.get("name"), target, error)


def dispatch(notifier: Notifier, event_kind: EventKind, booking, link, calendar,
             approve_url: Optional[str] = None, deny_url: Optional[str] = None) -> bool:
    """
    Run the notifier after the booking change is committed. A failure here
    never touches the booking; it is logged and reported as False.
    """
    if notifier is None:
        return False
    try:
        notifier.notify(event_kind, booking, link, calendar, approve_url=approve_url, deny_url=deny_url)
    except Exception:
        logger.exception("Notification %s failed for booking %s", event_kind.value, booking.id)
        return False
    return True
