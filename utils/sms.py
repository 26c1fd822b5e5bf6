import logging

import httpx
from flask import current_app

logger = logging.getLogger(__name__)

TWILIO_MESSAGES_URL = "https://api.twilio.com/2010-04-01/Accounts/{sid}/Messages.json"


def send_sms(to_phone: str, body: str):
    """
    Send a text message through the Twilio REST API.
    Returns (ok, error) like send_email.
    """
    sid = current_app.config.get("TWILIO_ACCOUNT_SID")
    token = current_app.config.get("TWILIO_AUTH_TOKEN")
    from_number = current_app.config.get("TWILIO_FROM_SMS")

    if not sid or not token or not from_number:
        return False, "SMS not configured"
    if not to_phone:
        return False, "No phone number"

    try:
        response = httpx.post(
            TWILIO_MESSAGES_URL.format(sid=sid),
            data={"To": to_phone, "From": from_number, "Body": body},
            auth=(sid, token),
            timeout=10.0,
        )
    except httpx.HTTPError as exc:
        logger.warning("Twilio request to %s failed: %s", to_phone, exc)
        return False, str(exc)

    if response.status_code >= 400:
        try:
            message = response.json().get("message") or response.text
        except ValueError:
            message = response.text
        logger.warning("Twilio API error %s for %s: %s", response.status_code, to_phone, message)
        return False, message

    return True, None
