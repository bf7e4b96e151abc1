from typing import Optional
import logging

from twilio.rest import Client
from twilio.base.exceptions import TwilioRestException

from app.core.config import settings
from app.models.appointment import Appointment
from app.utils.helpers import reminder_time_label
from app.utils.timezone import utc_to_clinic_time

logger = logging.getLogger(__name__)


def _whatsapp_address(number: str) -> str:
    return number if number.startswith("whatsapp:") else f"whatsapp:{number}"


def send_whatsapp_message(to_number: str, body: str, from_number: Optional[str] = None) -> None:
    """
    Send a WhatsApp text through Twilio.

    Raises on any delivery problem so callers can record the reason.
    """
    if settings.WHATSAPP_BACKEND == "console":
        logger.info(f"[WHATSAPP] to={to_number}\n{body}")
        return

    if not settings.TWILIO_ACCOUNT_SID or not settings.TWILIO_AUTH_TOKEN:
        raise RuntimeError("Twilio credentials not configured (TWILIO_ACCOUNT_SID / TWILIO_AUTH_TOKEN)")

    from_number = from_number or settings.TWILIO_WHATSAPP_FROM
    if not from_number:
        raise RuntimeError("TWILIO_WHATSAPP_FROM is not configured")

    client = Client(settings.TWILIO_ACCOUNT_SID, settings.TWILIO_AUTH_TOKEN)
    try:
        message = client.messages.create(
            to=_whatsapp_address(to_number),
            from_=_whatsapp_address(from_number),
            body=body,
        )
    except TwilioRestException as e:
        logger.error(f"Twilio error sending WhatsApp message to {to_number}: {e}")
        raise RuntimeError(f"Twilio error: {e.msg}") from e
    logger.info(f"WhatsApp message sent to {to_number}. SID: {message.sid}")


def build_reminder_text(appt: Appointment, offset_minutes: int, timezone_str: Optional[str]) -> str:
    local = utc_to_clinic_time(appt.starts_at, timezone_str)
    return (
        f"Reminder: Your dental appointment is {reminder_time_label(offset_minutes)}.\n\n"
        f"Date: {local.strftime('%A, %B %d, %Y')}\n"
        f"Time: {local.strftime('%H:%M')}\n"
        f"Doctor: Dr. {appt.doctor.name}\n"
        f"Service: {appt.service}\n"
        f"Ref: {appt.reference_number}\n\n"
        "To reschedule or cancel, reply with your reference number."
    )


def send_appointment_reminder_whatsapp(appt: Appointment, offset_minutes: int, timezone_str: Optional[str]) -> None:
    send_whatsapp_message(appt.patient.phone, build_reminder_text(appt, offset_minutes, timezone_str))
