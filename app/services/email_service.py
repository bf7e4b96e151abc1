import smtplib
import logging
from email.message import EmailMessage

from app.core.config import settings
from app.models.appointment import Appointment
from app.utils.helpers import reminder_time_label
from app.utils.timezone import utc_to_clinic_time

logger = logging.getLogger(__name__)


def send_email(to_email: str, subject: str, body: str, html: str | None = None) -> bool:
    if settings.EMAIL_BACKEND == "console":
        logger.info(f"[EMAIL] to={to_email} subject={subject}\n{body}")
        return True

    smtp_host = settings.SMTP_HOST
    smtp_port = settings.SMTP_PORT
    smtp_user = settings.SMTP_USER
    smtp_pass = settings.SMTP_PASSWORD

    if not smtp_user or not smtp_pass:
        raise RuntimeError("SMTP credentials not configured (SMTP_USER / SMTP_PASSWORD)")

    msg = EmailMessage()
    msg["Subject"] = subject
    msg["From"] = f"{settings.SENDER_NAME} <{smtp_user}>"
    msg["To"] = to_email
    msg.set_content(body)
    if html:
        msg.add_alternative(html, subtype="html")

    try:
        with smtplib.SMTP(smtp_host, smtp_port, timeout=10) as server:
            server.ehlo()
            if smtp_port == 587:
                server.starttls()
                server.ehlo()
            server.login(smtp_user, smtp_pass)
            server.send_message(msg)
        return True
    except Exception:
        logger.exception(f"Failed to send email to {to_email}")
        raise


def _appointment_lines(appt: Appointment, timezone_str: str | None) -> str:
    local = utc_to_clinic_time(appt.starts_at, timezone_str)
    return (
        f"Date: {local.strftime('%A, %B %d, %Y')}\n"
        f"Time: {local.strftime('%H:%M')}\n"
        f"Doctor: Dr. {appt.doctor.name}\n"
        f"Service: {appt.service}\n"
        f"Reference number: {appt.reference_number}\n"
    )


def send_appointment_confirmation_email(appt: Appointment, timezone_str: str | None) -> bool:
    subject = f"Appointment confirmed - {appt.reference_number}"
    body = (
        f"Hi {appt.patient.name},\n\n"
        f"Your appointment at {settings.APP_NAME} is confirmed.\n\n"
        f"{_appointment_lines(appt, timezone_str)}\n"
        "Keep your reference number: you will need it together with your phone number "
        "to reschedule or cancel.\n\n"
        f"{settings.SENDER_NAME}"
    )
    return send_email(appt.patient.email, subject, body)


def send_appointment_rescheduled_email(appt: Appointment, timezone_str: str | None) -> bool:
    subject = f"Appointment rescheduled - {appt.reference_number}"
    body = (
        f"Hi {appt.patient.name},\n\n"
        "Your appointment has been moved. The new details are:\n\n"
        f"{_appointment_lines(appt, timezone_str)}\n"
        f"{settings.SENDER_NAME}"
    )
    return send_email(appt.patient.email, subject, body)


def send_appointment_cancelled_email(appt: Appointment, timezone_str: str | None) -> bool:
    subject = f"Appointment cancelled - {appt.reference_number}"
    body = (
        f"Hi {appt.patient.name},\n\n"
        "Your appointment has been cancelled:\n\n"
        f"{_appointment_lines(appt, timezone_str)}\n"
        "If this was a mistake, just book a new appointment.\n\n"
        f"{settings.SENDER_NAME}"
    )
    return send_email(appt.patient.email, subject, body)


def send_appointment_reminder_email(appt: Appointment, offset_minutes: int, timezone_str: str | None) -> bool:
    label = reminder_time_label(offset_minutes)
    subject = f"Reminder: your dental appointment is {label}"
    body = (
        f"Hi {appt.patient.name},\n\n"
        f"This is a reminder that your appointment is {label}.\n\n"
        f"{_appointment_lines(appt, timezone_str)}\n"
        f"{settings.SENDER_NAME}"
    )
    return send_email(appt.patient.email, subject, body)
