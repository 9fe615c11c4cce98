import logging
import smtplib
from datetime import UTC, date, datetime, timedelta
from email.mime.application import MIMEApplication
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from renobook.core.config import settings
from renobook.models.booking import Booking

logger = logging.getLogger(__name__)


def _send_email_sync(
    to_email: str,
    subject: str,
    html_body: str,
    ics: str | None = None,
) -> None:
    """Send email via SMTP (blocking). Use from background task."""
    if not settings.email_enabled:
        logger.debug("Email disabled (SMTP not configured), skipping send")
        return
    msg = MIMEMultipart("mixed")
    msg["Subject"] = subject
    msg["From"] = f"{settings.from_name} <{settings.from_email}>"
    msg["To"] = to_email
    msg.attach(MIMEText(html_body, "html", "utf-8"))
    if ics:
        part = MIMEApplication(ics.encode("utf-8"), _subtype="calendar")
        part.add_header("Content-Disposition", "attachment", filename="afspraak.ics")
        msg.attach(part)
    try:
        with smtplib.SMTP(settings.smtp_host, settings.smtp_port) as server:
            server.starttls()
            server.login(settings.smtp_user, settings.smtp_password)
            server.sendmail(settings.from_email, [to_email], msg.as_string())
        logger.info("Email sent to %s", to_email)
    except Exception as e:
        logger.exception("Failed to send email to %s: %s", to_email, e)


def _html_escape(s: str) -> str:
    return (
        s.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )


def _ics_escape(s: str) -> str:
    return s.replace("\\", "\\\\").replace(";", "\\;").replace(",", "\\,").replace("\n", "\\n")


def _slot_start(slot_date: date, slot_time: str) -> datetime:
    hours, minutes = (int(p) for p in slot_time.split(":"))
    return datetime(slot_date.year, slot_date.month, slot_date.day, hours, minutes)


def build_ics(booking: Booking) -> str:
    """iCalendar event for the appointment, in the business timezone."""
    start = _slot_start(booking.slot_date, booking.slot_time)
    end = start + timedelta(minutes=settings.appointment_duration_minutes)
    fmt = "%Y%m%dT%H%M%S"
    stamp = datetime.now(UTC).strftime(fmt) + "Z"
    uid = f"{booking.reference or booking.id}@{settings.site_name.replace(' ', '').lower()}"
    lines = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        f"PRODID:-//{_ics_escape(settings.site_name)}//Afspraken//NL",
        "METHOD:PUBLISH",
        "BEGIN:VEVENT",
        f"UID:{uid}",
        f"DTSTAMP:{stamp}",
        f"DTSTART;TZID={settings.timezone}:{start.strftime(fmt)}",
        f"DTEND;TZID={settings.timezone}:{end.strftime(fmt)}",
        f"SUMMARY:{_ics_escape(settings.site_name + ' - ' + (booking.reference or 'afspraak'))}",
        f"LOCATION:{_ics_escape(booking.municipality)}",
        f"DESCRIPTION:{_ics_escape(booking.message or '')}",
        "END:VEVENT",
        "END:VCALENDAR",
    ]
    return "\r\n".join(lines) + "\r\n"


def _layout(title: str, inner_html: str) -> str:
    return f"""
<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{title}</title>
</head>
<body style="margin:0;padding:0;font-family:-apple-system,BlinkMacSystemFont,'Segoe UI',Roboto,sans-serif;background-color:#f3f4f6;">
  <table role="presentation" width="100%" cellspacing="0" cellpadding="0" style="background-color:#f3f4f6;">
    <tr>
      <td align="center" style="padding:40px 16px;">
        <table role="presentation" width="100%" cellspacing="0" cellpadding="0" style="max-width:560px;background:#ffffff;border-radius:12px;overflow:hidden;">
          <tr>
            <td style="padding:32px 32px 24px 32px;">
              {inner_html}
            </td>
          </tr>
          <tr>
            <td style="padding:24px 32px 32px 32px;background:#f9fafb;border-top:1px solid #e5e7eb;">
              <p style="margin:0 0 4px 0;font-size:13px;font-weight:600;color:#111827;">{settings.site_name}</p>
              <p style="margin:0;font-size:13px;color:#6b7280;">
                {settings.contact_email} &nbsp;·&nbsp; {settings.contact_phone}<br>
                {settings.contact_address}
              </p>
            </td>
          </tr>
        </table>
      </td>
    </tr>
  </table>
</body>
</html>
"""


def _slot_block(booking: Booking) -> str:
    date_str = booking.slot_date.strftime("%A %d %B %Y")
    return f"""
              <table role="presentation" width="100%" cellspacing="0" cellpadding="0" style="background:#f9fafb;border-radius:8px;margin-bottom:24px;">
                <tr>
                  <td style="padding:20px 24px;">
                    <p style="margin:0 0 8px 0;font-size:12px;text-transform:uppercase;color:#6b7280;">Reference</p>
                    <p style="margin:0;font-size:16px;font-weight:600;color:#111827;">{_html_escape(booking.reference or '')}</p>
                    <p style="margin:12px 0 0 0;font-size:12px;text-transform:uppercase;color:#6b7280;">Date</p>
                    <p style="margin:0;font-size:16px;font-weight:600;color:#111827;">{date_str}</p>
                    <p style="margin:12px 0 0 0;font-size:12px;text-transform:uppercase;color:#6b7280;">Time</p>
                    <p style="margin:0;font-size:16px;font-weight:600;color:#111827;">{booking.slot_time}</p>
                  </td>
                </tr>
              </table>"""


def build_booking_confirmation_html(booking: Booking) -> str:
    name = _html_escape(booking.full_name or "there")
    message_section = ""
    if booking.message:
        message_section = f"""
              <p style="margin:0 0 16px 0;color:#374151;"><strong>Your message:</strong></p>
              <p style="margin:0 0 24px 0;color:#6b7280;font-size:14px;">{_html_escape(booking.message)}</p>"""
    inner = f"""
              <h1 style="margin:0 0 8px 0;font-size:22px;font-weight:600;color:#111827;">Appointment requested</h1>
              <p style="margin:0 0 24px 0;font-size:15px;color:#6b7280;">Hi {name}, we received your appointment request. We will confirm it shortly.</p>
              {_slot_block(booking)}
              {message_section}
              <p style="margin:0;font-size:14px;color:#374151;">If you need to reschedule or cancel, please contact us.</p>"""
    return _layout("Appointment requested", inner)


def build_admin_notification_html(booking: Booking) -> str:
    rows = [
        ("Name", booking.full_name),
        ("Email", booking.email),
        ("Phone", booking.phone),
        ("Municipality", booking.municipality),
        ("Project type", booking.project_type),
        ("Property type", booking.property_type),
        ("Budget", booking.budget),
        ("Timing", booking.timing),
        ("Message", booking.message),
    ]
    details = "".join(
        f'<p style="margin:0 0 6px 0;font-size:14px;color:#374151;"><strong>{label}:</strong> {_html_escape(value)}</p>'
        for label, value in rows
        if value
    )
    inner = f"""
              <h1 style="margin:0 0 16px 0;font-size:22px;font-weight:600;color:#111827;">New appointment</h1>
              {_slot_block(booking)}
              {details}"""
    return _layout("New appointment", inner)


_STATUS_TEXT = {
    "confirmed": ("Appointment confirmed", "your appointment is confirmed. See you then!"),
    "rejected": ("Appointment declined", "unfortunately we cannot keep this appointment."),
    "cancelled": ("Appointment cancelled", "your appointment has been cancelled."),
}


def build_status_html(booking: Booking) -> str | None:
    if booking.status not in _STATUS_TEXT:
        return None
    title, sentence = _STATUS_TEXT[booking.status]
    reason = ""
    if booking.status == "rejected" and booking.rejection_reason:
        reason = f'<p style="margin:0 0 24px 0;color:#6b7280;font-size:14px;">{_html_escape(booking.rejection_reason)}</p>'
    inner = f"""
              <h1 style="margin:0 0 8px 0;font-size:22px;font-weight:600;color:#111827;">{title}</h1>
              <p style="margin:0 0 24px 0;font-size:15px;color:#6b7280;">Hi {_html_escape(booking.full_name)}, {sentence}</p>
              {_slot_block(booking)}
              {reason}"""
    return _layout(title, inner)


def send_booking_confirmation_email(booking: Booking) -> None:
    """Compose and send the customer confirmation (call from background task)."""
    subject = f"{settings.site_name} – Appointment {booking.reference}"
    _send_email_sync(booking.email, subject, build_booking_confirmation_html(booking), ics=build_ics(booking))


def send_admin_booking_notification_email(admin_email: str, booking: Booking) -> None:
    subject = f"New appointment {booking.reference}: {booking.slot_date.isoformat()} {booking.slot_time}"
    _send_email_sync(admin_email, subject, build_admin_notification_html(booking), ics=build_ics(booking))


def send_booking_status_email(booking: Booking) -> None:
    html = build_status_html(booking)
    if html is None:
        return
    subject = f"{settings.site_name} – {_STATUS_TEXT[booking.status][0]} ({booking.reference})"
    ics = build_ics(booking) if booking.status == "confirmed" else None
    _send_email_sync(booking.email, subject, html, ics=ics)
