from __future__ import annotations

import smtplib
from datetime import date, datetime
from unittest.mock import patch

import pytest

from renobook.core.config import settings
from renobook.models.booking import Booking, BookingStatus
from renobook.services.email_service import (
    _send_email_sync,
    build_admin_notification_html,
    build_booking_confirmation_html,
    build_ics,
    build_status_html,
    send_booking_confirmation_email,
    send_booking_status_email,
)


def _booking(**overrides) -> Booking:
    data = {
        "id": 7,
        "reference": "AFS-2026-0007",
        "slot_date": date(2026, 10, 26),
        "slot_time": "10:00",
        "status": BookingStatus.PENDING.value,
        "full_name": "Jan <Peeters>",
        "email": "jan.peeters@example.be",
        "phone": "+32470123456",
        "municipality": "Gent, Oost-Vlaanderen",
        "message": "Dak; isolatie\nen ramen",
        "created_at": datetime(2026, 10, 21, 8, 30),
    }
    data.update(overrides)
    return Booking(**data)


@pytest.fixture
def smtp_enabled(monkeypatch):
    monkeypatch.setattr(settings, "smtp_host", "smtp.example.be")
    monkeypatch.setattr(settings, "smtp_user", "mailer")
    monkeypatch.setattr(settings, "smtp_password", "secret")
    monkeypatch.setattr(settings, "from_email", "afspraken@example.be")


def test_ics_event_uses_business_timezone() -> None:
    ics = build_ics(_booking())

    assert ics.startswith("BEGIN:VCALENDAR\r\n")
    assert ics.endswith("END:VCALENDAR\r\n")
    assert f"DTSTART;TZID={settings.timezone}:20261026T100000" in ics
    assert f"DTEND;TZID={settings.timezone}:20261026T110000" in ics
    assert "UID:AFS-2026-0007@" in ics


def test_ics_escapes_text_values() -> None:
    ics = build_ics(_booking())

    assert "LOCATION:Gent\\, Oost-Vlaanderen" in ics
    assert "DESCRIPTION:Dak\\; isolatie\\nen ramen" in ics


def test_confirmation_html_escapes_customer_input() -> None:
    html = build_booking_confirmation_html(_booking())

    assert "Jan &lt;Peeters&gt;" in html
    assert "<Peeters>" not in html
    assert "AFS-2026-0007" in html


def test_admin_notification_lists_only_filled_fields() -> None:
    html = build_admin_notification_html(_booking(budget="50k", timing=None))

    assert "<strong>Budget:</strong> 50k" in html
    assert "Timing:" not in html


@pytest.mark.parametrize(
    "status, title",
    [
        (BookingStatus.CONFIRMED.value, "Appointment confirmed"),
        (BookingStatus.REJECTED.value, "Appointment declined"),
        (BookingStatus.CANCELLED.value, "Appointment cancelled"),
    ],
)
def test_status_html_for_customer_facing_statuses(status: str, title: str) -> None:
    html = build_status_html(_booking(status=status, rejection_reason="Buiten regio"))

    assert html is not None
    assert title in html
    assert ("Buiten regio" in html) == (status == BookingStatus.REJECTED.value)


@pytest.mark.parametrize("status", [BookingStatus.PENDING.value, BookingStatus.COMPLETED.value])
def test_no_status_email_for_other_statuses(status: str) -> None:
    assert build_status_html(_booking(status=status)) is None

    with patch("renobook.services.email_service._send_email_sync") as send:
        send_booking_status_email(_booking(status=status))
    send.assert_not_called()


def test_confirmed_status_email_carries_calendar_file() -> None:
    with patch("renobook.services.email_service._send_email_sync") as send:
        send_booking_status_email(_booking(status=BookingStatus.CONFIRMED.value))

    send.assert_called_once()
    assert send.call_args.kwargs["ics"].startswith("BEGIN:VCALENDAR")


def test_send_is_skipped_without_smtp() -> None:
    with patch("renobook.services.email_service.smtplib.SMTP") as smtp:
        _send_email_sync("jan@example.be", "Test", "<p>hi</p>")

    smtp.assert_not_called()


def test_confirmation_is_sent_with_attachment(smtp_enabled) -> None:
    with patch("renobook.services.email_service.smtplib.SMTP") as smtp:
        send_booking_confirmation_email(_booking())

    server = smtp.return_value.__enter__.return_value
    server.starttls.assert_called_once()
    server.login.assert_called_once_with("mailer", "secret")
    from_addr, to_addrs, raw = server.sendmail.call_args.args
    assert from_addr == "afspraken@example.be"
    assert to_addrs == ["jan.peeters@example.be"]
    assert 'filename="afspraak.ics"' in raw


def test_smtp_failure_is_logged_not_raised(smtp_enabled, caplog) -> None:
    with patch(
        "renobook.services.email_service.smtplib.SMTP",
        side_effect=smtplib.SMTPConnectError(421, "unavailable"),
    ):
        _send_email_sync("jan@example.be", "Test", "<p>hi</p>")

    assert "Failed to send email to jan@example.be" in caplog.text
