"""
Unit tests for booking email notifications.
"""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from models.appointment import Appointment
from notifications.email import (
    build_email_payload,
    format_appointment_date,
    format_appointment_time,
    send_booking_email,
)
from utils.exceptions import NotificationError


@pytest.fixture
def appointment():
    return Appointment(
        id="a1",
        barber_id="1",
        service_id="s1",
        customer_first_name="Jane",
        customer_last_name="Doe",
        customer_email="jane@example.com",
        appt_time=datetime(2026, 3, 3, 18, 0, tzinfo=timezone.utc),
        end_time=datetime(2026, 3, 3, 19, 0, tzinfo=timezone.utc),
        barber={"id": "1", "first_name": "Chait", "email": "chait@example.com"},
        service={"id": "s1", "name": "Haircut", "price": 35},
    )


@pytest.fixture
def db():
    client = MagicMock()
    client.tz_name = "America/New_York"
    client.invoke_function = AsyncMock()
    return client


def test_formatting():
    dt = datetime(2026, 3, 3, 13, 0)

    assert format_appointment_date(dt) == "Tuesday, March 3, 2026"
    assert format_appointment_time(dt) == "1:00 PM"
    assert format_appointment_time(datetime(2026, 3, 3, 0, 30)) == "12:30 AM"
    assert format_appointment_time(datetime(2026, 3, 3, 12, 0)) == "12:00 PM"


def test_payload_uses_local_time_and_barber_email(appointment):
    payload = build_email_payload("new_booking", appointment, tz_name="America/New_York")

    assert payload["type"] == "new_booking"
    assert payload["barberEmail"] == "chait@example.com"
    assert payload["appointment"]["formatted_date"] == "Tuesday, March 3, 2026"
    assert payload["appointment"]["formatted_time"] == "1:00 PM"
    assert payload["appointment"]["customer_first_name"] == "Jane"
    assert payload["appointment"]["status"] == "pending"


def test_payload_recipient_override(appointment):
    payload = build_email_payload("cancelled", appointment, barber_email="desk@shop.com")

    assert payload["barberEmail"] == "desk@shop.com"


def test_payload_rejects_unknown_type(appointment):
    with pytest.raises(ValueError):
        build_email_payload("reminder", appointment)


@pytest.mark.asyncio
async def test_send_booking_email(db, appointment):
    await send_booking_email(db, "new_booking", appointment)

    name, body = db.invoke_function.call_args.args
    assert name == "send-booking-email"
    assert body["type"] == "new_booking"
    assert body["appointment"]["id"] == "a1"


@pytest.mark.asyncio
async def test_send_without_barber_email(db, appointment):
    appointment.barber = None

    with pytest.raises(NotificationError):
        await send_booking_email(db, "cancelled", appointment)

    db.invoke_function.assert_not_called()


@pytest.mark.asyncio
async def test_send_wraps_unexpected_errors(db, appointment):
    db.invoke_function.side_effect = RuntimeError("network down")

    with pytest.raises(NotificationError, match="network down"):
        await send_booking_email(db, "new_booking", appointment)
