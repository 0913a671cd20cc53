"""
Booking email notifications.

Emails are rendered and delivered by the ``send-booking-email`` Supabase
edge function; this module only builds its payload and invokes it.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Optional

from config import settings
from models.appointment import Appointment
from utils.constants import EMAIL_CANCELLED, EMAIL_NEW_BOOKING
from utils.datetime_utils import to_local
from utils.exceptions import NotificationError

logger = logging.getLogger(__name__)

EMAIL_KINDS = (EMAIL_NEW_BOOKING, EMAIL_CANCELLED)


def format_appointment_date(dt: datetime) -> str:
    """Long date as shown in emails, e.g. ``Tuesday, March 3, 2026``."""
    return f"{dt.strftime('%A')}, {dt.strftime('%B')} {dt.day}, {dt.year}"


def format_appointment_time(dt: datetime) -> str:
    """12-hour clock time, e.g. ``1:00 PM``."""
    hour12 = dt.hour % 12 or 12
    suffix = "PM" if dt.hour >= 12 else "AM"
    return f"{hour12}:{dt.minute:02d} {suffix}"


def build_email_payload(
    kind: str,
    appointment: Appointment,
    barber_email: Optional[str] = None,
    tz_name: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Build the request body of the email function.

    Args:
        kind: ``new_booking`` or ``cancelled``
        appointment: Appointment, ideally with its barber/service embedded
        barber_email: Recipient override; defaults to the embedded barber's email
        tz_name: Zone used for the human-readable date and time
    """
    if kind not in EMAIL_KINDS:
        raise ValueError(f"Unknown email type: {kind}")

    local_start = to_local(appointment.appt_time, tz_name or settings.timezone)

    body = appointment.model_dump(mode="json")
    body["formatted_date"] = format_appointment_date(local_start)
    body["formatted_time"] = format_appointment_time(local_start)

    if barber_email is None and appointment.barber:
        barber_email = appointment.barber.get("email")

    return {"type": kind, "appointment": body, "barberEmail": barber_email}


async def send_booking_email(
    client,
    kind: str,
    appointment: Appointment,
    barber_email: Optional[str] = None,
) -> None:
    """
    Invoke the booking email function.

    Args:
        client: SupabaseClient used to invoke the edge function
        kind: ``new_booking`` or ``cancelled``
        appointment: The booked or cancelled appointment
        barber_email: Recipient override

    Raises:
        NotificationError: If the function cannot be invoked
    """
    payload = build_email_payload(kind, appointment, barber_email, client.tz_name)
    if not payload["barberEmail"]:
        raise NotificationError(f"No barber email for appointment {appointment.id}")

    try:
        await client.invoke_function(settings.booking_email_function, payload)
    except NotificationError:
        raise
    except Exception as e:
        raise NotificationError(f"Failed to send {kind} email: {e}") from e

    logger.info(f"Sent {kind} email for appointment {appointment.id}")
