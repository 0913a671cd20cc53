"""
HTTP API for the booking site and the admin dashboard.

Public endpoints serve the booking form (barbers, services, bookable dates,
slots, appointment submission). Admin endpoints require a Supabase Auth
access token in the Authorization header.
"""

import json
import time
from functools import wraps
from typing import Any, Dict, Optional

from aiohttp import web
from aiohttp.web import Request, Response

from availability.resolver import disable_past_slots, is_date_in_past
from booking.service import BookingService
from config import settings
from db.supabase_client import get_db_client
from models.appointment import BookingRequest
from utils.datetime_utils import local_now, parse_date
from utils.exceptions import (
    AppointmentNotFoundError,
    AuthenticationError,
    BarberNotFoundError,
    DataFetchError,
    ServiceNotFoundError,
    ValidationError,
)
from utils.logging_config import configure_package_loggers, setup_logging

logger = setup_logging(
    name=__name__, log_level=settings.log_level, log_file="server.log", log_dir=settings.log_dir
)

# Constants
MAX_REQUEST_BODY_SIZE = 1024 * 1024  # 1MB max request body size

BOOKING_SERVICE = web.AppKey("booking_service", BookingService)

# Health metrics
_health_metrics = {
    "total_requests": 0,
    "failed_requests": 0,
    "bookings_created": 0,
    "start_time": time.time(),
}

# Error type -> (status, error code)
_ERROR_RESPONSES = (
    (ValidationError, 400, "validation_failed"),
    (AuthenticationError, 401, "unauthorized"),
    (BarberNotFoundError, 404, "not_found"),
    (ServiceNotFoundError, 404, "not_found"),
    (AppointmentNotFoundError, 404, "not_found"),
    (DataFetchError, 502, "data_fetch_failed"),
)


def _error_response(status: int, error: str, message: str) -> Response:
    return web.json_response(
        {"status": "error", "error": error, "message": message}, status=status
    )


@web.middleware
async def security_headers_middleware(request: Request, handler):
    """
    Add security headers to all responses.

    - Prevents MIME type sniffing
    - Prevents clickjacking
    - Enforces HTTPS in production
    """
    response = await handler(request)

    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["X-XSS-Protection"] = "1; mode=block"
    response.headers["Strict-Transport-Security"] = (
        "max-age=31536000; includeSubDomains"
    )

    # Admin responses carry customer data
    if request.path.startswith("/admin/"):
        response.headers["Cache-Control"] = "no-store"

    return response


@web.middleware
async def error_middleware(request: Request, handler):
    """Translate service exceptions into JSON error responses."""
    _health_metrics["total_requests"] += 1
    try:
        return await handler(request)
    except web.HTTPException:
        raise
    except Exception as e:
        for error_type, status, code in _ERROR_RESPONSES:
            if isinstance(e, error_type):
                if status >= 500:
                    _health_metrics["failed_requests"] += 1
                    logger.error(f"{request.method} {request.path} failed: {e}")
                else:
                    logger.warning(f"{request.method} {request.path} rejected: {e}")
                return _error_response(status, code, str(e))

        _health_metrics["failed_requests"] += 1
        logger.error(
            f"Unexpected error on {request.method} {request.path}: {e}", exc_info=True
        )
        return _error_response(500, "internal_error", "Internal server error")


def require_admin(handler):
    """Reject requests without a valid admin access token."""

    @wraps(handler)
    async def wrapper(request: Request) -> Response:
        header = request.headers.get("Authorization", "")
        scheme, _, token = header.partition(" ")
        if scheme.lower() != "bearer" or not token.strip():
            raise AuthenticationError("Missing bearer token")

        service = request.app[BOOKING_SERVICE]
        email = await service.db.get_user_email(token.strip())
        if not settings.is_admin(email):
            raise AuthenticationError(f"{email} is not an admin")

        return await handler(request)

    return wrapper


async def _read_json(request: Request) -> Any:
    try:
        return await request.json()
    except json.JSONDecodeError as e:
        raise ValidationError(f"Invalid JSON body: {e}") from e


def _dump(model) -> Dict[str, Any]:
    return model.model_dump(mode="json")


# ========== Public ==========


async def health_check(request: Request) -> Response:
    """Health check endpoint with uptime and request counters."""
    uptime_hours = (time.time() - _health_metrics["start_time"]) / 3600

    return web.json_response(
        {
            "status": "ok",
            "service": "barbershop-booking",
            "timestamp": time.time(),
            "uptime_hours": round(uptime_hours, 2),
            "metrics": {
                "total_requests": _health_metrics["total_requests"],
                "failed_requests": _health_metrics["failed_requests"],
                "bookings_created": _health_metrics["bookings_created"],
            },
            "configuration": {
                "timezone": settings.timezone,
                "booking_window_days": settings.booking_window_days,
                "max_request_size_bytes": MAX_REQUEST_BODY_SIZE,
            },
        }
    )


async def list_barbers(request: Request) -> Response:
    barbers = await request.app[BOOKING_SERVICE].list_barbers()
    return web.json_response({"barbers": [_dump(b) for b in barbers], "count": len(barbers)})


async def count_barbers(request: Request) -> Response:
    count = await request.app[BOOKING_SERVICE].count_barbers()
    return web.json_response({"count": count})


async def list_services(request: Request) -> Response:
    services = await request.app[BOOKING_SERVICE].list_services()
    return web.json_response({"services": [_dump(s) for s in services]})


async def available_dates(request: Request) -> Response:
    """Bookable dates of a barber; defaults to the booking window from today."""
    barber_id = request.match_info["barber_id"]
    dates = await request.app[BOOKING_SERVICE].get_available_dates(
        barber_id, request.query.get("start"), request.query.get("end")
    )
    return web.json_response(
        {"barber_id": barber_id, "dates": [d.to_dict() for d in dates]}
    )


async def available_slots(request: Request) -> Response:
    """
    Hourly slots of a barber on one date.

    Slots that already started today are returned as unavailable; past
    dates have no slots.
    """
    barber_id = request.match_info["barber_id"]
    raw_date = request.query.get("date")
    if not raw_date:
        raise ValidationError("Please select a date")
    try:
        day = parse_date(raw_date)
    except ValueError as e:
        raise ValidationError(str(e)) from e

    now = local_now(settings.timezone)
    if is_date_in_past(day, now.date()):
        slots = []
    else:
        slots = await request.app[BOOKING_SERVICE].get_slots(barber_id, day)
        slots = disable_past_slots(slots, day, now)

    return web.json_response(
        {
            "barber_id": barber_id,
            "date": day.isoformat(),
            "slots": [slot.model_dump() for slot in slots],
        }
    )


async def create_appointment(request: Request) -> Response:
    body = await _read_json(request)
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")

    try:
        booking = BookingRequest(**body)
    except ValueError as e:
        raise ValidationError(f"Invalid booking request: {e}") from e

    appointment = await request.app[BOOKING_SERVICE].create_appointment(booking)
    _health_metrics["bookings_created"] += 1

    return web.json_response(
        {"status": "success", "appointment": _dump(appointment)}, status=201
    )


# ========== Admin ==========


@require_admin
async def get_weekly(request: Request) -> Response:
    barber_id = request.match_info["barber_id"]
    rows = await request.app[BOOKING_SERVICE].get_weekly_availability(barber_id)
    return web.json_response({"barber_id": barber_id, "weekly": [_dump(r) for r in rows]})


@require_admin
async def put_weekly(request: Request) -> Response:
    """Body: a list of weekday entries, or ``{"days": [...]}``."""
    barber_id = request.match_info["barber_id"]
    body = await _read_json(request)
    entries = body.get("days") if isinstance(body, dict) else body
    if not isinstance(entries, list):
        raise ValidationError("Expected a list of weekday entries")

    rows = await request.app[BOOKING_SERVICE].set_weekly_availability(barber_id, entries)
    return web.json_response({"barber_id": barber_id, "weekly": [_dump(r) for r in rows]})


@require_admin
async def patch_weekly_day(request: Request) -> Response:
    """Change some fields of one weekday; the others keep their stored value."""
    barber_id = request.match_info["barber_id"]
    try:
        day_of_week = int(request.match_info["day_of_week"])
    except ValueError as e:
        raise ValidationError("day_of_week must be an integer from 0 to 6") from e

    body = await _read_json(request)
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")

    row = await request.app[BOOKING_SERVICE].update_weekly_availability(
        barber_id, day_of_week, body
    )
    return web.json_response({"status": "success", "weekly": _dump(row)})


@require_admin
async def put_schedule_override(request: Request) -> Response:
    barber_id = request.match_info["barber_id"]
    body = await _read_json(request)
    if not isinstance(body, dict) or "is_available" not in body:
        raise ValidationError("Body must include is_available")
    if not isinstance(body["is_available"], bool):
        raise ValidationError("is_available must be true or false")

    override = await request.app[BOOKING_SERVICE].upsert_schedule_override(
        barber_id,
        request.match_info["date"],
        body["is_available"],
        body.get("start_time"),
        body.get("end_time"),
    )
    return web.json_response({"status": "success", "schedule": _dump(override)})


@require_admin
async def list_schedule_overrides(request: Request) -> Response:
    barber_id = request.match_info["barber_id"]
    overrides = await request.app[BOOKING_SERVICE].get_schedule_overrides(
        barber_id, request.query.get("start"), request.query.get("end")
    )
    return web.json_response(
        {"barber_id": barber_id, "schedules": [_dump(o) for o in overrides]}
    )


@require_admin
async def list_appointments(request: Request) -> Response:
    appointments = await request.app[BOOKING_SERVICE].list_appointments(
        status=request.query.get("status"),
        barber_id=request.query.get("barber_id"),
        date_from=request.query.get("date_from"),
        date_to=request.query.get("date_to"),
    )
    return web.json_response({"appointments": [_dump(a) for a in appointments]})


@require_admin
async def update_appointment(request: Request) -> Response:
    body = await _read_json(request)
    if not isinstance(body, dict) or not body.get("status"):
        raise ValidationError("Body must include status")

    appointment = await request.app[BOOKING_SERVICE].update_appointment_status(
        request.match_info["appointment_id"], body["status"]
    )
    return web.json_response({"status": "success", "appointment": _dump(appointment)})


@require_admin
async def delete_appointment(request: Request) -> Response:
    await request.app[BOOKING_SERVICE].delete_appointment(request.match_info["appointment_id"])
    return web.Response(status=204)


@require_admin
async def create_barber(request: Request) -> Response:
    body = await _read_json(request)
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")

    barber = await request.app[BOOKING_SERVICE].create_barber(body)
    return web.json_response({"status": "success", "barber": _dump(barber)}, status=201)


@require_admin
async def update_barber(request: Request) -> Response:
    body = await _read_json(request)
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")

    barber = await request.app[BOOKING_SERVICE].update_barber(
        request.match_info["barber_id"], body
    )
    return web.json_response({"status": "success", "barber": _dump(barber)})


@require_admin
async def delete_barber(request: Request) -> Response:
    await request.app[BOOKING_SERVICE].delete_barber(request.match_info["barber_id"])
    return web.Response(status=204)


def create_app(service: Optional[BookingService] = None) -> web.Application:
    """
    Create aiohttp application with middleware and routes.

    Args:
        service: Booking service to serve; built on the global Supabase
            client when omitted

    Returns:
        Configured web application
    """
    app = web.Application(
        middlewares=[security_headers_middleware, error_middleware],
        client_max_size=MAX_REQUEST_BODY_SIZE,
    )
    app[BOOKING_SERVICE] = service or BookingService(get_db_client())

    # Public
    app.router.add_get("/health", health_check)
    app.router.add_get("/barbers", list_barbers)
    app.router.add_get("/barbers/count", count_barbers)
    app.router.add_get("/services", list_services)
    app.router.add_get("/barbers/{barber_id}/dates", available_dates)
    app.router.add_get("/barbers/{barber_id}/slots", available_slots)
    app.router.add_post("/appointments", create_appointment)

    # Admin
    app.router.add_post("/admin/barbers", create_barber)
    app.router.add_patch("/admin/barbers/{barber_id}", update_barber)
    app.router.add_delete("/admin/barbers/{barber_id}", delete_barber)
    app.router.add_get("/admin/barbers/{barber_id}/weekly", get_weekly)
    app.router.add_put("/admin/barbers/{barber_id}/weekly", put_weekly)
    app.router.add_patch("/admin/barbers/{barber_id}/weekly/{day_of_week}", patch_weekly_day)
    app.router.add_get("/admin/barbers/{barber_id}/schedules", list_schedule_overrides)
    app.router.add_put("/admin/barbers/{barber_id}/schedules/{date}", put_schedule_override)
    app.router.add_get("/admin/appointments", list_appointments)
    app.router.add_patch("/admin/appointments/{appointment_id}", update_appointment)
    app.router.add_delete("/admin/appointments/{appointment_id}", delete_appointment)

    return app


if __name__ == "__main__":
    settings.validate_all_required()
    configure_package_loggers(settings.log_level, settings.log_dir)

    logger.info(f"Starting booking API on {settings.host}:{settings.port}")
    app = create_app()
    web.run_app(app, host=settings.host, port=settings.port)
