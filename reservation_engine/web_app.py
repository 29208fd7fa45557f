from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from typing import Any

from flask import Flask, jsonify, request

from .config import Settings, get_settings
from .errors import Conflict, Forbidden, InvalidInput, InvalidTransition, NotFound, ReservationError, StoreFailure
from .intervals import DateKey, TermWeekdayKey, TimeRange, Weekday
from .logger import configure_logging, get_logger
from .models import AdHocReservation, Caller, RecurringReservation, Reservation
from .service import ReservationService

logger = get_logger(__name__)

USER_ID_HEADER = "X-User-Id"
USER_ROLE_HEADER = "X-User-Role"

# Checked in order; subclasses come before their parents.
_STATUS_BY_ERROR: list[tuple[type[ReservationError], int]] = [
    (InvalidTransition, 409),
    (InvalidInput, 400),
    (Forbidden, 403),
    (NotFound, 404),
    (Conflict, 409),
    (StoreFailure, 503),
]


class Unauthenticated(ReservationError):
    code = "unauthenticated"
    default_message = "No user, authorization denied."


def create_app(
    data_dir: str | Path | None = None,
    settings: Settings | None = None,
    service: ReservationService | None = None,
) -> Flask:
    app = Flask(__name__)
    effective_settings = settings or get_settings()
    if data_dir is not None:
        effective_settings = replace(effective_settings, data_dir=Path(data_dir))
    configure_logging(effective_settings.log_level)
    reservations = service or ReservationService.from_settings(effective_settings)
    app.extensions["reservation_service"] = reservations

    def _caller() -> Caller:
        user_id = str(request.headers.get(USER_ID_HEADER, "")).strip()
        if not user_id:
            raise Unauthenticated()
        return Caller.from_role(user_id, request.headers.get(USER_ROLE_HEADER), effective_settings.elevated_roles)

    def _payload() -> dict[str, Any]:
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            raise InvalidInput("request body must be a JSON object")
        return payload

    @app.errorhandler(ReservationError)
    def handle_reservation_error(error: ReservationError) -> Any:
        status_code = 401 if isinstance(error, Unauthenticated) else 500
        for error_type, mapped in _STATUS_BY_ERROR:
            if isinstance(error, error_type):
                status_code = mapped
                break
        if status_code >= 500:
            logger.error("Request %s %s failed: %s", request.method, request.path, error.message)
        return jsonify({"ok": False, **error.to_dict()}), status_code

    @app.after_request
    def add_cors_headers(response: Any) -> Any:
        response.headers["Access-Control-Allow-Origin"] = "*"
        response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,OPTIONS"
        response.headers["Access-Control-Allow-Headers"] = f"Content-Type,{USER_ID_HEADER},{USER_ROLE_HEADER}"
        return response

    @app.get("/api/reservations")
    def list_reservations() -> Any:
        records = reservations.list(_caller())
        return jsonify({"ok": True, "reservations": [serialize_reservation(record) for record in records]})

    @app.get("/api/bookings")
    def list_bookings() -> Any:
        records = reservations.list_bookings(_caller())
        return jsonify({"ok": True, "bookings": [serialize_reservation(record) for record in records]})

    @app.post("/api/bookings")
    def create_booking() -> Any:
        caller = _caller()
        payload = _payload()
        created = reservations.create(
            resource=payload.get("resource"),
            interval=TimeRange.parse(payload.get("start_time"), payload.get("end_time")),
            day_key=DateKey.parse(payload.get("date")),
            requester=caller,
            purpose=str(payload.get("purpose") or ""),
        )
        return jsonify({"ok": True, "booking": serialize_reservation(created)}), 201

    @app.put("/api/bookings/<reservation_id>")
    def update_booking_status(reservation_id: str) -> Any:
        caller = _caller()
        payload = _payload()
        updated = reservations.transition(reservation_id, payload.get("status"), caller)
        return jsonify({"ok": True, "booking": serialize_reservation(updated)})

    @app.delete("/api/bookings/<reservation_id>")
    def delete_booking(reservation_id: str) -> Any:
        caller = _caller()
        if not isinstance(reservations.get(reservation_id, caller), AdHocReservation):
            raise NotFound("Booking not found.")
        deleted = reservations.delete(reservation_id, caller)
        return jsonify({"ok": True, "message": "Booking removed", "booking": serialize_reservation(deleted)})

    @app.get("/api/schedules")
    def list_schedules() -> Any:
        records = reservations.list_schedules(_caller())
        return jsonify({"ok": True, "schedules": [serialize_reservation(record) for record in records]})

    @app.post("/api/schedules")
    def create_schedule() -> Any:
        caller = _caller()
        payload = _payload()
        created = reservations.create(
            resource=payload.get("resource"),
            interval=TimeRange.parse(payload.get("start_time"), payload.get("end_time")),
            day_key=_term_key(payload),
            requester=caller,
            course_code=str(payload.get("course_code") or ""),
            course_name=str(payload.get("course_name") or ""),
        )
        return jsonify({"ok": True, "schedule": serialize_reservation(created)}), 201

    @app.put("/api/schedules/<reservation_id>")
    def replace_schedule(reservation_id: str) -> Any:
        caller = _caller()
        payload = _payload()
        updated = reservations.replace_schedule(
            reservation_id,
            resource=payload.get("resource"),
            interval=TimeRange.parse(payload.get("start_time"), payload.get("end_time")),
            day_key=_term_key(payload),
            caller=caller,
            course_code=str(payload.get("course_code") or ""),
            course_name=str(payload.get("course_name") or ""),
        )
        return jsonify({"ok": True, "schedule": serialize_reservation(updated)})

    @app.delete("/api/schedules/<reservation_id>")
    def delete_schedule(reservation_id: str) -> Any:
        caller = _caller()
        if not isinstance(reservations.get(reservation_id, caller), RecurringReservation):
            raise NotFound("Schedule not found.")
        deleted = reservations.delete(reservation_id, caller)
        return jsonify({"ok": True, "message": "Schedule removed", "schedule": serialize_reservation(deleted)})

    return app


def serialize_reservation(record: Reservation) -> dict[str, Any]:
    return {**record.to_dict(), "status": record.status_label}


def _term_key(payload: dict[str, Any]) -> TermWeekdayKey:
    return TermWeekdayKey(Weekday.parse(payload.get("weekday")), str(payload.get("term") or ""))
