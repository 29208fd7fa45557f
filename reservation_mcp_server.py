from __future__ import annotations

from typing import Any

from mcp.server.fastmcp import FastMCP

from reservation_engine import Caller, DateKey, ReservationService, TimeRange
from reservation_engine.config import get_settings
from reservation_engine.logger import configure_logging
from reservation_engine.web_app import serialize_reservation

mcp = FastMCP(
    "Room Reservation MCP Server",
    instructions="Book rooms, review pending bookings and inspect weekly schedules.",
    json_response=True,
)

SETTINGS = get_settings()
SERVICE = ReservationService.from_settings(SETTINGS)


def _caller(user_id: str, role: str) -> Caller:
    return Caller.from_role(user_id, role, SETTINGS.elevated_roles)


@mcp.tool()
def list_reservations(user_id: str, role: str = "student") -> list[dict[str, Any]]:
    """Return the bookings and schedules visible to the given user."""
    return [serialize_reservation(record) for record in SERVICE.list(_caller(user_id, role))]


@mcp.tool()
def request_booking(
    user_id: str,
    resource: str,
    date: str,
    start_time: str,
    end_time: str,
    purpose: str = "MCP booking",
    role: str = "student",
) -> dict[str, Any]:
    """Request a one-off booking using ISO date and HH:MM times."""
    created = SERVICE.create(
        resource,
        TimeRange.parse(start_time, end_time),
        DateKey.parse(date),
        _caller(user_id, role),
        purpose,
    )
    return serialize_reservation(created)


@mcp.tool()
def set_booking_status(user_id: str, reservation_id: str, status: str, role: str = "faculty") -> dict[str, Any]:
    """Approve or reject a booking."""
    updated = SERVICE.transition(reservation_id, status, _caller(user_id, role))
    return serialize_reservation(updated)


@mcp.tool()
def delete_reservation(user_id: str, reservation_id: str, role: str = "student") -> dict[str, Any]:
    """Delete a booking or schedule the user owns (or any, for faculty/admin)."""
    deleted = SERVICE.delete(reservation_id, _caller(user_id, role))
    return serialize_reservation(deleted)


def main() -> None:
    configure_logging(SETTINGS.log_level)
    mcp.run()


if __name__ == "__main__":
    main()
