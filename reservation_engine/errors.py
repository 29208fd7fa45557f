from __future__ import annotations


class ReservationError(Exception):
    """Base class for every failure the engine reports to its caller."""

    code = "reservation_error"
    default_message = "Reservation request failed."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict[str, str]:
        return {"code": self.code, "message": self.message}


class InvalidInput(ReservationError, ValueError):
    code = "invalid_input"
    default_message = "Reservation request is malformed."


class Conflict(ReservationError):
    code = "conflict"
    default_message = "Room is already booked for this time slot."

    def __init__(self, message: str | None = None, conflicting_id: str | None = None) -> None:
        super().__init__(message)
        self.conflicting_id = conflicting_id


class NotFound(ReservationError, LookupError):
    code = "not_found"
    default_message = "Reservation not found."


class Forbidden(ReservationError):
    code = "forbidden"
    default_message = "Not allowed to modify this reservation."


class InvalidTransition(Forbidden):
    code = "invalid_transition"
    default_message = "Reservation cannot move to the requested status."


class StoreFailure(ReservationError, RuntimeError):
    code = "store_failure"
    default_message = "Reservation storage is unavailable."
