from __future__ import annotations

from typing import Any

from .errors import StoreFailure
from .models import AdHocReservation, RecurringReservation, Reservation, Status
from .yaml_store import RecordStore

BOOKINGS = "bookings"
SCHEDULES = "schedules"


class ReservationStore:
    """Typed access to bookings and schedules on top of a ``RecordStore``."""

    def __init__(self, backend: RecordStore) -> None:
        self.backend = backend

    def get(self, reservation_id: str) -> Reservation | None:
        return self.get_booking(reservation_id) or self.get_schedule(reservation_id)

    def get_booking(self, reservation_id: str) -> AdHocReservation | None:
        row = self.backend.get(BOOKINGS, reservation_id)
        return _decode(row, AdHocReservation) if row is not None else None

    def get_schedule(self, reservation_id: str) -> RecurringReservation | None:
        row = self.backend.get(SCHEDULES, reservation_id)
        return _decode(row, RecurringReservation) if row is not None else None

    def bookings(self) -> list[AdHocReservation]:
        return [_decode(row, AdHocReservation) for row in self.backend.list(BOOKINGS)]

    def schedules(self) -> list[RecurringReservation]:
        return [_decode(row, RecurringReservation) for row in self.backend.list(SCHEDULES)]

    def approved_bookings_for(self, resource: str) -> list[AdHocReservation]:
        rows = self.backend.list_where(
            BOOKINGS,
            lambda row: row.get("resource") == resource and row.get("status") == Status.APPROVED.value,
        )
        return [_decode(row, AdHocReservation) for row in rows]

    def schedules_for(self, resource: str) -> list[RecurringReservation]:
        rows = self.backend.list_where(SCHEDULES, lambda row: row.get("resource") == resource)
        return [_decode(row, RecurringReservation) for row in rows]

    def save(self, record: Reservation) -> Reservation:
        self.backend.put(_collection_for(record), record.to_dict())
        return record

    def delete(self, record: Reservation) -> bool:
        return self.backend.remove(_collection_for(record), record.reservation_id)


def _collection_for(record: Reservation) -> str:
    if isinstance(record, AdHocReservation):
        return BOOKINGS
    if isinstance(record, RecurringReservation):
        return SCHEDULES
    raise TypeError(f"unsupported reservation type: {type(record).__name__}")


def _decode(row: dict[str, Any], record_type: type) -> Any:
    try:
        return record_type.from_dict(row)
    except (KeyError, TypeError, ValueError) as error:
        raise StoreFailure(f"Stored reservation {row.get('id')!r} is malformed.") from error
