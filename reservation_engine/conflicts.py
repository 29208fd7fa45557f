from __future__ import annotations

from typing import Iterator

from .intervals import DayKey, TimeRange, overlaps
from .models import Reservation
from .store import ReservationStore
from .terms import TermCalendar


class ConflictChecker:
    """Finds granted reservations that would collide with a candidate slot.

    Only approved bookings and schedules occupy a room. Pending bookings never
    block a request; the approval step re-runs this check instead.
    """

    def __init__(self, store: ReservationStore, calendar: TermCalendar) -> None:
        self.store = store
        self.calendar = calendar

    def find_conflict(
        self,
        resource: str,
        interval: TimeRange,
        day_key: DayKey,
        exclude_id: str | None = None,
    ) -> Reservation | None:
        for record in self._grant_equivalent(resource):
            if exclude_id is not None and record.reservation_id == exclude_id:
                continue
            if not self.calendar.compatible(day_key, record.day_key):
                continue
            if overlaps(interval, record.interval):
                return record
        return None

    def _grant_equivalent(self, resource: str) -> Iterator[Reservation]:
        yield from self.store.approved_bookings_for(resource)
        yield from self.store.schedules_for(resource)
