from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Any, Callable, Iterable, TypeVar
from uuid import uuid4
import time

from .config import Settings
from .conflicts import ConflictChecker
from .errors import Conflict, Forbidden, InvalidInput, InvalidTransition, NotFound, StoreFailure
from .intervals import DateKey, DayKey, TermWeekdayKey, TimeRange
from .lifecycle import ensure_can_create_schedule, ensure_can_modify, initial_status, plan_transition
from .locking import ResourceLocks
from .logger import get_logger
from .models import (
    DELETED_LABEL,
    AdHocReservation,
    Caller,
    RecurringReservation,
    Reservation,
    Status,
)
from .notifications import LoggingNotifier, Notifier, ReservationEvent, YamlEventLog
from .store import ReservationStore
from .terms import TermCalendar
from .yaml_store import RecordStore, YamlRecordStore

logger = get_logger(__name__)

T = TypeVar("T")

BOOKING_CONFLICT_MESSAGE = "Room is already booked for this time slot."
SCHEDULE_CONFLICT_MESSAGE = "Room is already scheduled for this time slot."


class ReservationService:
    """Entry point for creating, listing, transitioning and deleting reservations.

    Every check-then-write sequence runs under the lock of the affected
    resource, so two racing requests for the same slot cannot both be granted.
    Each critical section issues exactly one store write; when the store fails
    the whole section is re-read and retried.
    """

    def __init__(
        self,
        store: ReservationStore | RecordStore,
        calendar: TermCalendar | None = None,
        notifiers: Iterable[Notifier] = (),
        *,
        retry_attempts: int = 3,
        retry_backoff_seconds: float = 0.05,
        clock: Callable[[], datetime] | None = None,
        id_factory: Callable[[], str] | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if retry_attempts < 1:
            raise ValueError("retry_attempts must be at least 1")
        self.store = store if isinstance(store, ReservationStore) else ReservationStore(store)
        self.calendar = calendar or TermCalendar()
        self.checker = ConflictChecker(self.store, self.calendar)
        self.notifiers = list(notifiers)
        self.retry_attempts = retry_attempts
        self.retry_backoff_seconds = retry_backoff_seconds
        self._clock = clock or datetime.now
        self._new_id = id_factory or (lambda: str(uuid4()))
        self._sleep = sleep
        self._locks = ResourceLocks()

    @classmethod
    def from_settings(cls, settings: Settings, backend: RecordStore | None = None) -> "ReservationService":
        yaml_backend = backend if backend is not None else YamlRecordStore(settings.data_dir)
        notifiers: list[Notifier] = [LoggingNotifier()]
        if isinstance(yaml_backend, YamlRecordStore):
            notifiers.append(YamlEventLog(yaml_backend))
        return cls(
            yaml_backend,
            TermCalendar(settings.terms, settings.holiday_country),
            notifiers,
            retry_attempts=settings.store_retry_attempts,
            retry_backoff_seconds=settings.store_retry_backoff_seconds,
        )

    def create(
        self,
        resource: str,
        interval: TimeRange,
        day_key: DayKey,
        requester: Caller,
        purpose: str = "",
        *,
        course_code: str = "",
        course_name: str = "",
    ) -> Reservation:
        """Create a booking (date key) or a schedule (weekday/term key)."""
        resource = _normalize_resource(resource)
        _require_caller(requester)
        if not isinstance(interval, TimeRange):
            raise InvalidInput("interval must be a TimeRange")

        if isinstance(day_key, DateKey):
            return self._create_booking(resource, interval, day_key, requester, purpose)
        if isinstance(day_key, TermWeekdayKey):
            return self._create_schedule(resource, interval, day_key, requester, course_code, course_name)
        raise InvalidInput("day key must be a date or a weekday within a term")

    def list(self, caller: Caller) -> list[Reservation]:
        return [*self.list_bookings(caller), *self.list_schedules(caller)]

    def list_bookings(self, caller: Caller) -> list[AdHocReservation]:
        _require_caller(caller)
        bookings = self.store.bookings()
        if not caller.is_elevated:
            bookings = [record for record in bookings if record.requester_id == caller.id]
        return sorted(bookings, key=lambda record: (record.day, record.interval.start, record.created_at))

    def list_schedules(self, caller: Caller) -> list[RecurringReservation]:
        _require_caller(caller)
        return sorted(
            self.store.schedules(),
            key=lambda record: (record.weekday.value, record.interval.start, record.resource),
        )

    def get(self, reservation_id: str, caller: Caller) -> Reservation:
        _require_caller(caller)
        record = self._load(reservation_id)
        if isinstance(record, AdHocReservation) and not caller.is_elevated and record.requester_id != caller.id:
            raise Forbidden("Not authorized to view this booking.")
        return record

    def transition(self, reservation_id: str, target_status: Status | str, caller: Caller) -> AdHocReservation:
        _require_caller(caller)
        target = Status.parse(target_status)
        record = self._load(reservation_id)
        if isinstance(record, RecurringReservation):
            raise InvalidTransition("Schedules have no approval workflow.")
        # Authorization and state are checked once up front so rejected
        # requests never touch the lock, and again under the lock.
        plan_transition(record, target, caller)
        # Writes that may have landed even though the store raised StoreFailure.
        attempted: list[tuple[Status, AdHocReservation]] = []

        def attempt() -> tuple[AdHocReservation, Status, bool]:
            with self._locks.hold(record.resource):
                current = self.store.get_booking(record.reservation_id)
                if current is None:
                    raise NotFound()
                plan = plan_transition(current, target, caller)
                if not plan.changes_state:
                    for previous, written in attempted:
                        if written == current:
                            return current, previous, True
                    return current, plan.previous, False
                if plan.grants_slot:
                    self._guard(current.resource, current.interval, current.day_key, current.reservation_id, BOOKING_CONFLICT_MESSAGE)
                updated = current.with_status(target, self._clock())
                attempted.append((plan.previous, updated))
                self.store.save(updated)
                return updated, plan.previous, True

        updated, previous, changed = self._with_retry(f"transition {reservation_id}", attempt)
        if changed:
            logger.info("Booking %s moved %s -> %s by %s", reservation_id, previous.value, target.value, caller.id)
            self._notify(updated, previous.value, updated.status_label)
        else:
            logger.info("Booking %s already %s; nothing to do", reservation_id, target.value)
        return updated

    def delete(self, reservation_id: str, caller: Caller) -> Reservation:
        _require_caller(caller)
        record = self._load(reservation_id)
        ensure_can_modify(record, caller)

        def attempt() -> Reservation:
            with self._locks.hold(record.resource):
                current = self.store.get(record.reservation_id)
                if current is None:
                    raise NotFound()
                self.store.delete(current)
                return current

        deleted = self._with_retry(f"delete {reservation_id}", attempt)
        logger.info("Deleted %s %s on %s by %s", deleted.kind, reservation_id, deleted.resource, caller.id)
        self._notify(deleted, deleted.status_label, DELETED_LABEL)
        return deleted

    def replace_schedule(
        self,
        reservation_id: str,
        resource: str,
        interval: TimeRange,
        day_key: TermWeekdayKey,
        caller: Caller,
        *,
        course_code: str = "",
        course_name: str = "",
    ) -> RecurringReservation:
        """Replace every field of a schedule, re-checking the new slot."""
        _require_caller(caller)
        resource = _normalize_resource(resource)
        if not isinstance(day_key, TermWeekdayKey):
            raise InvalidInput("schedules need a weekday within a term")
        self.calendar.bounds(day_key.term)

        existing = self.store.get_schedule(reservation_id)
        if existing is None:
            raise NotFound()
        ensure_can_modify(existing, caller)

        def attempt() -> RecurringReservation:
            with self._locks.hold(existing.resource, resource):
                current = self.store.get_schedule(existing.reservation_id)
                if current is None:
                    raise NotFound()
                self._guard(resource, interval, day_key, reservation_id, SCHEDULE_CONFLICT_MESSAGE)
                updated = replace(
                    current,
                    resource=resource,
                    course_code=course_code,
                    course_name=course_name,
                    weekday=day_key.weekday,
                    interval=interval,
                    term=day_key.term,
                    updated_at=self._clock(),
                )
                self.store.save(updated)
                return updated

        updated = self._with_retry(f"replace schedule {reservation_id}", attempt)
        logger.info("Replaced schedule %s by %s", reservation_id, caller.id)
        self._notify(updated, updated.status_label, updated.status_label)
        return updated

    def _create_booking(
        self,
        resource: str,
        interval: TimeRange,
        day_key: DateKey,
        requester: Caller,
        purpose: str,
    ) -> AdHocReservation:
        record = AdHocReservation(
            reservation_id=self._new_id(),
            resource=resource,
            requester_id=requester.id,
            purpose=str(purpose or "").strip(),
            day=day_key.day,
            interval=interval,
            status=initial_status(requester),
            created_at=self._clock(),
        )

        def attempt() -> AdHocReservation:
            with self._locks.hold(resource):
                # Excluding our own id keeps a retried write from conflicting with itself.
                self._guard(resource, interval, day_key, record.reservation_id, BOOKING_CONFLICT_MESSAGE)
                self.store.save(record)
                return record

        created = self._with_retry(f"create booking on {resource}", attempt)
        logger.info(
            "Created %s booking %s on %s %s by %s",
            created.status.value,
            created.reservation_id,
            resource,
            created.day.isoformat(),
            requester.id,
        )
        self._notify(created, None, created.status_label)
        return created

    def _create_schedule(
        self,
        resource: str,
        interval: TimeRange,
        day_key: TermWeekdayKey,
        requester: Caller,
        course_code: str,
        course_name: str,
    ) -> RecurringReservation:
        ensure_can_create_schedule(requester)
        self.calendar.bounds(day_key.term)
        record = RecurringReservation(
            reservation_id=self._new_id(),
            resource=resource,
            owner_id=requester.id,
            course_code=str(course_code or "").strip(),
            course_name=str(course_name or "").strip(),
            weekday=day_key.weekday,
            interval=interval,
            term=day_key.term.strip(),
            created_at=self._clock(),
        )

        def attempt() -> RecurringReservation:
            with self._locks.hold(resource):
                self._guard(resource, interval, day_key, record.reservation_id, SCHEDULE_CONFLICT_MESSAGE)
                self.store.save(record)
                return record

        created = self._with_retry(f"create schedule on {resource}", attempt)
        logger.info(
            "Created schedule %s on %s %s %s by %s",
            created.reservation_id,
            resource,
            created.weekday.label,
            created.term,
            requester.id,
        )
        self._notify(created, None, created.status_label)
        return created

    def _guard(self, resource: str, interval: TimeRange, day_key: DayKey, exclude_id: str | None, message: str) -> None:
        conflict = self.checker.find_conflict(resource, interval, day_key, exclude_id=exclude_id)
        if conflict is not None:
            logger.warning("Request on %s blocked by %s %s", resource, conflict.kind, conflict.reservation_id)
            raise Conflict(message, conflicting_id=conflict.reservation_id)

    def _load(self, reservation_id: str) -> Reservation:
        if not reservation_id or not str(reservation_id).strip():
            raise InvalidInput("reservation id must not be empty")
        record = self._with_retry(f"load {reservation_id}", lambda: self.store.get(str(reservation_id).strip()))
        if record is None:
            raise NotFound()
        return record

    def _with_retry(self, action: str, operation: Callable[[], T]) -> T:
        for attempt in range(1, self.retry_attempts + 1):
            try:
                return operation()
            except StoreFailure as error:
                if attempt == self.retry_attempts:
                    logger.error("Giving up on %s after %s attempts: %s", action, attempt, error)
                    raise
                logger.warning("Store failure during %s (attempt %s/%s): %s", action, attempt, self.retry_attempts, error)
                self._sleep(self.retry_backoff_seconds * attempt)
        raise StoreFailure(f"No attempt made for {action}.")

    def _notify(self, record: Reservation, previous_status: str | None, new_status: str) -> None:
        event = ReservationEvent(
            reservation_id=record.reservation_id,
            kind=record.kind,
            resource=record.resource,
            owner_id=record.owner_id,
            previous_status=previous_status,
            new_status=new_status,
            occurred_at=self._clock(),
        )
        for notifier in self.notifiers:
            try:
                notifier(event)
            except Exception:
                logger.exception("Notifier failed for %s %s", event.event_type, event.reservation_id)


def _normalize_resource(resource: Any) -> str:
    if resource is None:
        raise InvalidInput("resource must not be None")
    normalized = str(resource).strip()
    if not normalized:
        raise InvalidInput("resource must not be empty")
    return normalized


def _require_caller(caller: Any) -> None:
    if not isinstance(caller, Caller):
        raise InvalidInput("caller is required")
