from __future__ import annotations

from dataclasses import dataclass

from .errors import Forbidden, InvalidTransition
from .models import AdHocReservation, Caller, Reservation, RecurringReservation, Status

_ALLOWED_TRANSITIONS: frozenset[tuple[Status, Status]] = frozenset(
    {
        (Status.PENDING, Status.APPROVED),
        (Status.PENDING, Status.REJECTED),
        (Status.APPROVED, Status.REJECTED),
    }
)


@dataclass(frozen=True)
class TransitionPlan:
    previous: Status
    target: Status
    changes_state: bool
    grants_slot: bool


def initial_status(caller: Caller) -> Status:
    """Elevated callers get their bookings approved on creation (after the conflict guard)."""
    return Status.APPROVED if caller.is_elevated else Status.PENDING


def plan_transition(record: AdHocReservation, target: Status, caller: Caller) -> TransitionPlan:
    """Validate a status change and describe what the service has to do for it.

    Repeating the current approved/rejected status is a no-op. Nothing moves
    back to pending; a rejected booking has to be requested again.
    """
    if not caller.is_elevated:
        raise Forbidden("Only faculty or administrators may approve or reject bookings.")
    if target is Status.PENDING:
        raise InvalidTransition("Bookings cannot be moved back to pending.")
    if record.status is target:
        return TransitionPlan(record.status, target, changes_state=False, grants_slot=False)
    if (record.status, target) not in _ALLOWED_TRANSITIONS:
        raise InvalidTransition(f"Cannot move booking from {record.status.value} to {target.value}.")
    return TransitionPlan(record.status, target, changes_state=True, grants_slot=target is Status.APPROVED)


def ensure_can_create_schedule(caller: Caller) -> None:
    if not caller.is_elevated:
        raise Forbidden("Only faculty or administrators may create schedules.")


def ensure_can_modify(record: Reservation, caller: Caller) -> None:
    """Owners may delete or replace their own records; elevated callers may touch any."""
    if caller.is_elevated:
        return
    if record.owner_id != caller.id:
        if isinstance(record, RecurringReservation):
            raise Forbidden("Only faculty or administrators may change schedules.")
        raise Forbidden("Not authorized to modify this booking.")
