from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime
from enum import Enum
from typing import Any, ClassVar, Iterable, Union

from .errors import InvalidInput
from .intervals import DateKey, TermWeekdayKey, TimeRange, Weekday

BOOKING_KIND = "booking"
SCHEDULE_KIND = "schedule"
GRANTED_LABEL = "granted"
DELETED_LABEL = "deleted"


class Privilege(str, Enum):
    ORDINARY = "ordinary"
    ELEVATED = "elevated"


@dataclass(frozen=True)
class Caller:
    id: str
    privilege: Privilege = Privilege.ORDINARY

    def __post_init__(self) -> None:
        if not self.id or not str(self.id).strip():
            raise InvalidInput("caller id must not be empty")

    @property
    def is_elevated(self) -> bool:
        return self.privilege is Privilege.ELEVATED

    @classmethod
    def from_role(cls, user_id: str, role: str | None, elevated_roles: Iterable[str] = ("faculty", "admin")) -> "Caller":
        normalized = str(role or "").strip().lower()
        privilege = Privilege.ELEVATED if normalized in set(elevated_roles) else Privilege.ORDINARY
        return cls(id=str(user_id or "").strip(), privilege=privilege)


class Status(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

    @classmethod
    def parse(cls, value: Any) -> "Status":
        if isinstance(value, Status):
            return value
        try:
            return cls(str(value or "").strip().lower())
        except ValueError as error:
            raise InvalidInput(f"unknown status: {value!r}") from error


@dataclass(frozen=True)
class AdHocReservation:
    reservation_id: str
    resource: str
    requester_id: str
    purpose: str
    day: date
    interval: TimeRange
    status: Status
    created_at: datetime
    updated_at: datetime | None = None

    kind: ClassVar[str] = BOOKING_KIND

    @property
    def owner_id(self) -> str:
        return self.requester_id

    @property
    def day_key(self) -> DateKey:
        return DateKey(self.day)

    @property
    def is_granted(self) -> bool:
        return self.status is Status.APPROVED

    @property
    def status_label(self) -> str:
        return self.status.value

    def with_status(self, status: Status, now: datetime) -> "AdHocReservation":
        return replace(self, status=status, updated_at=now)

    def to_dict(self) -> dict[str, Any]:
        payload = {
            "id": self.reservation_id,
            "kind": self.kind,
            "resource": self.resource,
            "requester_id": self.requester_id,
            "purpose": self.purpose,
            "date": self.day.isoformat(),
            **self.interval.to_dict(),
            "status": self.status.value,
            "created_at": self.created_at.isoformat(timespec="seconds"),
        }
        if self.updated_at is not None:
            payload["updated_at"] = self.updated_at.isoformat(timespec="seconds")
        return payload

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "AdHocReservation":
        return AdHocReservation(
            reservation_id=str(data["id"]),
            resource=str(data["resource"]),
            requester_id=str(data["requester_id"]),
            purpose=str(data.get("purpose") or ""),
            day=DateKey.parse(data["date"]).day,
            interval=TimeRange.parse(data["start_time"], data["end_time"]),
            status=Status.parse(data["status"]),
            created_at=_parse_timestamp(data["created_at"]),
            updated_at=_parse_timestamp(data["updated_at"]) if data.get("updated_at") else None,
        )


@dataclass(frozen=True)
class RecurringReservation:
    reservation_id: str
    resource: str
    owner_id: str
    course_code: str
    course_name: str
    weekday: Weekday
    interval: TimeRange
    term: str
    created_at: datetime
    updated_at: datetime | None = None

    kind: ClassVar[str] = SCHEDULE_KIND

    @property
    def day_key(self) -> TermWeekdayKey:
        return TermWeekdayKey(self.weekday, self.term)

    @property
    def is_granted(self) -> bool:
        return True

    @property
    def status_label(self) -> str:
        return GRANTED_LABEL

    def to_dict(self) -> dict[str, Any]:
        payload = {
            "id": self.reservation_id,
            "kind": self.kind,
            "resource": self.resource,
            "owner_id": self.owner_id,
            "course_code": self.course_code,
            "course_name": self.course_name,
            "weekday": self.weekday.label,
            **self.interval.to_dict(),
            "term": self.term,
            "created_at": self.created_at.isoformat(timespec="seconds"),
        }
        if self.updated_at is not None:
            payload["updated_at"] = self.updated_at.isoformat(timespec="seconds")
        return payload

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "RecurringReservation":
        return RecurringReservation(
            reservation_id=str(data["id"]),
            resource=str(data["resource"]),
            owner_id=str(data["owner_id"]),
            course_code=str(data.get("course_code") or ""),
            course_name=str(data.get("course_name") or ""),
            weekday=Weekday.parse(data["weekday"]),
            interval=TimeRange.parse(data["start_time"], data["end_time"]),
            term=str(data["term"]),
            created_at=_parse_timestamp(data["created_at"]),
            updated_at=_parse_timestamp(data["updated_at"]) if data.get("updated_at") else None,
        )


Reservation = Union[AdHocReservation, RecurringReservation]


def _parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))

