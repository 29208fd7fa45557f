from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable

from .logger import get_logger
from .models import DELETED_LABEL
from .yaml_store import YamlRecordStore

logger = get_logger(__name__)


@dataclass(frozen=True)
class ReservationEvent:
    reservation_id: str
    kind: str
    resource: str
    owner_id: str
    previous_status: str | None
    new_status: str
    occurred_at: datetime

    @property
    def event_type(self) -> str:
        if self.previous_status is None:
            return "RESERVATION_CREATED"
        if self.new_status == DELETED_LABEL:
            return "RESERVATION_DELETED"
        if self.previous_status == self.new_status:
            return "RESERVATION_UPDATED"
        return f"RESERVATION_{self.new_status.upper()}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "reservation_id": self.reservation_id,
            "kind": self.kind,
            "resource": self.resource,
            "owner_id": self.owner_id,
            "previous_status": self.previous_status,
            "new_status": self.new_status,
        }


Notifier = Callable[[ReservationEvent], None]


class LoggingNotifier:
    def __call__(self, event: ReservationEvent) -> None:
        logger.info(
            "%s %s %s (%s -> %s) owner=%s",
            event.event_type,
            event.kind,
            event.reservation_id,
            event.previous_status,
            event.new_status,
            event.owner_id,
        )


class YamlEventLog:
    """Appends every event to ``reservation_events.yaml`` in the data directory."""

    collection = "reservation_events"

    def __init__(self, store: YamlRecordStore) -> None:
        self.store = store

    def __call__(self, event: ReservationEvent) -> None:
        self.store.append(
            self.collection,
            {
                "event_time": event.occurred_at.isoformat(timespec="seconds"),
                "event_type": event.event_type,
                "payload": event.to_dict(),
            },
        )

    def events(self) -> list[dict[str, Any]]:
        return self.store.list(self.collection)
