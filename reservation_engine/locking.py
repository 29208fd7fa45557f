from __future__ import annotations

from contextlib import contextmanager
from threading import Lock
from typing import Iterator


class _Entry:
    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = Lock()
        self.users = 0


class ResourceLocks:
    """Per-resource mutexes, created on demand and dropped when unused."""

    def __init__(self) -> None:
        self._guard = Lock()
        self._entries: dict[str, _Entry] = {}

    @contextmanager
    def hold(self, *resources: str) -> Iterator[None]:
        # Sorted acquisition keeps two-resource holders from deadlocking.
        ordered = sorted(set(resources))
        entries = [self._checkout(resource) for resource in ordered]
        acquired: list[_Entry] = []
        try:
            for entry in entries:
                entry.lock.acquire()
                acquired.append(entry)
            yield
        finally:
            for entry in reversed(acquired):
                entry.lock.release()
            for resource in ordered:
                self._checkin(resource)

    def active_count(self) -> int:
        with self._guard:
            return len(self._entries)

    def _checkout(self, resource: str) -> _Entry:
        with self._guard:
            entry = self._entries.get(resource)
            if entry is None:
                entry = self._entries[resource] = _Entry()
            entry.users += 1
            return entry

    def _checkin(self, resource: str) -> None:
        with self._guard:
            entry = self._entries[resource]
            entry.users -= 1
            if entry.users == 0:
                del self._entries[resource]
