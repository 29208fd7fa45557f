from __future__ import annotations

from dataclasses import dataclass
from datetime import date, time
from enum import Enum
from typing import Any, Union

from .errors import InvalidInput


class Weekday(Enum):
    MONDAY = 0
    TUESDAY = 1
    WEDNESDAY = 2
    THURSDAY = 3
    FRIDAY = 4
    SATURDAY = 5
    SUNDAY = 6

    @property
    def label(self) -> str:
        return self.name.capitalize()

    @classmethod
    def parse(cls, value: Any) -> "Weekday":
        if isinstance(value, Weekday):
            return value
        if isinstance(value, int) and not isinstance(value, bool):
            try:
                return cls(value)
            except ValueError as error:
                raise InvalidInput(f"weekday out of range: {value}") from error
        text = str(value or "").strip().upper()
        try:
            return cls[text]
        except KeyError as error:
            raise InvalidInput(f"unknown weekday: {value!r}") from error

    @classmethod
    def of(cls, day: date) -> "Weekday":
        return cls(day.weekday())


@dataclass(frozen=True)
class TimeRange:
    """Half-open time-of-day range [start, end)."""

    start: time
    end: time

    def __post_init__(self) -> None:
        if self.start >= self.end:
            raise InvalidInput("Reservation start time must be earlier than end time.")

    @classmethod
    def parse(cls, start: Any, end: Any) -> "TimeRange":
        return cls(parse_time(start), parse_time(end))

    def to_dict(self) -> dict[str, str]:
        return {"start_time": format_time(self.start), "end_time": format_time(self.end)}


@dataclass(frozen=True)
class DateKey:
    day: date

    @classmethod
    def parse(cls, value: Any) -> "DateKey":
        if isinstance(value, date):
            return cls(value)
        try:
            return cls(date.fromisoformat(str(value).strip()))
        except ValueError as error:
            raise InvalidInput(f"invalid date: {value!r}") from error


@dataclass(frozen=True)
class TermWeekdayKey:
    weekday: Weekday
    term: str

    def __post_init__(self) -> None:
        if not self.term or not self.term.strip():
            raise InvalidInput("term must not be empty")


DayKey = Union[DateKey, TermWeekdayKey]


def overlaps(a: TimeRange, b: TimeRange) -> bool:
    """Return True when two ranges share at least one instant.

    Touching boundaries (10:00-11:00 and 11:00-12:00) do not overlap.
    """
    return a.start < b.end and b.start < a.end


def parse_time(value: Any) -> time:
    if isinstance(value, time):
        return value.replace(tzinfo=None)
    text = str(value or "").strip()
    if not text:
        raise InvalidInput("time must not be empty")
    try:
        parsed = time.fromisoformat(text)
    except ValueError as error:
        raise InvalidInput(f"invalid time: {value!r}") from error
    if parsed.tzinfo is not None:
        raise InvalidInput(f"time must not carry a UTC offset: {value!r}")
    return parsed


def format_time(value: time) -> str:
    if value.second or value.microsecond:
        return value.isoformat(timespec="seconds")
    return value.isoformat(timespec="minutes")
