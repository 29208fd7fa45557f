from __future__ import annotations

from calendar import monthrange
from datetime import date
import re

import holidays as pyholidays

from .errors import InvalidInput
from .intervals import DateKey, DayKey, TermWeekdayKey, Weekday

_SEASON_TAG_RE = re.compile(r"^(?P<season>spring|summer|fall|autumn|winter)\s+(?P<year>\d{4})$", re.IGNORECASE)
_HOLIDAY_CACHE: dict[tuple[str, int], set[date]] = {}


class TermCalendar:
    """Resolves term tags such as "Spring 2025" to inclusive date ranges.

    Explicitly configured terms win. Otherwise "<Season> <Year>" tags fall back
    to fixed season windows. When a holiday country is set, its public holidays
    are lecture-free and recurring reservations do not occupy rooms on them.
    """

    def __init__(
        self,
        terms: dict[str, tuple[date, date]] | None = None,
        holiday_country: str | None = None,
    ) -> None:
        if holiday_country and holiday_country not in pyholidays.list_supported_countries():
            raise ValueError(f"unsupported holiday country: {holiday_country!r}")
        self._terms = {tag.strip().lower(): bounds for tag, bounds in (terms or {}).items()}
        self.holiday_country = holiday_country

    def bounds(self, term: str) -> tuple[date, date]:
        resolved = self._lookup(term)
        if resolved is None:
            raise InvalidInput(f"unknown term: {term!r}")
        return resolved

    def is_known(self, term: str) -> bool:
        return self._lookup(term) is not None

    def holds_session(self, key: TermWeekdayKey, day: date) -> bool:
        """Return True when a weekly session for ``key`` takes place on ``day``."""
        if Weekday.of(day) != key.weekday:
            return False
        resolved = self._lookup(key.term)
        # A term that can no longer be resolved still blocks its weekday.
        if resolved is not None and not resolved[0] <= day <= resolved[1]:
            return False
        return not self.is_holiday(day)

    def terms_intersect(self, first: str, second: str) -> bool:
        if first.strip().lower() == second.strip().lower():
            return True
        first_bounds = self._lookup(first)
        second_bounds = self._lookup(second)
        if first_bounds is None or second_bounds is None:
            return True
        return first_bounds[0] <= second_bounds[1] and second_bounds[0] <= first_bounds[1]

    def compatible(self, a: DayKey, b: DayKey) -> bool:
        """Return True when reservations on day keys ``a`` and ``b`` can collide."""
        if isinstance(a, DateKey) and isinstance(b, DateKey):
            return a.day == b.day
        if isinstance(a, DateKey):
            return self.holds_session(b, a.day)
        if isinstance(b, DateKey):
            return self.holds_session(a, b.day)
        return a.weekday == b.weekday and self.terms_intersect(a.term, b.term)

    def is_holiday(self, day: date) -> bool:
        if not self.holiday_country:
            return False
        cache_key = (self.holiday_country, day.year)
        if cache_key not in _HOLIDAY_CACHE:
            holiday_map = pyholidays.country_holidays(self.holiday_country, years=[day.year])
            _HOLIDAY_CACHE[cache_key] = set(holiday_map.keys())
        return day in _HOLIDAY_CACHE[cache_key]

    def _lookup(self, term: str) -> tuple[date, date] | None:
        normalized = term.strip().lower()
        if normalized in self._terms:
            return self._terms[normalized]
        return _season_bounds(normalized)


def _season_bounds(term: str) -> tuple[date, date] | None:
    match = _SEASON_TAG_RE.match(term)
    if match is None:
        return None

    season = match.group("season").lower()
    year = int(match.group("year"))
    if season == "spring":
        return date(year, 1, 1), date(year, 5, 31)
    if season == "summer":
        return date(year, 6, 1), date(year, 8, 31)
    if season in ("fall", "autumn"):
        return date(year, 9, 1), date(year, 12, 31)
    return date(year, 1, 1), date(year, 2, monthrange(year, 2)[1])
