import unittest
from datetime import date, time

from reservation_engine import DateKey, InvalidInput, TermCalendar, TermWeekdayKey, TimeRange, Weekday, overlaps


def _range(start: str, end: str) -> TimeRange:
    return TimeRange.parse(start, end)


class TestTimeOverlap(unittest.TestCase):
    def setUp(self) -> None:
        self.existing = _range("10:00", "11:00")

    def test_non_overlapping_before_passes(self) -> None:
        self.assertFalse(overlaps(_range("09:00", "09:59"), self.existing))

    def test_non_overlapping_after_passes(self) -> None:
        self.assertFalse(overlaps(_range("11:01", "12:00"), self.existing))

    def test_exactly_touching_boundary_passes(self) -> None:
        self.assertFalse(overlaps(_range("11:00", "12:00"), self.existing))
        self.assertFalse(overlaps(_range("09:00", "10:00"), self.existing))

    def test_partially_overlapping_fails(self) -> None:
        self.assertTrue(overlaps(_range("10:30", "11:30"), self.existing))

    def test_fully_contained_fails(self) -> None:
        self.assertTrue(overlaps(_range("10:15", "10:45"), self.existing))

    def test_overlap_is_symmetric(self) -> None:
        candidates = [
            _range("08:00", "09:00"),
            _range("09:30", "10:30"),
            _range("10:00", "11:00"),
            _range("10:59", "13:00"),
            _range("11:00", "11:30"),
        ]
        for candidate in candidates:
            with self.subTest(candidate=candidate):
                self.assertEqual(overlaps(candidate, self.existing), overlaps(self.existing, candidate))

    def test_interval_overlaps_itself(self) -> None:
        self.assertTrue(overlaps(self.existing, self.existing))


class TestTimeRange(unittest.TestCase):
    def test_parse_accepts_strings_and_times(self) -> None:
        parsed = TimeRange.parse("09:00", time(10, 30))
        self.assertEqual(parsed.start, time(9, 0))
        self.assertEqual(parsed.end, time(10, 30))
        self.assertEqual(parsed.to_dict(), {"start_time": "09:00", "end_time": "10:30"})

    def test_start_must_precede_end(self) -> None:
        with self.assertRaises(InvalidInput):
            _range("11:00", "10:00")
        with self.assertRaises(InvalidInput):
            _range("10:00", "10:00")

    def test_malformed_time_is_invalid_input(self) -> None:
        with self.assertRaises(InvalidInput):
            _range("ten", "11:00")
        with self.assertRaises(InvalidInput):
            _range("", "11:00")

    def test_utc_offsets_are_rejected(self) -> None:
        with self.assertRaises(InvalidInput):
            _range("10:00+02:00", "11:00+02:00")
        with self.assertRaises(InvalidInput):
            _range("10:00", "11:00Z")


class TestDayKeys(unittest.TestCase):
    def test_weekday_parse(self) -> None:
        self.assertIs(Weekday.parse("Monday"), Weekday.MONDAY)
        self.assertIs(Weekday.parse(" friday "), Weekday.FRIDAY)
        self.assertIs(Weekday.parse(6), Weekday.SUNDAY)
        self.assertEqual(Weekday.MONDAY.label, "Monday")
        with self.assertRaises(InvalidInput):
            Weekday.parse("Funday")
        with self.assertRaises(InvalidInput):
            Weekday.parse(7)

    def test_date_key_parse(self) -> None:
        self.assertEqual(DateKey.parse("2025-05-01").day, date(2025, 5, 1))
        with self.assertRaises(InvalidInput):
            DateKey.parse("2025-13-01")

    def test_term_key_requires_term(self) -> None:
        with self.assertRaises(InvalidInput):
            TermWeekdayKey(Weekday.MONDAY, " ")


class TestTermCalendar(unittest.TestCase):
    def setUp(self) -> None:
        self.calendar = TermCalendar()
        self.monday_spring = TermWeekdayKey(Weekday.MONDAY, "Spring 2025")

    def test_season_tags_resolve(self) -> None:
        self.assertEqual(self.calendar.bounds("Spring 2025"), (date(2025, 1, 1), date(2025, 5, 31)))
        self.assertEqual(self.calendar.bounds("fall 2025"), (date(2025, 9, 1), date(2025, 12, 31)))
        self.assertEqual(self.calendar.bounds("Winter 2024"), (date(2024, 1, 1), date(2024, 2, 29)))

    def test_unknown_term_is_invalid_input(self) -> None:
        self.assertFalse(self.calendar.is_known("Trimester A"))
        with self.assertRaises(InvalidInput):
            self.calendar.bounds("Trimester A")

    def test_configured_terms_override_seasons(self) -> None:
        calendar = TermCalendar({"Spring 2025": (date(2025, 2, 10), date(2025, 6, 20))})
        self.assertEqual(calendar.bounds("spring 2025"), (date(2025, 2, 10), date(2025, 6, 20)))
        self.assertTrue(calendar.holds_session(self.monday_spring, date(2025, 6, 16)))
        self.assertFalse(calendar.holds_session(self.monday_spring, date(2025, 2, 3)))

    def test_dates_compare_only_with_same_date(self) -> None:
        self.assertTrue(self.calendar.compatible(DateKey(date(2025, 5, 1)), DateKey(date(2025, 5, 1))))
        self.assertFalse(self.calendar.compatible(DateKey(date(2025, 5, 1)), DateKey(date(2025, 5, 2))))

    def test_date_must_match_weekday_and_fall_within_term(self) -> None:
        self.assertTrue(self.calendar.compatible(DateKey(date(2025, 3, 3)), self.monday_spring))
        self.assertTrue(self.calendar.compatible(self.monday_spring, DateKey(date(2025, 3, 3))))
        # Tuesday inside the term.
        self.assertFalse(self.calendar.compatible(DateKey(date(2025, 3, 4)), self.monday_spring))
        # Monday after the term.
        self.assertFalse(self.calendar.compatible(DateKey(date(2025, 6, 2)), self.monday_spring))

    def test_term_keys_need_same_weekday_and_intersecting_terms(self) -> None:
        self.assertTrue(self.calendar.compatible(self.monday_spring, TermWeekdayKey(Weekday.MONDAY, "Spring 2025")))
        self.assertTrue(self.calendar.compatible(self.monday_spring, TermWeekdayKey(Weekday.MONDAY, "Winter 2025")))
        self.assertFalse(self.calendar.compatible(self.monday_spring, TermWeekdayKey(Weekday.TUESDAY, "Spring 2025")))
        self.assertFalse(self.calendar.compatible(self.monday_spring, TermWeekdayKey(Weekday.MONDAY, "Fall 2025")))

    def test_public_holidays_are_lecture_free(self) -> None:
        calendar = TermCalendar(holiday_country="US")
        # Martin Luther King Jr. Day.
        self.assertFalse(calendar.holds_session(self.monday_spring, date(2025, 1, 20)))
        self.assertTrue(calendar.holds_session(self.monday_spring, date(2025, 1, 27)))

    def test_unsupported_holiday_country_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            TermCalendar(holiday_country="XX")


if __name__ == "__main__":
    unittest.main()
