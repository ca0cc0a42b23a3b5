import unittest
from datetime import time
from decimal import Decimal

from roombook.models.intervals import (
    DEFAULT_WINDOW,
    OperatingWindow,
    TimeInterval,
    duration,
    overlaps,
)
from roombook.utils.custom_exceptions import InvalidInterval


def iv(start, end):
    return TimeInterval.parse(start, end)


class TestTimeInterval(unittest.TestCase):

    def test_parse(self):
        interval = iv("09:00", "10:30")
        self.assertEqual(interval.start, time(9, 0))
        self.assertEqual(interval.end, time(10, 30))
        self.assertEqual(str(interval), "09:00-10:30")

    def test_start_must_precede_end(self):
        with self.assertRaises(InvalidInterval):
            iv("10:00", "10:00")
        with self.assertRaises(InvalidInterval):
            iv("11:00", "10:00")

    def test_bounds_inside_default_window(self):
        self.assertEqual(str(DEFAULT_WINDOW), "09:00-21:00")
        iv("09:00", "21:00")
        with self.assertRaises(InvalidInterval):
            iv("08:00", "10:00")
        with self.assertRaises(InvalidInterval):
            iv("20:00", "22:00")

    def test_custom_window(self):
        window = OperatingWindow.parse("07:00-23:00")
        interval = TimeInterval.parse("07:00", "08:00", window)
        self.assertEqual(interval.start, time(7))
        with self.assertRaises(InvalidInterval):
            TimeInterval.parse("22:00", "23:30", window)

    def test_malformed_time(self):
        with self.assertRaises(InvalidInterval):
            iv("9am", "10:00")
        with self.assertRaises(InvalidInterval):
            iv("09:00", None)

    def test_seconds_rejected(self):
        with self.assertRaises(InvalidInterval):
            TimeInterval(time(9, 0, 30), time(10, 0))

    def test_window_not_part_of_equality(self):
        wide = OperatingWindow.parse("00:00-23:59")
        self.assertEqual(TimeInterval.parse("09:00", "10:00", wide), iv("09:00", "10:00"))


class TestOverlap(unittest.TestCase):

    def test_back_to_back_does_not_overlap(self):
        self.assertFalse(overlaps(iv("09:00", "10:00"), iv("10:00", "11:00")))
        self.assertFalse(overlaps(iv("10:00", "11:00"), iv("09:00", "10:00")))

    def test_partial_overlap(self):
        self.assertTrue(overlaps(iv("09:00", "11:00"), iv("10:00", "12:00")))

    def test_containment(self):
        self.assertTrue(overlaps(iv("09:00", "12:00"), iv("10:00", "11:00")))

    def test_identical(self):
        self.assertTrue(iv("09:00", "10:00").overlaps(iv("09:00", "10:00")))

    def test_symmetric(self):
        samples = [
            iv("09:00", "10:00"),
            iv("09:30", "11:00"),
            iv("10:00", "12:00"),
            iv("11:00", "11:30"),
            iv("09:00", "21:00"),
        ]
        for a in samples:
            for b in samples:
                self.assertEqual(overlaps(a, b), overlaps(b, a))


class TestDuration(unittest.TestCase):

    def test_whole_hours_exact(self):
        self.assertEqual(duration(iv("09:00", "11:00")), Decimal("2"))
        self.assertEqual(iv("09:00", "21:00").duration(), Decimal("12"))

    def test_fractional(self):
        self.assertEqual(duration(iv("09:00", "09:30")), Decimal("0.50"))
        self.assertEqual(duration(iv("09:00", "09:20")), Decimal("0.33"))


class TestOperatingWindow(unittest.TestCase):

    def test_parse(self):
        window = OperatingWindow.parse("08:30 - 18:00")
        self.assertEqual(window.opens, time(8, 30))
        self.assertEqual(window.closes, time(18, 0))

    def test_invalid(self):
        with self.assertRaises(ValueError):
            OperatingWindow.parse("18:00-08:00")
        with self.assertRaises(ValueError):
            OperatingWindow.parse("all day")


if __name__ == "__main__":
    unittest.main()
