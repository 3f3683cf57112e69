"""
Unit tests for resolving relative month column headers.
"""
import unittest

from stair_forecast.core.month_label import CalendarMonth
from stair_forecast.core.relative_month import is_relative_header, resolve
from stair_forecast.exceptions import InvalidLabelError


class TestRelativeMonth(unittest.TestCase):
    """Test cases for N / N+k / N-k headers."""

    def setUp(self):
        self.july = CalendarMonth(2024, 7)

    def test_current_month(self):
        self.assertEqual(resolve('N', self.july), self.july)

    def test_forward_offset(self):
        self.assertEqual(resolve('N+3', self.july), CalendarMonth(2024, 10))

    def test_backward_offset_with_year_rollover(self):
        self.assertEqual(resolve('N-2', CalendarMonth(2025, 1)), CalendarMonth(2024, 11))

    def test_forward_offset_with_year_rollover(self):
        self.assertEqual(resolve('N+6', self.july), CalendarMonth(2025, 1))

    def test_lowercase_and_whitespace(self):
        self.assertEqual(resolve(' n+1 ', self.july), CalendarMonth(2024, 8))

    def test_absolute_label_ignores_snapshot(self):
        self.assertEqual(resolve('Okt-24', CalendarMonth(2023, 1)), CalendarMonth(2024, 10))

    def test_unresolvable_header(self):
        for header in ('N+', 'N*2', 'Month 1', 'NN'):
            with self.subTest(header=header):
                with self.assertRaises(InvalidLabelError):
                    resolve(header, self.july)

    def test_is_relative_header(self):
        self.assertTrue(is_relative_header('N'))
        self.assertTrue(is_relative_header('N+12'))
        self.assertTrue(is_relative_header('n-1'))
        self.assertFalse(is_relative_header('Nov-24'))
        self.assertFalse(is_relative_header('N+'))


if __name__ == '__main__':
    unittest.main()
