"""
Unit tests for month label encoding and decoding.
"""
import unittest
from datetime import date

from stair_forecast.core.month_label import (
    MONTH_NAMES,
    CalendarMonth,
    add_months,
    decode,
    encode,
    month_range,
    months_between,
    to_calendar_month
)
from stair_forecast.exceptions import InvalidLabelError, InvalidMonthIndexError, ValidationError


class TestDecode(unittest.TestCase):
    """Test cases for parsing month labels."""

    def test_decode_basic(self):
        self.assertEqual(decode('Jul-24'), CalendarMonth(2024, 7))
        self.assertEqual(decode('Jan-25'), CalendarMonth(2025, 1))

    def test_decode_indonesian_names(self):
        """Indonesian abbreviations differ from English for four months."""
        self.assertEqual(decode('Mei-24').month, 5)
        self.assertEqual(decode('Agu-24').month, 8)
        self.assertEqual(decode('Okt-24').month, 10)
        self.assertEqual(decode('Des-24').month, 12)

    def test_decode_is_case_insensitive(self):
        self.assertEqual(decode('okt-24'), CalendarMonth(2024, 10))
        self.assertEqual(decode('DES-24'), CalendarMonth(2024, 12))

    def test_decode_strips_whitespace(self):
        self.assertEqual(decode('  Sep-24 '), CalendarMonth(2024, 9))

    def test_year_pivot(self):
        self.assertEqual(decode('Jan-69').year, 2069)
        self.assertEqual(decode('Jan-70').year, 1970)
        self.assertEqual(decode('Jan-99').year, 1999)
        self.assertEqual(decode('Jan-00').year, 2000)

    def test_four_digit_year_taken_literally(self):
        self.assertEqual(decode('Feb-2026'), CalendarMonth(2026, 2))

    def test_unknown_month_token(self):
        with self.assertRaises(InvalidLabelError) as ctx:
            decode('Aug-24')

        self.assertEqual(ctx.exception.label, 'Aug-24')
        self.assertIn('Aug-24', ctx.exception.message)

    def test_invalid_labels(self):
        for label in ('', 'Jul', 'Jul-', 'Jul-2x', '-24', 'Jul/24', None, 202407):
            with self.subTest(label=label):
                with self.assertRaises(InvalidLabelError):
                    decode(label)

    def test_invalid_label_is_validation_error(self):
        with self.assertRaises(ValidationError):
            decode('Foo-24')


class TestEncode(unittest.TestCase):
    """Test cases for formatting months as labels."""

    def test_encode_calendar_month(self):
        self.assertEqual(encode(CalendarMonth(2024, 8)), 'Agu-24')

    def test_encode_date(self):
        self.assertEqual(encode(date(2025, 5, 1)), 'Mei-25')

    def test_encode_pads_year(self):
        self.assertEqual(encode(CalendarMonth(2005, 1)), 'Jan-05')

    def test_encode_invalid_month(self):
        with self.assertRaises(InvalidMonthIndexError):
            encode(CalendarMonth(2024, 13))

        with self.assertRaises(InvalidMonthIndexError):
            encode(CalendarMonth(2024, 0))

    def test_str_uses_label(self):
        self.assertEqual(str(CalendarMonth(2024, 12)), 'Des-24')

    def test_round_trip_labels(self):
        for name in MONTH_NAMES:
            for year in ('00', '24', '69', '70', '99'):
                label = f"{name}-{year}"
                with self.subTest(label=label):
                    self.assertEqual(encode(decode(label)), label)

    def test_round_trip_months(self):
        for month in month_range(CalendarMonth(1970, 1), CalendarMonth(2069, 12)):
            self.assertEqual(decode(encode(month)), month)


class TestMonthArithmetic(unittest.TestCase):
    """Test cases for month arithmetic helpers."""

    def test_ordering(self):
        self.assertLess(CalendarMonth(2024, 12), CalendarMonth(2025, 1))
        self.assertLess(CalendarMonth(2024, 7), CalendarMonth(2024, 8))

    def test_add_months_rollover(self):
        self.assertEqual(add_months(CalendarMonth(2024, 11), 3), CalendarMonth(2025, 2))
        self.assertEqual(add_months(CalendarMonth(2025, 1), -2), CalendarMonth(2024, 11))
        self.assertEqual(add_months(CalendarMonth(2024, 7), 0), CalendarMonth(2024, 7))

    def test_months_between(self):
        self.assertEqual(months_between(CalendarMonth(2024, 7), CalendarMonth(2025, 6)), 11)
        self.assertEqual(months_between(CalendarMonth(2025, 6), CalendarMonth(2024, 7)), -11)

    def test_month_range(self):
        months = month_range(CalendarMonth(2024, 11), CalendarMonth(2025, 2))
        self.assertEqual([encode(m) for m in months], ['Nov-24', 'Des-24', 'Jan-25', 'Feb-25'])
        self.assertEqual(month_range(CalendarMonth(2025, 2), CalendarMonth(2024, 11)), [])

    def test_to_calendar_month(self):
        self.assertEqual(to_calendar_month('Jul-24'), CalendarMonth(2024, 7))
        self.assertEqual(to_calendar_month(date(2024, 7, 15)), CalendarMonth(2024, 7))
        self.assertEqual(to_calendar_month(CalendarMonth(2024, 7)).to_date(), date(2024, 7, 1))


if __name__ == '__main__':
    unittest.main()
