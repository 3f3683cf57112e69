"""
Unit tests for per-month revision selection.
"""
import unittest

from stair_forecast.core.month_label import CalendarMonth
from stair_forecast.core.version_resolution import (
    LATEST,
    VersionRecord,
    group_versions_by_month,
    parse_version_selector,
    resolve_versions
)
from stair_forecast.exceptions import InvalidVersionSelector

JUL_24 = CalendarMonth(2024, 7)
AGU_24 = CalendarMonth(2024, 8)
SEP_24 = CalendarMonth(2024, 9)


class TestParseVersionSelector(unittest.TestCase):
    """Test cases for normalising revision selectors."""

    def test_latest_aliases(self):
        for raw in (None, '', '  ', 'latest', 'LATEST'):
            with self.subTest(raw=raw):
                self.assertEqual(parse_version_selector(raw), LATEST)

    def test_numeric_selectors(self):
        self.assertEqual(parse_version_selector(20), 20)
        self.assertEqual(parse_version_selector('20'), 20)
        self.assertEqual(parse_version_selector(' 0 '), 0)

    def test_invalid_selectors(self):
        for raw in ('abc', '-1', -1, '1.5', 1.5, True, [], {}):
            with self.subTest(raw=raw):
                with self.assertRaises(InvalidVersionSelector):
                    parse_version_selector(raw)

    def test_error_names_offending_value(self):
        with self.assertRaises(InvalidVersionSelector) as ctx:
            parse_version_selector('v2')

        self.assertEqual(ctx.exception.message, 'Invalid version parameter: v2')
        self.assertEqual(ctx.exception.http_status, 400)


class TestResolveVersions(unittest.TestCase):
    """Test cases for effective version resolution."""

    def setUp(self):
        self.versions = [
            VersionRecord(JUL_24, 10, ('jul-10',)),
            VersionRecord(AGU_24, 10, ('agu-10',)),
            VersionRecord(AGU_24, 20, ('agu-20',))
        ]

    def test_fallback_is_per_month(self):
        resolution = resolve_versions(self.versions, 20)

        self.assertEqual(resolution.requested_version, 20)
        self.assertEqual(resolution.version_selection, {JUL_24: 10, AGU_24: 20})
        self.assertEqual(resolution.fallback_months, [JUL_24])
        self.assertEqual(resolution.available_versions, [10, 20])

    def test_latest_picks_highest_revision(self):
        resolution = resolve_versions(self.versions)

        self.assertEqual(resolution.version_selection, {JUL_24: 10, AGU_24: 20})
        self.assertEqual(resolution.fallback_months, [])

    def test_exact_match_everywhere(self):
        resolution = resolve_versions(self.versions, '10')

        self.assertEqual(resolution.version_selection, {JUL_24: 10, AGU_24: 10})
        self.assertEqual(resolution.fallback_months, [])

    def test_unknown_revision_falls_back_everywhere(self):
        resolution = resolve_versions(self.versions, 99)

        self.assertEqual(resolution.version_selection, {JUL_24: 10, AGU_24: 20})
        self.assertEqual(resolution.fallback_months, [JUL_24, AGU_24])

    def test_effective_versions_in_month_order(self):
        shuffled = [self.versions[2], self.versions[0], self.versions[1]]
        resolution = resolve_versions(shuffled, 10)

        effective = resolution.effective_versions()
        self.assertEqual([record.entries for record in effective], [('jul-10',), ('agu-10',)])

    def test_empty_input(self):
        resolution = resolve_versions([], LATEST)

        self.assertEqual(resolution.effective, {})
        self.assertEqual(resolution.available_versions, [])
        self.assertEqual(resolution.fallback_months, [])

    def test_invalid_selector_propagates(self):
        with self.assertRaises(InvalidVersionSelector):
            resolve_versions(self.versions, 'newest')

    def test_group_versions_by_month(self):
        grouped = group_versions_by_month(self.versions + [VersionRecord(SEP_24, 10)])

        self.assertEqual(list(grouped), [JUL_24, AGU_24, SEP_24])
        self.assertEqual([record.version for record in grouped[AGU_24]], [10, 20])


if __name__ == '__main__':
    unittest.main()
