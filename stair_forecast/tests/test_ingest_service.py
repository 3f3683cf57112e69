"""
Tests for CSV sheet ingestion.
"""
import os
import tempfile
import unittest

from stair_forecast.core.month_label import CalendarMonth
from stair_forecast.exceptions import InvalidLabelError, MissingRequiredColumn, ValidationError
from stair_forecast.models import SKU, ShipTo, ForecastEntry, ForecastVersion
from stair_forecast.services.forecast_service import ForecastService
from stair_forecast.services.ingest_service import IngestService, UploadLayout, normalize_header
from stair_forecast.tests.base import DatabaseTestCase

ABSOLUTE_SHEET = """PART NUMBER,PART NAME,ORDER,SHIP TO,ORDER DATE,Jul-24,Agu-24,Sep-24
001234,FINISH GOOD 1,ORDER001,,Jul-24,3800,4600,
001234,FINISH GOOD 1,ORDER001,,Agu-24,-,2700,4300
"""

RELATIVE_SHEET = """PART NUMBER,PART NAME,ORDER,SHIP TO,SHIP TO NAME,ORDER DATE,ORDER VERSION,N,N+1,N+2
001234,FINISH GOOD 1,ORDER001,JKT,Jakarta,Jul-24,20,100,110,120
001234,FINISH GOOD 1,ORDER001,SBY,Surabaya,Jul-24,,50,55,"1,060"
"""


class TestUploadLayout(unittest.TestCase):
    """Test cases for header parsing."""

    def test_positions(self):
        layout = UploadLayout(['PART NUMBER', 'PART NAME', 'ORDER', 'SHIP TO', 'ORDER DATE', 'Jul-24'])

        self.assertEqual(layout.index['SHIP TO'], 3)
        self.assertEqual(layout.month_start, 5)
        self.assertEqual(layout.month_headers, ['Jul-24'])

    def test_headers_are_normalized(self):
        layout = UploadLayout(['\ufeffPart Number', 'part  name', 'Order', 'ship to', 'Order Date', 'N'])

        self.assertEqual(layout.index['PART NUMBER'], 0)
        self.assertEqual(layout.month_headers, ['N'])
        self.assertEqual(normalize_header(' order   version '), 'ORDER VERSION')

    def test_missing_required_column(self):
        with self.assertRaises(MissingRequiredColumn) as ctx:
            UploadLayout(['PART NUMBER', 'PART NAME', 'ORDER', 'ORDER DATE', 'Jul-24'])

        self.assertEqual(ctx.exception.column, 'SHIP TO')

    def test_target_month(self):
        layout = UploadLayout(['PART NUMBER', 'SHIP TO', 'ORDER DATE', 'N+1', 'Okt-24', 'Bad'])
        july, august = CalendarMonth(2024, 7), CalendarMonth(2024, 8)

        self.assertEqual(layout.target_month('N+1', july), CalendarMonth(2024, 8))
        self.assertEqual(layout.target_month('N+1', august), CalendarMonth(2024, 9))
        self.assertEqual(layout.target_month('Okt-24', july), CalendarMonth(2024, 10))
        self.assertEqual(layout.target_month('Okt-24', august), CalendarMonth(2024, 10))
        with self.assertRaises(InvalidLabelError):
            layout.target_month('Bad', july)


class TestIngestService(DatabaseTestCase):
    """Test cases for IngestService.ingest_csv."""

    def setUp(self):
        super().setUp()
        self.service = IngestService(self.session)

    def test_absolute_headers(self):
        results = self.service.ingest_csv(ABSOLUTE_SHEET, default_version=10)

        self.assertEqual(results['errors'], [])
        self.assertEqual(results['skus_created'], 1)
        self.assertEqual(results['ship_tos_created'], 1)
        self.assertEqual(results['forecast_entries_created'], 4)
        self.assertEqual(results['rows_processed'], 2)
        self.assertEqual(results['versions_used'], [10])

        ship_to = self.session.query(ShipTo).one()
        self.assertEqual(ship_to.code, 'DEFAULT')

        staircase = ForecastService(self.session).get_staircase()
        self.assertEqual([row['values'] for row in staircase['rows']], [[3800, 4600, None], [None, 2700, 4300]])

    def test_relative_headers_and_row_versions(self):
        results = self.service.ingest_csv(RELATIVE_SHEET, default_version=10)

        self.assertEqual(results['errors'], [])
        self.assertEqual(results['ship_tos_created'], 2)
        self.assertEqual(results['forecast_entries_created'], 6)
        self.assertEqual(results['versions_used'], [10, 20])

        versions = {(v.month.month, v.version) for v in self.session.query(ForecastVersion)}
        self.assertEqual(versions, {(7, 10), (8, 10), (9, 10), (7, 20), (8, 20), (9, 20)})

        sby = self.session.query(ShipTo).filter(ShipTo.code == 'SBY').one()
        self.assertEqual(sby.name, 'Surabaya')
        values = sorted(entry.value for entry in self.session.query(ForecastEntry).filter_by(ship_to_id=sby.id))
        self.assertEqual(values, [50, 55, 1060])

    def test_reingest_overwrites(self):
        self.service.ingest_csv(ABSOLUTE_SHEET, default_version=10)
        results = self.service.ingest_csv(ABSOLUTE_SHEET.replace('3800', '3900'), default_version=10)

        self.assertEqual(results['skus_created'], 0)
        self.assertEqual(results['forecast_entries_created'], 0)
        self.assertEqual(results['forecast_entries_updated'], 4)
        self.assertEqual(self.session.query(ForecastEntry).count(), 4)
        self.assertIn(3900, [entry.value for entry in self.session.query(ForecastEntry)])

    def test_row_errors_do_not_abort_batch(self):
        sheet = (
            "PART NUMBER,PART NAME,ORDER,SHIP TO,ORDER DATE,Jul-24,Agu-24\n"
            "001234,FG 1,O1,,Jul-24,10,20\n"
            ",FG 2,O2,,Jul-24,10,20\n"
            "001236,FG 3,O3,,July,10,20\n"
            "001237,FG 4,O4\n"
            "001238,FG 5,O5,,Jul-24,abc,30\n"
        )

        results = self.service.ingest_csv(sheet, default_version=10)

        self.assertEqual(results['rows_processed'], 2)
        self.assertEqual(
            [(error['row'], error['message']) for error in results['errors']],
            [
                (3, 'Missing part number'),
                (4, 'Invalid month label: July'),
                (5, 'Insufficient columns'),
                (6, "Invalid value 'abc' in column 'Jul-24'")
            ]
        )
        self.assertEqual(self.session.query(SKU).count(), 2)
        self.assertEqual(results['forecast_entries_created'], 3)

    def test_unresolvable_month_header(self):
        sheet = "SHIP TO,ORDER DATE,PART NUMBER,Bulan 1,Agu-24\nJKT,Jul-24,001234,5,6\n"

        results = self.service.ingest_csv(sheet, default_version=10)

        self.assertEqual(results['forecast_entries_created'], 1)
        self.assertEqual(len(results['errors']), 1)
        self.assertIn('Bulan 1', results['errors'][0]['message'])

    def test_invalid_order_version(self):
        sheet = "PART NUMBER,PART NAME,ORDER,SHIP TO,ORDER DATE,ORDER VERSION,N\n001,A,O,,Jul-24,v2,5\n"

        results = self.service.ingest_csv(sheet, default_version=10)

        self.assertEqual(results['rows_processed'], 0)
        self.assertEqual(results['errors'], [{'row': 2, 'message': "Invalid order version 'v2'"}])

    def test_missing_column_is_fatal(self):
        with self.assertRaises(MissingRequiredColumn):
            self.service.ingest_csv("PART NUMBER,SHIP TO,Jul-24\n001,JKT,5\n", default_version=10)

        self.assertEqual(self.session.query(SKU).count(), 0)

    def test_header_only_file(self):
        with self.assertRaises(ValidationError):
            self.service.ingest_csv("PART NUMBER,SHIP TO,ORDER DATE,Jul-24\n\n", default_version=10)

    def test_invalid_default_version(self):
        with self.assertRaises(ValidationError):
            self.service.ingest_csv(ABSOLUTE_SHEET, default_version=-1)

    def test_ingest_file(self):
        handle, path = tempfile.mkstemp(suffix='.csv')
        os.close(handle)
        self.addCleanup(os.remove, path)
        with open(path, 'w', encoding='utf-8-sig') as f:
            f.write(ABSOLUTE_SHEET)

        results = self.service.ingest_file(path)

        self.assertEqual(results['default_version'], 10)
        self.assertEqual(results['forecast_entries_created'], 4)


if __name__ == '__main__':
    unittest.main()
