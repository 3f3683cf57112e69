"""
Tests for the command-line interface.
"""
import io
import os
import shutil
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from unittest.mock import patch

from stair_forecast.db import db
from stair_forecast.main import main


class TestCLI(unittest.TestCase):
    """Test cases for the stair_forecast.main commands."""

    def setUp(self):
        self.workdir = tempfile.mkdtemp()
        self.database_url = f"sqlite:///{os.path.join(self.workdir, 'cli.db')}"

    def tearDown(self):
        db.session.remove()
        db.engine.dispose()
        shutil.rmtree(self.workdir, ignore_errors=True)

    def run_cli(self, *args):
        output = io.StringIO()
        with redirect_stdout(output):
            code = main(['--database-url', self.database_url] + list(args))
        return code, output.getvalue()

    def test_seed_and_show(self):
        code, output = self.run_cli('seed')
        self.assertEqual(code, 0)
        self.assertIn('SKUs: 2', output)

        code, output = self.run_cli('show', '--part-number', '001234', '--version', '10')
        self.assertEqual(code, 0)
        self.assertIn('Order Date', output)
        self.assertIn('3,800', output)
        self.assertIn('Available versions: 10, 20', output)

    def test_show_deltas(self):
        self.run_cli('seed')

        code, output = self.run_cli('show', '--part-number', '001234', '--version', '10', '--delta')

        self.assertEqual(code, 0)
        self.assertIn('-1,900', output)
        self.assertIn('+600', output)

    def test_show_unknown_part_number(self):
        code, _ = self.run_cli('show', '--part-number', 'missing')

        self.assertEqual(code, 1)

    def test_show_invalid_version(self):
        code, _ = self.run_cli('show', '--version', 'newest')

        self.assertEqual(code, 1)

    def test_ingest_and_export(self):
        sheet = os.path.join(self.workdir, 'sheet.csv')
        with open(sheet, 'w', encoding='utf-8') as f:
            f.write("PART NUMBER,PART NAME,ORDER,SHIP TO,ORDER DATE,N,N+1\n001234,FG 1,O1,JKT,Jul-24,10,20\n")

        code, output = self.run_cli('ingest', sheet, '--version', '20')
        self.assertEqual(code, 0)
        self.assertIn('Entries created: 2', output)
        self.assertIn('Versions used: 20', output)

        workbook = os.path.join(self.workdir, 'out.xlsx')
        code, _ = self.run_cli('export', '--output', workbook)
        self.assertEqual(code, 0)
        with open(workbook, 'rb') as f:
            self.assertEqual(f.read(2), b'PK')

    def test_ingest_reports_row_errors(self):
        sheet = os.path.join(self.workdir, 'sheet.csv')
        with open(sheet, 'w', encoding='utf-8') as f:
            f.write("PART NUMBER,PART NAME,ORDER,SHIP TO,ORDER DATE,N\n001234,FG 1,O1,JKT,Bad,10\n")

        code, output = self.run_cli('ingest', sheet)

        self.assertEqual(code, 1)
        self.assertIn('Row 2: Invalid month label: Bad', output)

    def test_ingest_missing_file(self):
        errors = io.StringIO()
        with redirect_stderr(errors):
            code, _ = self.run_cli('ingest', os.path.join(self.workdir, 'absent.csv'))

        self.assertEqual(code, 1)
        self.assertIn('Error:', errors.getvalue())
        self.assertIn('absent.csv', errors.getvalue())

    def test_invalid_database_url(self):
        errors = io.StringIO()
        with redirect_stderr(errors):
            code = main(['--database-url', 'not a database url', 'seed'])

        self.assertEqual(code, 1)
        self.assertIn('Invalid database URL', errors.getvalue())

    def test_serve_uses_api_settings(self):
        with patch('flask.Flask.run') as mock_run:
            code, _ = self.run_cli('serve', '--port', '8080')

        self.assertEqual(code, 0)
        mock_run.assert_called_once_with(host='127.0.0.1', port=8080, debug=False)


if __name__ == '__main__':
    unittest.main()
