# stair_forecast/services/ingest_service.py
import csv
import re
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from stair_forecast.config import config
from stair_forecast.core.month_label import decode, encode
from stair_forecast.core.relative_month import is_relative_header, resolve
from stair_forecast.exceptions import (
    InvalidLabelError, MissingRequiredColumn, RowLevelIngestError, ValidationError
)
from stair_forecast.logging_setup import get_logger, logger as log_manager
from stair_forecast.services.forecast_service import ForecastService
from stair_forecast.services.sku_service import SKUService
from stair_forecast.utils.validation import parse_number, parse_revision

logger = get_logger(__name__)

PART_NUMBER = 'PART NUMBER'
PART_NAME = 'PART NAME'
ORDER = 'ORDER'
SHIP_TO = 'SHIP TO'
SHIP_TO_NAME = 'SHIP TO NAME'
ORDER_DATE = 'ORDER DATE'
ORDER_VERSION = 'ORDER VERSION'

LEADING_COLUMNS = (PART_NUMBER, PART_NAME, ORDER, SHIP_TO, SHIP_TO_NAME, ORDER_DATE, ORDER_VERSION)
REQUIRED_COLUMNS = (SHIP_TO, ORDER_DATE)

# Positions used when the part columns carry no header of their own
_POSITIONAL_DEFAULTS = {PART_NUMBER: 0, PART_NAME: 1, ORDER: 2}

EMPTY_CELLS = ('', '-')


def normalize_header(header: str) -> str:
    return re.sub(r'\s+', ' ', header.strip().lstrip('\ufeff')).upper()


class UploadLayout:
    """Column positions of an upload file, derived from its header row."""

    def __init__(self, headers: List[str]):
        self.headers = [header.strip().lstrip('\ufeff') for header in headers]
        normalized = [normalize_header(header) for header in headers]

        self.index = {}
        for name in LEADING_COLUMNS:
            if name in normalized:
                self.index[name] = normalized.index(name)

        for name in REQUIRED_COLUMNS:
            if name not in self.index:
                raise MissingRequiredColumn(name)

        taken = set(self.index.values())
        for name, position in _POSITIONAL_DEFAULTS.items():
            if name not in self.index and position not in taken:
                self.index[name] = position

        self.month_start = max(self.index.values()) + 1
        self.month_headers = self.headers[self.month_start:]
        self._absolute_months = {}

    def cell(self, values: List[str], name: str) -> Optional[str]:
        position = self.index.get(name)
        if position is None or position >= len(values):
            return None
        return values[position] or None

    def target_month(self, header: str, order_month):
        """Absolute month for a month column; offset headers move with the order date."""
        if is_relative_header(header):
            return resolve(header, order_month)
        if header not in self._absolute_months:
            self._absolute_months[header] = decode(header)
        return self._absolute_months[header]


class IngestService:
    """Service for bulk ingestion of forecast sheets in CSV form."""

    def __init__(self, session: Session):
        """Initialize the ingest service.

        Args:
            session: Database session
        """
        self.session = session
        self.sku_service = SKUService(session)
        self.forecast_service = ForecastService(session)

    def ingest_file(self, path, default_version: Optional[int] = None) -> Dict:
        """Ingest a CSV file from disk."""
        text = Path(path).read_text(encoding='utf-8-sig')
        return self.ingest_csv(text, default_version)

    def ingest_csv(self, text: str, default_version: Optional[int] = None) -> Dict:
        """Ingest a forecast sheet.

        The header declares the leading columns (part number, part name,
        order, ship-to, optional ship-to name, order date, optional order
        version) followed by one column per target month, either an
        absolute label ('Okt-24') or an offset from the order date ('N+2').

        Args:
            text: CSV content
            default_version: Revision for rows without an ORDER VERSION value

        Returns:
            Dictionary with created/updated counts and per-row errors

        Raises:
            ValidationError: If the file has no data rows or the default version is invalid
            MissingRequiredColumn: If SHIP TO or ORDER DATE is missing from the header
        """
        if default_version is None:
            default_version = config.ingest_config['default_version']
        if parse_revision(default_version) is None:
            raise ValidationError(f"Invalid version value provided: {default_version}")
        default_version = parse_revision(default_version)

        lines = [(number, line) for number, line in enumerate(text.splitlines(), start=1) if line.strip()]
        if len(lines) < 2:
            raise ValidationError("File must contain at least a header and one data row")

        header_line = next(csv.reader([lines[0][1]]))
        layout = UploadLayout(header_line)

        results = {
            'skus_created': 0,
            'ship_tos_created': 0,
            'forecast_entries_created': 0,
            'forecast_entries_updated': 0,
            'rows_processed': 0,
            'errors': []
        }
        versions_used = set()

        with log_manager.batch(
            'forecast_upload',
            {'rows': len(lines) - 1, 'default_version': default_version}
        ) as totals:
            for line_number, line in lines[1:]:
                values = [value.strip() for value in next(csv.reader([line]))]
                cell_errors = []
                try:
                    with self.session.begin_nested():
                        version, counts = self._ingest_row(layout, values, line_number, default_version, cell_errors)
                    versions_used.add(version)
                    for key, count in counts.items():
                        results[key] += count
                    results['rows_processed'] += 1
                except RowLevelIngestError as e:
                    results['errors'].append({'row': line_number, 'message': e.message})
                except SQLAlchemyError as e:
                    logger.error(f"Database error on row {line_number}: {e}")
                    results['errors'].append({'row': line_number, 'message': 'Unable to store row'})

                results['errors'].extend(cell_errors)

            results['versions_used'] = sorted(versions_used)
            results['default_version'] = default_version
            totals.update((key, value) for key, value in results.items() if key != 'errors')

        if results['errors']:
            logger.warning(f"Upload finished with {len(results['errors'])} row errors")

        return results

    def _ingest_row(
        self,
        layout: UploadLayout,
        values: List[str],
        line_number: int,
        default_version: int,
        cell_errors: List[Dict]
    ) -> Tuple[int, Dict[str, int]]:
        """Store one data row.

        Returns:
            Tuple (revision the row was recorded under, created/updated counts)
        """
        counts = {
            'skus_created': 0,
            'ship_tos_created': 0,
            'forecast_entries_created': 0,
            'forecast_entries_updated': 0
        }
        if len(values) < layout.month_start + 1:
            raise RowLevelIngestError("Insufficient columns", row=line_number)

        part_number = layout.cell(values, PART_NUMBER)
        if not part_number:
            raise RowLevelIngestError("Missing part number", row=line_number)

        order_date = layout.cell(values, ORDER_DATE)
        if not order_date:
            raise RowLevelIngestError("Missing order date", row=line_number)

        try:
            order_month = decode(order_date)
        except InvalidLabelError as e:
            raise RowLevelIngestError(e.message, row=line_number)

        version = default_version
        version_text = layout.cell(values, ORDER_VERSION)
        if version_text:
            version = parse_revision(version_text)
            if version is None:
                raise RowLevelIngestError(f"Invalid order version '{version_text}'", row=line_number)

        cells = self._parse_month_cells(layout, values, order_month, line_number, cell_errors)

        sku, created = self.sku_service.get_or_create_sku(
            part_number, layout.cell(values, PART_NAME), layout.cell(values, ORDER)
        )
        if created:
            counts['skus_created'] += 1

        ship_to, created = self.sku_service.get_or_create_ship_to(
            sku, layout.cell(values, SHIP_TO), layout.cell(values, SHIP_TO_NAME)
        )
        if created:
            counts['ship_tos_created'] += 1

        for target_month, value in cells:
            _, created = self.forecast_service.record_observation(
                sku, ship_to, order_month, target_month, version, value
            )
            if created:
                counts['forecast_entries_created'] += 1
            else:
                counts['forecast_entries_updated'] += 1

        return version, counts

    @staticmethod
    def _parse_month_cells(layout, values, order_month, line_number, cell_errors) -> List[Tuple]:
        cells = []
        for header, raw in zip(layout.month_headers, values[layout.month_start:]):
            if raw in EMPTY_CELLS:
                continue

            value = parse_number(raw)
            if value is None:
                cell_errors.append({
                    'row': line_number,
                    'message': f"Invalid value '{raw}' in column '{header}'"
                })
                continue

            try:
                target_month = layout.target_month(header, order_month)
            except InvalidLabelError as e:
                cell_errors.append({'row': line_number, 'message': e.message})
                continue

            cells.append((target_month, value))

        logger.debug(f"Row {line_number}: {len(cells)} month values for order {encode(order_month)}")
        return cells
