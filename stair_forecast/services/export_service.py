# stair_forecast/services/export_service.py
import io
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd
from sqlalchemy.orm import Session

from stair_forecast.core.delta import compute_deltas
from stair_forecast.core.month_label import encode
from stair_forecast.core.staircase import build_staircase
from stair_forecast.core.version_resolution import LATEST
from stair_forecast.exceptions import ExportError
from stair_forecast.logging_setup import get_logger
from stair_forecast.models import SKU
from stair_forecast.services.forecast_service import ALL_SHIP_TOS, ForecastService

logger = get_logger(__name__)

FORECAST_SHEET = 'Forecast Data'
DELTA_SHEET = 'Delta Data'
DELTA_SUFFIX = ' (Δ)'

# Excel column widths (characters) for the leading columns
COLUMN_WIDTHS = {
    'PART NUMBER': 15,
    'PART NAME': 30,
    'ORDER': 10,
    'SHIP TO': 12,
    'ORDER DATE': 12
}
MONTH_COLUMN_WIDTH = 12

class ExportService:
    """Service for exporting staircases and their deltas as a workbook."""

    def __init__(self, session: Session):
        """Initialize the export service.

        Args:
            session: Database session
        """
        self.session = session
        self.forecast_service = ForecastService(session)

    def build_frames(
        self,
        sku_id: Optional[int] = None,
        ship_to: Optional[str] = ALL_SHIP_TOS,
        version: Any = LATEST,
        by_ship_to: bool = False
    ) -> Tuple[pd.DataFrame, pd.DataFrame]:
        """Build the raw-value and delta blocks.

        Every SKU gets its own staircase, all aligned on one month axis, so
        deltas never compare rows of different SKUs.

        Returns:
            Tuple (forecast frame, delta frame)
        """
        _, resolved = self.forecast_service.resolve_observations(sku_id, ship_to, version)
        observations = [observation for _, observation in resolved]
        axis = sorted({observation.target_month for observation in observations})
        month_labels = [encode(month) for month in axis]

        by_sku: Dict[int, List] = {}
        for observation in observations:
            by_sku.setdefault(observation.sku_id, []).append(observation)

        skus = []
        if by_sku:
            skus = self.session.query(SKU).filter(SKU.id.in_(list(by_sku))).order_by(SKU.part_number.asc()).all()

        leading = ['PART NUMBER', 'PART NAME', 'ORDER']
        if by_ship_to:
            leading.append('SHIP TO')
        leading.append('ORDER DATE')

        forecast_records = []
        delta_records = []
        for sku in skus:
            staircase = build_staircase(by_sku[sku.id], by_ship_to, columns=axis)
            deltas = compute_deltas(staircase.rows)

            for row, row_deltas in zip(staircase.rows, deltas):
                key = {
                    'PART NUMBER': sku.part_number,
                    'PART NAME': sku.part_name,
                    'ORDER': sku.order
                }
                if by_ship_to:
                    key['SHIP TO'] = row.ship_to.code if row.ship_to is not None else None
                key['ORDER DATE'] = row.label

                forecast_record = dict(key)
                forecast_record.update(zip(month_labels, row.values))
                forecast_records.append(forecast_record)

                delta_record = dict(key)
                delta_record.update(zip((label + DELTA_SUFFIX for label in month_labels), row_deltas))
                delta_records.append(delta_record)

        forecast_df = pd.DataFrame(forecast_records, columns=leading + month_labels)
        delta_df = pd.DataFrame(delta_records, columns=leading + [label + DELTA_SUFFIX for label in month_labels])

        logger.info(f"Prepared export with {len(forecast_df)} staircase rows for {len(skus)} SKUs")
        return forecast_df, delta_df

    def export_workbook(
        self,
        sku_id: Optional[int] = None,
        ship_to: Optional[str] = ALL_SHIP_TOS,
        version: Any = LATEST,
        by_ship_to: bool = False
    ) -> bytes:
        """Render the two blocks as an .xlsx workbook.

        Returns:
            Workbook content as bytes
        """
        forecast_df, delta_df = self.build_frames(sku_id, ship_to, version, by_ship_to)
        return write_workbook({FORECAST_SHEET: forecast_df, DELTA_SHEET: delta_df})


def write_workbook(frames: Dict[str, pd.DataFrame]) -> bytes:
    """Write {sheet name: frame} to an in-memory workbook."""
    output = io.BytesIO()
    try:
        with pd.ExcelWriter(output, engine='xlsxwriter') as writer:
            for sheet_name, frame in frames.items():
                frame.to_excel(writer, sheet_name=sheet_name, index=False)

                worksheet = writer.sheets[sheet_name]
                for idx, column in enumerate(frame.columns):
                    worksheet.set_column(idx, idx, COLUMN_WIDTHS.get(column, MONTH_COLUMN_WIDTH))
    except (OSError, ValueError) as e:
        raise ExportError(f"Unable to write workbook: {e}")

    return output.getvalue()


def export_filename(today: Optional[date] = None) -> str:
    return f"stair_forecast_data_{(today or date.today()).isoformat()}.xlsx"
