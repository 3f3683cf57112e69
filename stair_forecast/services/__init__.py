from .sku_service import SKUService
from .forecast_service import ForecastService
from .ingest_service import IngestService
from .export_service import ExportService

__all__ = [
    'SKUService',
    'ForecastService',
    'IngestService',
    'ExportService'
]
