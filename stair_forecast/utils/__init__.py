from .validation import (
    ForecastEntryRequest, SKURequest, parse_number, parse_revision,
    validate_forecast_payload, validate_sku_payload
)

__all__ = [
    'ForecastEntryRequest',
    'SKURequest',
    'parse_number',
    'parse_revision',
    'validate_forecast_payload',
    'validate_sku_payload'
]
