"""Validation of inbound request payloads.

JSON bodies are checked once here and turned into request records, so the
services only ever see validated values.
"""
import math
from typing import Any, Dict, NamedTuple, Optional

from stair_forecast.config import config
from stair_forecast.core.month_label import CalendarMonth, decode
from stair_forecast.core.relative_month import resolve
from stair_forecast.exceptions import ValidationError


class ForecastEntryRequest(NamedTuple):
    sku_id: Optional[int]
    part_number: Optional[str]
    part_name: Optional[str]
    order: Optional[str]
    ship_to: str
    ship_to_name: Optional[str]
    order_month: CalendarMonth
    month: CalendarMonth
    version: int
    value: float


class SKURequest(NamedTuple):
    part_number: str
    part_name: str
    order: str


def _pick(payload: Dict[str, Any], *keys):
    for key in keys:
        if key in payload and payload[key] is not None:
            return payload[key]
    return None


def _text(value) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def parse_number(value) -> Optional[float]:
    """Parse a numeric cell; None when the value is not a finite number."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = _text(value)
        if text is None:
            return None
        try:
            number = float(text.replace(',', ''))
        except ValueError:
            return None
    return number if math.isfinite(number) else None


def parse_revision(value) -> Optional[int]:
    """Parse a revision number; None unless it is a non-negative integer."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 0 else None
    text = _text(value)
    if text is None or not text.isdigit():
        return None
    return int(text)


def validate_forecast_payload(payload: Dict[str, Any]) -> ForecastEntryRequest:
    """Validate a single forecast observation body.

    Accepts both the camelCase keys used by the web client (skuId,
    orderDate, shipTo) and snake_case keys.

    Raises:
        ValidationError: With a field -> message mapping in ``details``
        InvalidLabelError: If a month label cannot be parsed
    """
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")

    errors = {}

    raw_sku_id = _pick(payload, 'skuId', 'sku_id')
    part_number = _text(_pick(payload, 'partNumber', 'part_number'))
    sku_id = None
    if raw_sku_id is not None:
        sku_id = parse_revision(raw_sku_id)
        if sku_id is None:
            errors['skuId'] = f"Invalid SKU id '{raw_sku_id}'"
    elif part_number is None:
        errors['skuId'] = 'skuId or partNumber is required'

    order_date = _text(_pick(payload, 'orderDate', 'order_date'))
    if order_date is None:
        errors['orderDate'] = 'orderDate is required'

    month = _text(_pick(payload, 'month'))
    if month is None:
        errors['month'] = 'month is required'

    raw_version = _pick(payload, 'version')
    version = config.ingest_config['default_version'] if raw_version is None else parse_revision(raw_version)
    if version is None:
        errors['version'] = f"Invalid version '{raw_version}'"

    raw_value = _pick(payload, 'value')
    value = parse_number(raw_value)
    if value is None:
        errors['value'] = 'value is required' if raw_value is None else f"Invalid value '{raw_value}'"

    if errors:
        raise ValidationError(
            f"Missing or invalid fields: {', '.join(sorted(errors))}",
            details=errors
        )

    order_month = decode(order_date)
    target_month = resolve(month, order_month)

    return ForecastEntryRequest(
        sku_id=sku_id,
        part_number=part_number,
        part_name=_text(_pick(payload, 'partName', 'part_name')),
        order=_text(_pick(payload, 'order')),
        ship_to=_text(_pick(payload, 'shipTo', 'ship_to')) or config.ingest_config['default_ship_to'],
        ship_to_name=_text(_pick(payload, 'shipToName', 'ship_to_name')),
        order_month=order_month,
        month=target_month,
        version=version,
        value=value
    )


def validate_sku_payload(payload: Dict[str, Any]) -> SKURequest:
    """Validate a SKU creation body; all three fields are required."""
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")

    part_number = _text(_pick(payload, 'partNumber', 'part_number'))
    part_name = _text(_pick(payload, 'partName', 'part_name'))
    order = _text(_pick(payload, 'order'))

    missing = [name for name, value in
               (('partNumber', part_number), ('partName', part_name), ('order', order))
               if value is None]
    if missing:
        raise ValidationError(
            f"Missing required fields: {', '.join(missing)}",
            details={'missing': missing}
        )

    return SKURequest(part_number, part_name, order)
