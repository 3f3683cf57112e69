"""
Routes for reading and recording forecast observations.

The GET endpoint returns the resolved staircase for a SKU; POST and PUT
record single or bulk observations.
"""
from flask import Blueprint, jsonify, request, current_app

from stair_forecast.db import session_scope
from stair_forecast.exceptions import StairForecastError, ValidationError
from stair_forecast.services.forecast_service import ALL_SHIP_TOS, ForecastService
from stair_forecast.utils.validation import parse_revision, validate_forecast_payload

forecast_bp = Blueprint('forecast', __name__, url_prefix='/api/forecast')

TRUE_VALUES = ('1', 'true', 'yes', 'on')


def error_response(error):
    """Build the JSON error body and status for an exception."""
    if isinstance(error, StairForecastError):
        body = error.to_dict()
        body['type'] = body.pop('error')
        body.update({'success': False, 'error': error.message})
        return jsonify(body), error.http_status

    current_app.logger.error(f"Unexpected error: {error}")
    return jsonify({
        'success': False,
        'error': str(error)
    }), 500


def parse_query_filters(args):
    """Read the SKU / ship-to / version / mode filters shared by read endpoints."""
    raw_sku_id = args.get('skuId') or args.get('sku_id')
    sku_id = None
    if raw_sku_id:
        sku_id = parse_revision(raw_sku_id)
        if sku_id is None:
            raise ValidationError(f"Invalid skuId parameter: {raw_sku_id}")

    ship_to = args.get('shipTo') or args.get('ship_to') or ALL_SHIP_TOS
    by_ship_to = (args.get('byShipTo') or args.get('by_ship_to') or '').lower() in TRUE_VALUES

    return {
        'sku_id': sku_id,
        'ship_to': ship_to,
        'version': args.get('version'),
        'by_ship_to': by_ship_to
    }


@forecast_bp.route('', methods=['GET'])
def get_forecast():
    """Get the staircase for the requested SKU, ship-to and version."""
    try:
        filters = parse_query_filters(request.args)

        with session_scope() as session:
            result = ForecastService(session).get_staircase(**filters)

        result['success'] = True
        return jsonify(result)

    except Exception as e:
        current_app.logger.error(f"Error fetching forecast data: {e}")
        return error_response(e)


@forecast_bp.route('', methods=['POST'])
def create_forecast_entry():
    """Create or update a single forecast observation."""
    try:
        entry_request = validate_forecast_payload(request.get_json(silent=True))

        with session_scope() as session:
            entry = ForecastService(session).upsert_entry(entry_request)

        entry['success'] = True
        return jsonify(entry), 201

    except Exception as e:
        current_app.logger.error(f"Error creating/updating forecast data: {e}")
        return error_response(e)


@forecast_bp.route('', methods=['PUT'])
def bulk_update_forecast():
    """Create or update a batch of forecast observations."""
    try:
        body = request.get_json(silent=True)
        if not isinstance(body, dict):
            raise ValidationError("Invalid data format. Expected array of forecast entries")

        with session_scope() as session:
            result = ForecastService(session).bulk_upsert(body.get('data'))

        return jsonify({
            'success': True,
            'message': 'Forecast data updated successfully',
            'count': result['count'],
            'errors': result['errors']
        })

    except Exception as e:
        current_app.logger.error(f"Error bulk updating forecast data: {e}")
        return error_response(e)
