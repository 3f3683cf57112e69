"""
Routes for the SKU catalogue.
"""
from flask import Blueprint, jsonify, request, current_app

from stair_forecast.api.forecast_routes import error_response
from stair_forecast.db import session_scope
from stair_forecast.services.sku_service import SKUService
from stair_forecast.utils.validation import validate_sku_payload

sku_bp = Blueprint('sku', __name__, url_prefix='/api/skus')


@sku_bp.route('', methods=['GET'])
def list_skus():
    """Get all SKUs ordered by part number."""
    try:
        with session_scope() as session:
            skus = SKUService(session).list_skus()

        return jsonify(skus)

    except Exception as e:
        current_app.logger.error(f"Error fetching SKUs: {e}")
        return error_response(e)


@sku_bp.route('', methods=['POST'])
def create_sku():
    """Create a SKU from partNumber, partName and order."""
    try:
        sku_request = validate_sku_payload(request.get_json(silent=True))

        with session_scope() as session:
            sku = SKUService(session).create_sku(
                sku_request.part_number, sku_request.part_name, sku_request.order
            )
            session.flush()
            body = sku.to_dict()

        return jsonify(body), 201

    except Exception as e:
        current_app.logger.error(f"Error creating SKU: {e}")
        return error_response(e)


@sku_bp.route('/<int:sku_id>/ship-tos', methods=['GET'])
def list_ship_tos(sku_id):
    """Get the ship-tos registered for a SKU."""
    try:
        with session_scope() as session:
            ship_tos = SKUService(session).list_ship_tos(sku_id)

        return jsonify(ship_tos)

    except Exception as e:
        current_app.logger.error(f"Error fetching ship-tos for SKU {sku_id}: {e}")
        return error_response(e)
