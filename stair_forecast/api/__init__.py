"""
Flask application factory for the Stair Forecast API.
"""
from flask import Flask

from stair_forecast.db import db
from stair_forecast.logging_setup import get_logger


def create_app(connection_string=None, create_tables=True):
    """Create the Flask application.

    Args:
        connection_string: Optional database URL (defaults to configuration)
        create_tables: Create missing tables on start-up

    Returns:
        Configured Flask app
    """
    from stair_forecast.api.forecast_routes import forecast_bp
    from stair_forecast.api.sku_routes import sku_bp
    from stair_forecast.api.upload_routes import upload_bp

    app = Flask(__name__)
    app.json.ensure_ascii = False
    app.json.sort_keys = False

    db.initialize(connection_string)
    if create_tables:
        db.create_all_tables()

    app.register_blueprint(forecast_bp)
    app.register_blueprint(sku_bp)
    app.register_blueprint(upload_bp)

    @app.teardown_appcontext
    def remove_session(exception=None):
        db.session.remove()

    get_logger('api').info("Stair Forecast API initialized")
    return app
