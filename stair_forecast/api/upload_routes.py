"""
Routes for sheet upload and workbook export.
"""
import io

from flask import Blueprint, jsonify, request, current_app, send_file

from stair_forecast.api.forecast_routes import error_response, parse_query_filters
from stair_forecast.config import config
from stair_forecast.db import session_scope
from stair_forecast.exceptions import ValidationError
from stair_forecast.services.export_service import ExportService, export_filename
from stair_forecast.services.ingest_service import IngestService
from stair_forecast.utils.validation import parse_revision

upload_bp = Blueprint('upload', __name__, url_prefix='/api')

XLSX_MIMETYPE = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'


@upload_bp.route('/upload', methods=['POST'])
def upload_forecast():
    """Ingest an uploaded CSV sheet.

    Form fields: ``file`` (required) and ``version`` (default revision for
    rows without an ORDER VERSION value).
    """
    try:
        raw_version = request.form.get('version')
        default_version = config.ingest_config['default_version']
        if raw_version:
            default_version = parse_revision(raw_version)
            if default_version is None:
                raise ValidationError('Invalid version value provided')

        upload = request.files.get('file')
        if upload is None:
            raise ValidationError('No file provided')

        text = upload.read().decode('utf-8-sig')

        with session_scope() as session:
            results = IngestService(session).ingest_csv(text, default_version)

        return jsonify({
            'success': True,
            'message': 'File processed successfully',
            'results': results,
            'version': default_version,
            'versions_used': results['versions_used']
        })

    except UnicodeDecodeError:
        return error_response(ValidationError('File must be UTF-8 encoded text'))
    except Exception as e:
        current_app.logger.error(f"Error processing upload: {e}")
        return error_response(e)


@upload_bp.route('/export', methods=['GET'])
def export_forecast():
    """Download the staircase and delta blocks as an .xlsx workbook."""
    try:
        filters = parse_query_filters(request.args)

        with session_scope() as session:
            content = ExportService(session).export_workbook(**filters)

        return send_file(
            io.BytesIO(content),
            mimetype=XLSX_MIMETYPE,
            as_attachment=True,
            download_name=export_filename()
        )

    except Exception as e:
        current_app.logger.error(f"Error exporting forecast data: {e}")
        return error_response(e)
