"""
JSON API routes for the barcode scanner
"""
from datetime import datetime, timezone

from flask import Blueprint, current_app, jsonify, request

from scanner_shared.exceptions import ConfigurationError, DatabaseError, ScannerError
from scanner_shared.logging import get_logger

logger = get_logger(__name__)

api_bp = Blueprint('api', __name__, url_prefix='/api')


def _services():
    return current_app.extensions['scanner']


def _json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ConfigurationError('Request body must be a JSON object')
    return data


@api_bp.errorhandler(ScannerError)
def handle_scanner_error(e):
    """ConfigurationError -> 400, DatabaseError -> 500, both as JSON."""
    logger.error(f"{request.method} {request.path} failed: {e.message}")
    return jsonify({'status': 'error', 'message': e.message}), e.status_code


@api_bp.route('/ping', methods=['GET'])
def ping():
    """API: Check availability."""
    return jsonify({
        'status': 'success',
        'message': 'API is available',
        'timestamp': datetime.now(timezone.utc).isoformat(),
    })


@api_bp.route('/settings', methods=['GET'])
def get_settings():
    """API: Current database name and type (never the password)."""
    summary = _services().settings.summary()
    return jsonify({'status': 'success', 'message': 'Connected to database', **summary})


@api_bp.route('/settings', methods=['POST'])
def save_settings():
    """API: Merge connection fields and table/column names into the settings."""
    _services().settings.save(_json_body())
    return jsonify({'status': 'success', 'message': 'Settings saved successfully'})


@api_bp.route('/product/<path:barcode>', methods=['GET'])
def get_product(barcode):
    """API: Look up a product by scanned barcode."""
    logger.info(f"Looking up product by barcode: {barcode}")
    product = _services().lookup.lookup_by_barcode(barcode)
    if product is None:
        return jsonify({'status': 'error', 'message': 'Product not found'}), 404
    return jsonify({'status': 'success', 'data': product.to_dict()})


@api_bp.route('/test-connection', methods=['POST'])
def test_connection():
    """API: Try an explicit connection without saving it."""
    try:
        _services().settings.test_connection(_json_body())
    except DatabaseError as e:
        logger.error(f"Connection test failed: {e.message}")
        return jsonify({
            'status': 'error',
            'message': f"Connection failed: {e.driver_message or 'Unknown error'}",
        }), 500
    return jsonify({'status': 'success', 'message': 'Connection successful'})
