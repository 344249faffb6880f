"""
Barcode Scanner App - Flask Application (PostgreSQL or SQL Server)
Port: 5000
"""
import time
from dataclasses import dataclass
from typing import Optional

from flask import Flask, g, jsonify, request
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from scanner_shared.config import AppConfig
from scanner_shared.database.executor import QueryExecutor
from scanner_shared.logging import get_logger, mask_secrets
from scanner_shared.settings_store import SettingsStore
from scanner_app.routes import api_bp, pages_bp
from scanner_app.services.product_lookup_service import ProductLookupService
from scanner_app.services.settings_service import SettingsService

logger = get_logger('scanner_app')


@dataclass
class ScannerServices:
    """Services shared by the request handlers of one app instance."""
    settings_store: SettingsStore
    executor: QueryExecutor
    lookup: ProductLookupService
    settings: SettingsService


def _register_request_logging(app: Flask) -> None:
    @app.before_request
    def log_request():
        g.request_started = time.monotonic()
        logger.info(f"{request.method} {request.path}")
        body = request.get_json(silent=True) if request.is_json else None
        if isinstance(body, dict) and body:
            logger.info(f"Request body: {mask_secrets(body)}")

    @app.after_request
    def log_response(response):
        started = g.get('request_started')
        if started is not None:
            duration = (time.monotonic() - started) * 1000
            logger.info(f"Response {response.status_code} completed in {duration:.0f}ms")
        return response


def _register_error_handlers(app: Flask, config: AppConfig) -> None:
    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        if e.code is None or e.code < 400:
            # routing redirects keep their own response
            return e
        return jsonify({'status': 'error', 'message': e.description}), e.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(e):
        logger.exception(f"Unhandled error on {request.method} {request.path}")
        body = {'status': 'error', 'message': 'Internal server error'}
        if not config.is_production:
            body['error'] = str(e)
        return jsonify(body), 500


def create_app(config: Optional[AppConfig] = None,
               settings_store: Optional[SettingsStore] = None,
               executor: Optional[QueryExecutor] = None) -> Flask:
    config = config or AppConfig()
    app = Flask(__name__)
    app.secret_key = config.secret_key
    app.config['API_BASE_URL'] = config.api_base_url.rstrip('/') or '/api'

    settings_store = settings_store or SettingsStore(path=config.settings_file)
    executor = executor or QueryExecutor(settings_store)
    app.extensions['scanner'] = ScannerServices(
        settings_store=settings_store,
        executor=executor,
        lookup=ProductLookupService(settings_store, executor),
        settings=SettingsService(settings_store, executor),
    )

    _register_request_logging(app)
    CORS(
        app,
        origins=config.cors_origins,
        supports_credentials=True,
        methods=['GET', 'POST', 'PUT', 'DELETE', 'OPTIONS'],
        allow_headers=['Content-Type', 'Authorization'],
    )
    _register_error_handlers(app, config)

    app.register_blueprint(api_bp)
    app.register_blueprint(pages_bp)

    connection = settings_store.read().connection
    logger.info("===== BARCODE SCANNER API SERVER =====")
    logger.info(f"Environment: {config.environment}")
    logger.info(f"Database type: {connection.db_type}")
    logger.info(f"Database server: {connection.server or 'Not configured'}")
    logger.info(f"Database name: {connection.database or 'Not configured'}")
    logger.info(f"CORS enabled for: {', '.join(config.cors_origins) or 'none'}")
    return app


def main():
    config = AppConfig()
    app = create_app(config)
    app.run(host=config.host, port=config.port, debug=config.debug)


if __name__ == '__main__':
    main()
