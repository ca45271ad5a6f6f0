"""
Negative Keyword Control - JSON API
Flask app exposing the provisioning service (submission + read views).
"""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from flask import Flask, request

from nk_api.routes import bp as api_bp, error_response
from nk_core.cache import TTLCache
from nk_core.config_loader import load_client_config
from nk_core.errors import StorageUnavailableError
from nk_core.settings import Settings, get_settings
from nk_ledger.service import ProvisioningService


def build_service(settings: Settings) -> ProvisioningService:
    """Service on settings.db_path, with interval and batch limit from the client YAML."""
    config = load_client_config(settings.client_config_path)
    return ProvisioningService.from_db_path(
        settings.db_path,
        cache=TTLCache(default_ttl=settings.cache_ttl_seconds),
        max_keywords_per_request=config.provisioning.max_keywords_per_request,
        worker_interval_minutes=config.worker.interval_minutes,
    )


def create_app(service: ProvisioningService = None):
    """
    Create and configure Flask application.

    Args:
        service: ProvisioningService to expose (None = build one from settings)

    Returns:
        Flask app instance
    """
    app = Flask(__name__)
    settings = get_settings()

    if service is None:
        service = build_service(settings)
    app.config['PROVISIONING_SERVICE'] = service

    # Configure logging
    if not app.debug and not app.testing:
        logs_dir = Path(settings.log_dir)
        logs_dir.mkdir(parents=True, exist_ok=True)

        file_handler = RotatingFileHandler(
            str(logs_dir / 'api.log'),
            maxBytes=10240000,  # 10MB
            backupCount=10
        )
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]'
        ))
        file_handler.setLevel(logging.INFO)
        app.logger.addHandler(file_handler)

        app.logger.setLevel(logging.INFO)
        app.logger.info('API startup')

    app.register_blueprint(api_bp, url_prefix='/api')

    @app.errorhandler(404)
    def not_found_error(error):
        return error_response(f'Endpoint {request.path} does not exist', 404)

    @app.errorhandler(405)
    def method_not_allowed(error):
        return error_response(f'Method {request.method} not allowed for {request.path}', 405)

    @app.errorhandler(StorageUnavailableError)
    def storage_unavailable(error):
        app.logger.warning(f'Storage unavailable: {error}')
        return error_response(str(error), 503)

    @app.errorhandler(500)
    def internal_error(error):
        app.logger.error(f'Server Error: {error}')
        return error_response('Internal server error', 500)

    return app


def main():
    """Run the API server."""
    app = create_app()
    settings = get_settings()

    print("=" * 80)
    print("NEGATIVE KEYWORD CONTROL - API Starting")
    print("=" * 80)
    print(f"Mode:     {settings.mode}")
    print(f"Database: {settings.db_path}")
    print(f"Client:   {settings.client_config_path}")
    print()
    print("API running at: http://localhost:5000/api")
    print()
    print("Press CTRL+C to stop")
    print("=" * 80)
    print()

    app.run(host="0.0.0.0", port=5000, debug=False)


if __name__ == "__main__":
    main()
