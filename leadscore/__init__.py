"""
Flask application factory.

Creates and configures the Flask app, registers all blueprints and the JSON
error handlers.
"""
import logging

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException, RequestEntityTooLarge

logger = logging.getLogger('leadscore.app')


def _error_response(message, status_code, details=None):
    body = {'status': 'error', 'message': message}
    if details:
        body['details'] = details
    return jsonify(body), status_code


def create_app():
    """Create and configure the Flask application."""
    from leadscore.config import MAX_UPLOAD_BYTES, SECRET_KEY
    from leadscore.errors import LeadScoringError
    from leadscore.logging_config import configure_logging

    app = Flask(__name__)

    configure_logging(app)

    app.secret_key = SECRET_KEY
    # Multipart overhead on top of the file itself
    app.config['MAX_CONTENT_LENGTH'] = MAX_UPLOAD_BYTES + 64 * 1024

    # ── Error handlers ──────────────────────────────────────────────────
    @app.errorhandler(LeadScoringError)
    def handle_service_error(e):
        if e.status_code >= 500:
            logger.error("Request failed: %s", e.message, exc_info=e)
        else:
            logger.info("Request rejected (%d): %s", e.status_code, e.message)
        return _error_response(e.message, e.status_code, getattr(e, 'details', None))

    @app.errorhandler(RequestEntityTooLarge)
    def handle_too_large(e):
        return _error_response('File size too large', 413)

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        return _error_response(e.description, e.code)

    @app.errorhandler(Exception)
    def handle_unexpected(e):
        logger.error("Unhandled error", exc_info=e)
        return _error_response('Internal Server Error', 500)

    # Register blueprints
    from leadscore.routes.health import bp as health_bp
    from leadscore.routes.leads import bp as leads_bp
    from leadscore.routes.offers import bp as offers_bp
    from leadscore.routes.results import bp as results_bp
    from leadscore.routes.scores import bp as scores_bp

    app.register_blueprint(health_bp)
    app.register_blueprint(leads_bp)
    app.register_blueprint(offers_bp)
    app.register_blueprint(scores_bp)
    app.register_blueprint(results_bp)

    # Initialize circuit breakers for external API services
    from leadscore.extensions import redis_client
    from leadscore.services.circuit_breaker import init_breakers
    init_breakers(redis_client)

    # Import models so Base.metadata knows about them.
    # Schema is managed by Alembic; no create_all() here.
    import importlib
    importlib.import_module('leadscore.models.offer')
    importlib.import_module('leadscore.models.lead')

    return app
