"""
Flask routes orchestrator for the dispatcher peer

Registers the route blueprints:

- blueprints/config_routes.py: Health check and user settings
- blueprints/message_routes.py: translate / define messages
- blueprints/history_routes.py: History log management
"""
import logging

from flask import jsonify

from .blueprints import (
    create_config_blueprint,
    create_message_blueprint,
    create_history_blueprint
)

logger = logging.getLogger(__name__)


def configure_routes(app, services, socketio=None):
    """
    Configure Flask routes by registering all blueprints

    Args:
        app: Flask application instance
        services: PeerServices instance
        socketio: Optional SocketIO instance for result broadcasts
    """
    app.register_blueprint(create_config_blueprint(services))
    app.register_blueprint(create_message_blueprint(services, socketio))
    app.register_blueprint(create_history_blueprint(services))

    _register_error_handlers(app)


def _register_error_handlers(app):
    """Register global error handlers"""

    @app.errorhandler(404)
    def route_not_found(error):
        return jsonify({"error": "API Endpoint not found"}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({"error": "Method not allowed"}), 405

    @app.errorhandler(500)
    def internal_server_error(error):
        logger.exception(f"INTERNAL SERVER ERROR: {error}")
        return jsonify({"error": "Internal server error", "details": str(error)}), 500
