"""
Flask dispatcher peer for Smart Copy with WebSocket support
"""
import os
import sys
import asyncio
import logging
from datetime import datetime
from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO

from smartcopy.config import (
    DEBUG_MODE,
    DICTIONARY_ENDPOINT,
    HOST,
    MYMEMORY_APP_ID,
    MYMEMORY_HOST,
    PORT,
    STORE_PATH
)
from smartcopy.api.handlers import PeerServices
from smartcopy.api.routes import configure_routes
from smartcopy.api.websocket import configure_websocket_handlers, emit_update
from smartcopy.core.events import EventBus
from smartcopy.persistence.storage import SQLiteStore
from smartcopy.utils.unified_logger import setup_web_logger

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if DEBUG_MODE else logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Reduce verbosity of werkzeug (Flask HTTP server logs)
logging.getLogger('werkzeug').setLevel(logging.WARNING)


def validate_configuration():
    """Validate required configuration before starting server"""
    issues = []

    if not PORT or not isinstance(PORT, int):
        issues.append("PORT must be a valid integer")
    if not MYMEMORY_HOST:
        issues.append("MYMEMORY_HOST must be configured")
    if not DICTIONARY_ENDPOINT:
        issues.append("DICTIONARY_ENDPOINT must be configured")

    if issues:
        logger.error("=" * 70)
        logger.error("CONFIGURATION ERROR")
        logger.error("=" * 70)
        for issue in issues:
            logger.error(f"   - {issue}")
        logger.error("   Create a .env file from .env.example, then restart")
        logger.error("=" * 70)
        raise ValueError("Configuration validation failed. See errors above.")

    if MYMEMORY_APP_ID.endswith("@example.com"):
        logger.warning("MYMEMORY_APP_ID is the placeholder address; the anonymous daily quota applies")

    logger.info("Configuration validated successfully")


def create_app(services=None, store_path=STORE_PATH):
    """
    Build the Flask app, its SocketIO wrapper and the peer services

    Args:
        services: Optional pre-built PeerServices (tests inject one over a MemoryStore)
        store_path: SQLite store path used when services is not given

    Returns:
        Tuple (app, socketio, services)
    """
    if services is None:
        services = PeerServices(SQLiteStore(store_path), event_bus=EventBus())

    app = Flask(__name__)
    CORS(app)
    socketio = SocketIO(app, cors_allowed_origins="*")

    if services.log_callback is None:
        # Mirror dispatcher and transport logs to connected surfaces
        web_logger = setup_web_logger(lambda entry: emit_update(socketio, 'log_update', entry))
        services.log_callback = web_logger.create_legacy_callback()

    # Settings snapshot is read once here and then follows store notifications
    asyncio.run(services.settings.load())

    configure_routes(app, services, socketio)
    configure_websocket_handlers(socketio, services.event_bus)
    return app, socketio, services


def main():
    validate_configuration()

    data_dir = os.path.dirname(STORE_PATH)
    try:
        if data_dir:
            os.makedirs(data_dir, exist_ok=True)
        logger.info(f"Store '{STORE_PATH}' is ready")
    except OSError as e:
        logger.error(f"Critical error: Unable to create data folder '{data_dir}': {e}")
        sys.exit(1)

    app, socketio, _ = create_app()

    logger.info("=" * 60)
    logger.info(f"SMART COPY PEER (Version {datetime.now().strftime('%Y%m%d-%H%M')})")
    logger.info("=" * 60)
    logger.info(f"   - Translation endpoint: {MYMEMORY_HOST}")
    logger.info(f"   - Dictionary endpoint: {DICTIONARY_ENDPOINT}")
    logger.info(f"   - API: http://{HOST}:{PORT}/api/")
    logger.info(f"   - Health Check: http://{HOST}:{PORT}/api/health")
    logger.info("")
    logger.info("Press Ctrl+C to stop the server")

    if HOST == '0.0.0.0':
        logger.warning("Server is binding to 0.0.0.0 (all network interfaces)")

    socketio.run(app, debug=DEBUG_MODE, host=HOST, port=PORT, allow_unsafe_werkzeug=True)


if __name__ == '__main__':
    main()
