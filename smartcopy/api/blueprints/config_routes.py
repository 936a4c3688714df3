"""
Configuration, settings and health check routes
"""
import asyncio
import logging

from flask import Blueprint, request, jsonify

from smartcopy.config import (
    CHUNK_MAX,
    DEBUG_MODE,
    DEFAULT_SOURCE_LANGUAGE,
    DICTIONARY_ENDPOINT,
    HISTORY_LIMIT,
    MYMEMORY_HOST,
    REQUEST_TIMEOUT,
    SETTINGS_KEYS,
)

# Setup logger for this module
logger = logging.getLogger('config_routes')
if DEBUG_MODE:
    logger.setLevel(logging.DEBUG)


def create_config_blueprint(services):
    """
    Create and configure the config blueprint

    Args:
        services: PeerServices instance
    """
    bp = Blueprint('config', __name__)

    @bp.route('/api/health', methods=['GET'])
    def health_check():
        """API health check endpoint"""
        return jsonify({
            "status": "ok",
            "message": "Smart Copy peer is running",
            "translation_endpoint": MYMEMORY_HOST,
            "dictionary_endpoint": DICTIONARY_ENDPOINT,
            "chunk_max": CHUNK_MAX,
            "timeout": REQUEST_TIMEOUT,
            "history_limit": HISTORY_LIMIT,
            "default_source_language": DEFAULT_SOURCE_LANGUAGE,
        })

    @bp.route('/api/settings', methods=['GET'])
    def get_settings():
        return jsonify(services.settings.current.to_mapping())

    @bp.route('/api/settings', methods=['PUT'])
    def put_settings():
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({"error": "Request body must be a JSON object"}), 400

        unknown = sorted(set(data) - set(SETTINGS_KEYS))
        if unknown:
            return jsonify({"error": f"Unknown settings: {', '.join(unknown)}"}), 400

        settings = asyncio.run(services.settings.update(**data))
        logger.debug(f"Settings updated: {settings.to_mapping()}")
        return jsonify(settings.to_mapping())

    return bp
