"""
Message routes: the dispatcher peer's request/response endpoint
"""
import asyncio
import logging

from flask import Blueprint, request, jsonify

from smartcopy.core.exceptions import InvalidMessageError
from ..websocket import emit_update

logger = logging.getLogger(__name__)


def create_message_blueprint(services, socketio=None):
    """
    Create and configure the message blueprint

    Args:
        services: PeerServices instance
        socketio: Optional SocketIO instance used to broadcast results
    """
    bp = Blueprint('message', __name__)

    @bp.route('/api/message', methods=['POST'])
    def post_message():
        """Answer a translate or define message"""
        message = request.get_json(silent=True)
        if not isinstance(message, dict):
            return jsonify({"error": "Request body must be a JSON object"}), 400

        try:
            response = asyncio.run(services.process(message))
        except InvalidMessageError as e:
            return jsonify({"error": e.message}), 400

        if socketio is not None:
            emit_update(socketio, response.get("type", "message-result"), response)
        return jsonify(response)

    return bp
