"""
WebSocket handlers for real-time communication
"""
import logging

from flask import request
from flask_socketio import emit

from smartcopy.core.events import EventType

logger = logging.getLogger(__name__)


def configure_websocket_handlers(socketio, event_bus=None):
    """Configure WebSocket event handlers and forward shared-state events"""

    @socketio.on('connect')
    def handle_websocket_connect():
        logger.info(f'WebSocket client connected: {request.sid}')
        emit('connected', {'message': 'Connected to Smart Copy peer via WebSocket'})

    @socketio.on('disconnect')
    def handle_websocket_disconnect():
        logger.info(f'WebSocket client disconnected: {request.sid}')

    if event_bus is not None:
        event_bus.subscribe(EventType.HISTORY_CHANGED,
                            lambda event: emit_update(socketio, 'history-changed', event.data))
        event_bus.subscribe(EventType.SETTINGS_CHANGED,
                            lambda event: emit_update(socketio, 'settings-changed', event.data))


def emit_update(socketio, event_name, payload):
    """
    Push a message to every connected surface

    Args:
        socketio: SocketIO instance
        event_name (str): Event name (e.g. 'translation-result')
        payload (dict): Data to send
    """
    try:
        socketio.emit(event_name, payload, namespace='/')
    except Exception as e:
        logger.warning(f"WebSocket emission error for {event_name}: {e}")
