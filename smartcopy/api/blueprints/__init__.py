"""
API Routes
"""
from .config_routes import create_config_blueprint
from .message_routes import create_message_blueprint
from .history_routes import create_history_blueprint

__all__ = [
    'create_config_blueprint',
    'create_message_blueprint',
    'create_history_blueprint'
]
