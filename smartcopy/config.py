"""
Centralized configuration
"""
import os
import logging
from pathlib import Path
from dotenv import load_dotenv

# Setup debug logger for configuration
_config_logger = logging.getLogger('config')

# Get config directory (current working directory)
_config_dir = Path.cwd()
_env_file = _config_dir / '.env'

# Load .env file if it exists (environment variables take precedence)
_dotenv_result = load_dotenv(_env_file)

# Translation upstream (MyMemory)
MYMEMORY_HOST = os.getenv('MYMEMORY_HOST', 'https://api.mymemory.translated.net')
# Application identifier sent as the `de` parameter; a real address raises the daily quota
MYMEMORY_APP_ID = os.getenv('MYMEMORY_APP_ID', 'your-email-or-app@example.com')

# Dictionary upstream (keyed by a single word)
DICTIONARY_ENDPOINT = os.getenv('DICTIONARY_ENDPOINT', 'https://api.dictionaryapi.dev/api/v2/entries/en')
DICTIONARY_MAX_DEFINITIONS = 3
DICTIONARY_SEPARATOR = " — "

# Chunked translation
CHUNK_MAX = int(os.getenv('CHUNK_MAX', '450'))
REQUEST_TIMEOUT = float(os.getenv('REQUEST_TIMEOUT', '10'))
CHUNK_PACING_SECONDS = float(os.getenv('CHUNK_PACING_SECONDS', '0.25'))

# Resilient transport retry budgets
TRANSPORT_RETRY_ATTEMPTS = int(os.getenv('TRANSPORT_RETRY_ATTEMPTS', '4'))
TRANSPORT_RETRY_DELAY = float(os.getenv('TRANSPORT_RETRY_DELAY', '0.5'))
TRANSPORT_ESCALATION_ATTEMPTS = int(os.getenv('TRANSPORT_ESCALATION_ATTEMPTS', '6'))
TRANSPORT_ESCALATION_DELAY = float(os.getenv('TRANSPORT_ESCALATION_DELAY', '1.0'))

# History log
HISTORY_LIMIT = int(os.getenv('HISTORY_LIMIT', '20'))
HISTORY_KEY = "history"

# Languages
DEFAULT_SOURCE_LANGUAGE = os.getenv('DEFAULT_SOURCE_LANGUAGE', 'en')
DEFAULT_TARGET_LANGUAGE = os.getenv('DEFAULT_TARGET_LANGUAGE', 'tr')

# Extraction surface UI
TOAST_DURATION_SECONDS = float(os.getenv('TOAST_DURATION_SECONDS', '1.4'))
TOAST_MAX_PREVIEW = 40

# Server configuration (dispatcher peer)
HOST = os.getenv('HOST', '127.0.0.1')
PORT = int(os.getenv('PORT', '5055'))
PEER_URL = os.getenv('PEER_URL', f"http://{HOST}:{PORT}")
# Round trip to the peer covers every chunk of a translation, not one upstream call
PEER_TIMEOUT = float(os.getenv('PEER_TIMEOUT', '60'))

# Storage
DATA_DIR = os.getenv('DATA_DIR', 'data')
STORE_PATH = os.getenv('STORE_PATH', os.path.join(DATA_DIR, 'smartcopy.db'))

# Debug mode
DEBUG_MODE = os.getenv('DEBUG_MODE', 'false').lower() == 'true'

if DEBUG_MODE:
    _config_logger.setLevel(logging.DEBUG)
    _config_logger.debug("=" * 60)
    _config_logger.debug("LOADED CONFIGURATION VALUES:")
    _config_logger.debug(f"   .env loaded: {_dotenv_result} ({_env_file.absolute()})")
    _config_logger.debug(f"   MYMEMORY_HOST: {MYMEMORY_HOST}")
    _config_logger.debug(f"   DICTIONARY_ENDPOINT: {DICTIONARY_ENDPOINT}")
    _config_logger.debug(f"   CHUNK_MAX: {CHUNK_MAX}")
    _config_logger.debug(f"   REQUEST_TIMEOUT: {REQUEST_TIMEOUT}")
    _config_logger.debug(f"   PEER_URL: {PEER_URL}")
    _config_logger.debug(f"   PEER_TIMEOUT: {PEER_TIMEOUT}")
    _config_logger.debug(f"   STORE_PATH: {STORE_PATH}")
    _config_logger.debug("=" * 60)

# ============================================================================
# USER SETTINGS (persisted in the key-value store, editable at runtime)
# ============================================================================
# Store key names are shared with every surface reading the settings.

SETTING_GRANULARITY = "copyMode"
SETTING_ACTIVE = "active"
SETTING_DBLCLICK_ENABLED = "dblclickLookup"
SETTING_DBLCLICK_ACTION = "dblclickAction"
SETTING_TARGET_LANGUAGE = "targetLang"
SETTING_DARK_MODE = "darkMode"

SETTINGS_KEYS = (
    SETTING_GRANULARITY,
    SETTING_ACTIVE,
    SETTING_DBLCLICK_ENABLED,
    SETTING_DBLCLICK_ACTION,
    SETTING_TARGET_LANGUAGE,
    SETTING_DARK_MODE,
)
