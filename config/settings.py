"""
Configuration Settings for the Beefboard Client

This module centralizes all configuration settings for the Beefboard client,
including environment variables, API endpoints, and application constants.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Determine the application root directory
APP_ROOT = Path(__file__).resolve().parent.parent

# Load environment variables from .env file
load_dotenv(dotenv_path=os.path.join(APP_ROOT, '.env'))

# =============================================================================
# API Settings
# =============================================================================

BEEFBOARD_API_HOST = os.getenv("BEEFBOARD_API_HOST", "https://api.beefboard.mooo.com/v1")
TOKEN_HEADER = "x-access-token"
REQUEST_TIMEOUT = float(os.getenv("BEEFBOARD_REQUEST_TIMEOUT", "3.0"))  # Seconds per request
UPLOAD_CHUNK_SIZE = 16 * 1024        # Bytes read per progress step during multipart upload
UPLOAD_IMAGE_MIME_TYPE = "image/jpeg"
UPLOAD_IMAGE_FILENAME = "image.jpg"

# =============================================================================
# Local Storage Settings
# =============================================================================

STORAGE_PATH = os.getenv("BEEFBOARD_STORAGE_PATH", os.path.join(APP_ROOT, "beefboard.sqlite3"))
STORAGE_TABLE = "kv_store"

# Stable keys for persisted client state
TOKEN_KEY = "token"
USER_AUTH_KEY = "user_auth"
POSTS_KEY = "posts"

# =============================================================================
# Logging Settings
# =============================================================================

LOG_LEVEL = os.getenv("BEEFBOARD_LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("BEEFBOARD_LOG_FILE")


def get_config_summary() -> dict:
    """
    Returns a summary of current configuration (without sensitive values).
    Useful for logging startup state.
    """
    return {
        "api": {
            "host": BEEFBOARD_API_HOST,
            "timeout": REQUEST_TIMEOUT,
        },
        "storage": {
            "path": str(STORAGE_PATH),
            "table": STORAGE_TABLE,
        },
        "logging": {
            "level": LOG_LEVEL,
            "file": LOG_FILE,
        },
    }
