"""
Configuration Validation for the Beefboard Client

This module contains configuration validation logic.
Extracted from settings.py for better separation of concerns.
"""

from utils.exceptions import ConfigurationError
from utils.helpers import is_valid_url

MAX_REQUEST_TIMEOUT = 30.0


def validate_settings():
    """
    Validate that all required settings are properly configured.

    Raises:
        ConfigurationError: If required settings are missing or invalid.
    """
    # Import settings here to avoid circular imports
    from config import settings

    errors = []

    if not settings.BEEFBOARD_API_HOST:
        errors.append("Missing required setting: BEEFBOARD_API_HOST")
    elif not is_valid_url(settings.BEEFBOARD_API_HOST):
        errors.append(f"BEEFBOARD_API_HOST is not a valid URL: {settings.BEEFBOARD_API_HOST}")
    elif not settings.BEEFBOARD_API_HOST.startswith(("http://", "https://")):
        errors.append(f"BEEFBOARD_API_HOST must use http or https: {settings.BEEFBOARD_API_HOST}")

    if settings.REQUEST_TIMEOUT <= 0 or settings.REQUEST_TIMEOUT > MAX_REQUEST_TIMEOUT:
        errors.append(f"REQUEST_TIMEOUT must be between 0 and {MAX_REQUEST_TIMEOUT}, "
                      f"got {settings.REQUEST_TIMEOUT}")

    if settings.UPLOAD_CHUNK_SIZE <= 0:
        errors.append(f"UPLOAD_CHUNK_SIZE must be positive, got {settings.UPLOAD_CHUNK_SIZE}")

    if not settings.STORAGE_PATH:
        errors.append("Missing required setting: STORAGE_PATH")

    keys = [settings.TOKEN_KEY, settings.USER_AUTH_KEY, settings.POSTS_KEY]
    if len(set(keys)) != len(keys):
        errors.append("Storage keys TOKEN_KEY, USER_AUTH_KEY and POSTS_KEY must be distinct")

    # Raise all errors at once
    if errors:
        error_msg = "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
        raise ConfigurationError(error_msg)

    return True
