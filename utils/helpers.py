"""
Helper Utility Module

This module provides various helper functions used throughout the Beefboard client.
"""

import re
from datetime import datetime
from typing import Any, Dict
from urllib.parse import urlparse

from utils.exceptions import InvalidDateError

# Server timestamps with and without fractional seconds, e.g.
# 2019-01-01T10:00:00.123+00:00 and 2019-01-01T10:00:00+00:00
_DATE_FORMATS = (
    "%Y-%m-%dT%H:%M:%S.%f%z",
    "%Y-%m-%dT%H:%M:%S%z",
)
_DATE_SHAPE = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d{1,6})?([+-]\d{2}:\d{2}|Z)$")


def is_valid_url(url: str) -> bool:
    """
    Check if a URL is valid.

    Args:
        url: The URL to validate

    Returns:
        bool: True if the URL is valid, False otherwise
    """
    try:
        result = urlparse(url)
        return all([result.scheme, result.netloc])
    except Exception:
        return False


def parse_api_date(value: Any) -> datetime:
    """
    Parse a timestamp sent by the API.

    Args:
        value: The raw date string

    Returns:
        datetime: A timezone-aware datetime

    Raises:
        InvalidDateError: If the value matches neither accepted format
    """
    if not isinstance(value, str) or not _DATE_SHAPE.match(value):
        raise InvalidDateError(f"Unrecognised date: {value!r}")

    text = value[:-1] + "+00:00" if value.endswith("Z") else value
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    raise InvalidDateError(f"Unrecognised date: {value!r}")


def format_api_date(value: datetime) -> str:
    """Format a datetime in the API layout with a numeric offset, keeping microseconds."""
    return value.isoformat(timespec="microseconds")


def safe_get(data: Dict[str, Any], *keys, default: Any = None) -> Any:
    """
    Safely get a value from a nested dictionary.

    Args:
        data: The dictionary to search
        *keys: The keys to follow
        default: Default value if key doesn't exist

    Returns:
        The value at the specified keys or the default value
    """
    for key in keys:
        try:
            data = data[key]
        except (KeyError, TypeError, IndexError):
            return default
    return data


def truncate_text(text: str, max_length: int = 100, add_ellipsis: bool = True) -> str:
    """
    Truncate text to a maximum length.

    Args:
        text: The text to truncate
        max_length: Maximum length
        add_ellipsis: Whether to add an ellipsis if text is truncated

    Returns:
        str: Truncated text
    """
    if not text or len(text) <= max_length:
        return text

    truncated = text[:max_length].rstrip()
    if add_ellipsis:
        truncated += "..."

    return truncated
