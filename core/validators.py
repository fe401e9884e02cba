"""
Core Validators

Shared validation functions for all modules.
"""

from typing import Any
from urllib.parse import urlparse

from .exceptions import InvalidInputError


def validate_url(url: Any) -> str:
    """
    Validate that a summary request carries a usable URL.

    Args:
        url: Value supplied by the caller

    Returns:
        The URL, unchanged

    Raises:
        InvalidInputError: If url is missing, not a string or blank
    """
    if not url or not isinstance(url, str) or not url.strip():
        raise InvalidInputError("Invalid URL for summary")
    return url


def is_fetchable_url(url: str) -> bool:
    """True when the URL can be fetched over the network (http/https)."""
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return parsed.scheme.lower() in ("http", "https") and bool(parsed.netloc)