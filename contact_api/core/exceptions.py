"""
Exceptions shared by the contact API.

Each class maps to one row of the error taxonomy: storage faults become a
500, rate limiting becomes a plain-text 429 and notification faults are only
ever logged.
"""

from typing import Dict, Optional


class StorageError(Exception):
    """Raised when the contacts collection cannot be written or read."""


class NotificationError(Exception):
    """Raised when a confirmation email cannot be handed to the SMTP server."""


class RateLimitExceeded(Exception):
    """Raised by the rate limiter once a client uses up its window."""

    def __init__(self, message: str, retry_after: int, headers: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.message = message
        self.retry_after = retry_after
        self.headers = headers or {}
