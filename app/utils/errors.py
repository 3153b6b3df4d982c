"""
Error taxonomy and logging helpers.

Store operations raise one of the StoreError subclasses below; routes catch
them and turn them into flashed messages or JSON error payloads. Raw
exception text is logged but never sent to the browser (see sanitize_error).
"""

from __future__ import annotations
import logging
from typing import Optional
from flask import current_app, has_app_context

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Base class for failures reported by the content store."""

    category = "database"


class ConnectivityError(StoreError):
    """The store could not be reached (transient, retryable)."""

    category = "connectivity"


class QueryError(StoreError):
    """The store rejected or failed a query."""


class ValidationError(StoreError):
    """Submitted devotion data is invalid. Carries per-field messages."""

    category = "validation"

    def __init__(self, message: str, fields: Optional[dict[str, str]] = None):
        super().__init__(message)
        self.fields = fields or {}


class NotFoundError(StoreError):
    """No record matched the given id."""

    category = "not_found"


class RefreshError(StoreError):
    """
    A write went through but reloading the list afterwards failed.

    `record` is what the store returned for the write; the original store
    error is chained as __cause__.
    """

    def __init__(self, record, cause: StoreError):
        super().__init__(f"List refresh failed after write: {cause}")
        self.record = record
        self.category = cause.category


# User-facing messages, keyed by error category
GENERIC_MESSAGES = {
    "database": "Something went wrong while talking to the database. Please try again.",
    "connectivity": "We couldn't reach the server. Check your connection and try again.",
    "validation": "Please correct the highlighted fields and submit again.",
    "not_found": "That devotion no longer exists. It may have been deleted.",
    "auth": "Sign in failed. Check your email and password.",
}


def log_info(message: str) -> None:
    """Log at info level via the app logger when available."""
    if has_app_context():
        current_app.logger.info(message)
    else:
        logger.info(message)


def log_error(message: str) -> None:
    """Log at error level via the app logger when available."""
    if has_app_context():
        current_app.logger.error(message)
    else:
        logger.error(message)


def sanitize_error(error: Exception, category: str = "database", context: str = "") -> str:
    """
    Log the real error and return a message that is safe to show users.

    ValidationError messages are written for operators, so they pass through
    unchanged. Everything else maps to GENERIC_MESSAGES.
    """
    prefix = f"{context}: " if context else ""
    log_error(f"{prefix}{type(error).__name__}: {error}")

    if isinstance(error, ValidationError):
        return str(error)
    if isinstance(error, StoreError):
        category = error.category
    return GENERIC_MESSAGES.get(category, GENERIC_MESSAGES["database"])
