"""
Domain exceptions raised by the storage layer.

The handlers registered in ``fitsocial.services.error_handler`` turn these
into ``{"message": ...}`` responses.
"""

from typing import Optional


class FitSocialError(Exception):
    """Base exception for domain errors."""

    status_code: int = 400

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        self.message = message
        self.original_error = original_error
        super().__init__(self.message)


class ConflictError(FitSocialError):
    """The write would duplicate an existing row (like, follow, username...)."""

    status_code = 400
