"""
Domain errors raised by services and converted to JSON envelopes by the
centralized error responder in ``storefront.app``.
"""

from typing import Any, Dict, Optional


class StorefrontError(Exception):
    """Base class for errors that are recoverable at the request boundary."""

    status_code: int = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> Dict[str, Any]:
        return {"success": False, "message": self.message}


class ValidationError(StorefrontError):
    """Missing or invalid request fields."""

    status_code = 400


class AuthError(StorefrontError):
    """Caller is not logged in or the supplied id is unknown."""

    status_code = 401


class ForbiddenError(AuthError):
    """Caller is logged in but lacks the required role."""

    status_code = 403


class NotFoundError(StorefrontError):
    """Requested entity does not exist."""

    status_code = 404


class ImageHostError(StorefrontError):
    """External image host rejected or failed a request."""

    status_code = 502
