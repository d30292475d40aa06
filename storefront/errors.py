# storefront/errors.py
"""
Exception types raised by the catalog layer.

Each error carries the HTTP status it should be rendered with so the
application can map them in a single exception handler.
"""

from __future__ import annotations


class StorefrontError(Exception):
    """Base class for request-level failures."""

    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(self, message: str = "Internal Server Error"):
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict:
        return {"success": False, "code": self.code, "message": self.message}


class ValidationError(StorefrontError):
    """Missing or invalid input on a write path."""

    status_code = 400
    code = "VALIDATION_ERROR"


class NotFoundError(StorefrontError):
    status_code = 404
    code = "NOT_FOUND"

    def __init__(self, message: str = "Product Not Found"):
        super().__init__(message)


class UploadError(StorefrontError):
    """The blob store could not accept an upload."""

    status_code = 502
    code = "UPLOAD_ERROR"

    def __init__(self, message: str = "Photo upload failed"):
        super().__init__(message)


class StoreUnavailableError(StorefrontError):
    """The product store could not be reached."""

    status_code = 503
    code = "STORE_UNAVAILABLE"

    def __init__(self, message: str = "Product store unavailable"):
        super().__init__(message)
