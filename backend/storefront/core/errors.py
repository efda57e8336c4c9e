"""Exceptions raised by the storefront core."""

from typing import Any, Optional


class StorefrontError(Exception):
    """Base exception for all storefront errors."""

    pass


class APIError(StorefrontError):
    """Raised when the commerce backend rejects a request or cannot be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None, payload: Any = None):
        self.message = message
        self.status_code = status_code
        self.payload = payload
        super().__init__(message)


class InvalidResponseError(StorefrontError):
    """Raised when a successful response does not carry the expected envelope."""

    def __init__(self, endpoint: str):
        self.endpoint = endpoint
        super().__init__("Invalid response format")
