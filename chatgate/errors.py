"""
Gateway error types.
"""
from typing import Optional


class GatewayError(Exception):
    """Base exception for gateway errors."""

    def __init__(self, message: str, backend: Optional[str] = None):
        self.message = message
        self.backend = backend
        super().__init__(message)


class ConfigurationError(GatewayError):
    """Raised when a backend configuration is missing, unreadable or invalid."""
    pass


class ConfigNotFoundError(ConfigurationError):
    """Raised when the backend configuration file does not exist."""
    pass


class ConversionError(GatewayError):
    """Raised when a conversation cannot be translated for a backend."""
    pass


class TransportError(GatewayError):
    """Raised on connection, DNS or timeout failures. Safe to retry."""
    pass


class RateLimitError(GatewayError):
    """Raised when a backend answers HTTP 429 (transient throttling)."""

    def __init__(self, message: str, backend: Optional[str] = None, retry_after: Optional[float] = None):
        super().__init__(message, backend)
        self.retry_after = retry_after


class QuotaBreachError(GatewayError):
    """Raised when an enterprise backend reports its quota is exhausted."""
    pass


class ContextWindowOverflowError(GatewayError):
    """Raised when the backend rejects the input as too long."""
    pass


class ApiError(GatewayError):
    """Raised when a backend answers with a non-2xx status."""

    def __init__(self, message: str, backend: Optional[str] = None, status: Optional[int] = None, body: str = ""):
        super().__init__(message, backend)
        self.status = status
        self.body = body


class SerializationError(GatewayError):
    """Raised when a response body does not match the expected schema."""
    pass


class BackendError(GatewayError):
    """Any other backend failure, tagged with its origin."""

    def __init__(
        self,
        message: str,
        backend: Optional[str] = None,
        status: Optional[int] = None,
        code: Optional[str] = None,
    ):
        super().__init__(message, backend)
        self.status = status
        self.code = code


class ServiceError(Exception):
    """
    Error raised by the enterprise RPC clients.

    `status` is the HTTP status of the raw response, or None when no
    response was received.
    """

    def __init__(self, message: str = "", *, status: Optional[int] = None, code: Optional[str] = None):
        self.message = message
        self.status = status
        self.code = code
        super().__init__(message)
