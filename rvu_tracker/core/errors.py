"""Exception types shared across the catalog, cache and gateway layers."""

from typing import Optional


class TrackerError(Exception):
    """Base class for every error raised by RVU Tracker."""


class CatalogNotFoundError(TrackerError):
    """The bundled reference catalog could not be located or read."""


class CatalogParseError(TrackerError):
    """A catalog row is malformed. Always recovered by skipping the row."""


class CacheCorruptError(TrackerError):
    """A cache entry could not be decoded. Recovered by deleting the entry."""


class ValidationError(TrackerError):
    """A visit draft failed entry-time validation."""


# =============================================================================
# Remote gateway errors
# =============================================================================

class GatewayError(TrackerError):
    """Base class for errors coming back from the remote API."""


class NetworkError(GatewayError):
    """The request never produced an HTTP response."""


class NotAuthenticatedError(GatewayError):
    """No bearer token is available. Please sign in."""

    def __str__(self):
        return "Not authenticated. Please sign in."


class AuthExpiredError(GatewayError):
    """The server rejected the token (HTTP 401)."""

    def __str__(self):
        return "Session expired. Please sign in again."


class ServerError(GatewayError):
    """Non-2xx response other than 401."""

    def __init__(self, status: int, message: Optional[str] = None):
        self.status = status
        self.message = message
        super().__init__(status, message)

    def __str__(self):
        if self.message:
            return f"Request failed ({self.status}): {self.message}"
        return f"Request failed with status code {self.status}"


class DecodingError(GatewayError):
    """Response body did not match the expected shape."""

    def __str__(self):
        return f"Unable to parse server response: {self.args[0] if self.args else 'unknown error'}"


__all__ = [
    'TrackerError',
    'CatalogNotFoundError',
    'CatalogParseError',
    'CacheCorruptError',
    'ValidationError',
    'GatewayError',
    'NetworkError',
    'NotAuthenticatedError',
    'AuthExpiredError',
    'ServerError',
    'DecodingError',
]
