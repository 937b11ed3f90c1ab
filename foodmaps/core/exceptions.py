"""
Maps Proxy Error Kinds

Every error carries the HTTP status it maps to and a message that is safe
to show a browser. Provider details (status text, response bodies) stay on
the exception for server-side logging only.
"""

from typing import Optional


API_KEY_NOT_CONFIGURED = "Maps API key not configured"


class MapsError(Exception):
    """Base class for errors raised by the maps proxy."""

    status_code: int = 500
    error_code: str = "maps_error"

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class InvalidRequest(MapsError):
    """Missing or malformed client input. Raised before any outbound call."""

    status_code = 400
    error_code = "invalid_request"


class ConfigurationError(MapsError):
    """The provider API key is not configured."""

    status_code = 500
    error_code = "configuration_error"

    def __init__(self, message: str = API_KEY_NOT_CONFIGURED):
        super().__init__(message)


class UpstreamFailure(MapsError):
    """
    The maps provider answered with a non-2xx status or could not be reached.

    Attributes:
        upstream_status: HTTP status from the provider, if a response arrived
        reason: Provider status text or transport error description
    """

    status_code = 500
    error_code = "upstream_failure"

    def __init__(
        self,
        message: str,
        upstream_status: Optional[int] = None,
        reason: Optional[str] = None,
    ):
        super().__init__(message)
        self.upstream_status = upstream_status
        self.reason = reason

    def __str__(self) -> str:
        if self.upstream_status is not None:
            return f"{self.message} (upstream {self.upstream_status}: {self.reason})"
        if self.reason:
            return f"{self.message} ({self.reason})"
        return self.message


class PartialDataError(MapsError):
    """The provider payload lacks the expected shape. Never reaches the client."""

    error_code = "partial_data"
