"""Typed error hierarchy for transport, session and stream failures."""


class AdkStreamError(Exception):
    """Base exception for all adkstream errors."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        request_id: str | None = None,
        method: str | None = None,
        path: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.request_id = request_id
        self.method = method
        self.path = path


class AuthenticationError(AdkStreamError):
    """401: invalid or missing credentials."""


class PermissionDeniedError(AdkStreamError):
    """403: insufficient permissions."""


class NotFoundError(AdkStreamError):
    """404: unknown app, user or session."""


class ConflictError(AdkStreamError):
    """409: resource already exists or conflicts."""


class ValidationError(AdkStreamError):
    """422: invalid request parameters."""


class RateLimitError(AdkStreamError):
    """429: too many requests."""


class APIError(AdkStreamError):
    """500+ or network failure."""


class SessionError(AdkStreamError):
    """The session handshake did not succeed."""


class RequestCancelled(AdkStreamError):
    """The caller abandoned the request before the stream ended."""


class AggregatorStateError(AdkStreamError):
    """An aggregator was fed or finished outside its lifecycle."""


class ChartParseError(AdkStreamError):
    """A fenced chart block does not describe a valid chart."""


# Map HTTP status codes to exception classes.
STATUS_MAP: dict[int, type[AdkStreamError]] = {
    400: ValidationError,
    401: AuthenticationError,
    403: PermissionDeniedError,
    404: NotFoundError,
    409: ConflictError,
    422: ValidationError,
    429: RateLimitError,
}
