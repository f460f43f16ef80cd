"""
Error kinds for the subscriber webhook service.

Every error carries the HTTP status the boundary layer should answer with,
so the FastAPI app needs a single exception handler instead of per-route
branching.
"""


class SubscriberServiceError(Exception):
    """Base class for all errors raised by the subscriber service."""

    status_code: int = 500
    message: str = "Internal error"

    def __init__(self, message: str = ""):
        super().__init__(message or self.message)

    @property
    def detail(self) -> str:
        return str(self)


class MissingEmail(SubscriberServiceError):
    """The webhook payload has no usable email address."""
    status_code = 400
    message = "No email provided"


class UntrustedSender(SubscriberServiceError):
    """The payload's seller_id does not match the configured seller."""
    status_code = 403
    message = "Invalid seller"


class Unauthorized(SubscriberServiceError):
    """The caller's admin credential does not match the configured secret."""
    status_code = 401
    message = "Unauthorized"


class MissingParameter(SubscriberServiceError):
    """A manual admin operation is missing its email or product."""
    status_code = 400
    message = "Email and product required"


class InvalidProductKey(SubscriberServiceError):
    """A product key that cannot be mapped to a storage location."""
    status_code = 400
    message = "Invalid product key"


class StorageReadFailure(SubscriberServiceError):
    """
    A subscriber file exists but could not be read or parsed.

    Recovered inside the storage layer (treated as an empty set), never
    surfaced to HTTP callers.
    """
    status_code = 500
    message = "Could not read subscriber file"


class StorageWriteFailure(SubscriberServiceError):
    """Persisting a subscriber set failed; the request must not report success."""
    status_code = 500
    message = "Could not persist subscribers"
