"""
Lifecycle error kinds.

Every failure of a core operation is one of these. They carry enough to be
rendered at the API boundary (code, HTTP status) and tell the caller whether
retrying the same input can ever succeed.
"""


class LifecycleError(Exception):
    code = "LIFECYCLE_ERROR"
    status_code = 400
    retryable = False

    def __init__(self, detail: str, **context):
        super().__init__(detail)
        self.detail = detail
        self.context = context

    def to_dict(self) -> dict:
        return {"code": self.code, "detail": self.detail, "retryable": self.retryable, **self.context}


class NotFound(LifecycleError):
    code = "NOT_FOUND"
    status_code = 404


class IllegalTransition(LifecycleError):
    code = "ILLEGAL_TRANSITION"
    status_code = 409


class InvalidState(LifecycleError):
    code = "INVALID_STATE"
    status_code = 409


class DriverUnavailable(LifecycleError):
    code = "DRIVER_UNAVAILABLE"
    status_code = 409


class UnresolvedZone(LifecycleError):
    code = "UNRESOLVED_ZONE"
    status_code = 422


class BatchClosed(LifecycleError):
    code = "BATCH_CLOSED"
    status_code = 409


class ValidationError(LifecycleError):
    code = "VALIDATION_ERROR"
    status_code = 422


class PermissionDenied(LifecycleError):
    code = "PERMISSION_DENIED"
    status_code = 403


class StorageUnavailable(LifecycleError):
    code = "STORAGE_UNAVAILABLE"
    status_code = 503
    retryable = True


class ConcurrentModification(StorageUnavailable):
    code = "CONCURRENT_MODIFICATION"


class Conflict(LifecycleError):
    code = "CONFLICT"
    status_code = 409


class GeocodingUnavailable(StorageUnavailable):
    """The geocoding provider could not be reached; resolving again may succeed."""

    code = "GEOCODING_UNAVAILABLE"
