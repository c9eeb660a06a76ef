"""Service error taxonomy

Every service error is a ValueError whose str() is a stable error code, so
callers can match on the code and the API layer can map it to an HTTP status.
"""


class ServiceError(ValueError):
    """Base class for errors raised by the service layer"""

    default_code = "SERVICE_ERROR"

    def __init__(self, code: str | None = None, message: str | None = None):
        self.code = code or self.default_code
        self.message = message or self.code
        super().__init__(self.code)


class ValidationError(ServiceError):
    """Empty required field, empty recipient selection, illegal transition"""

    default_code = "VALIDATION_ERROR"


class NotFoundError(ServiceError):
    """Referenced document does not exist"""

    default_code = "NOT_FOUND"


class ConflictError(ServiceError):
    """Optimistic version check failed"""

    default_code = "VERSION_CONFLICT"


class PermissionDeniedError(ServiceError):
    default_code = "PERMISSION_DENIED"


class StoreError(ServiceError):
    """Underlying store I/O failure"""

    default_code = "STORE_ERROR"


class StoreTimeoutError(StoreError):
    default_code = "STORE_TIMEOUT"
