"""Service-level error taxonomy mapped onto HTTP responses by the app factory."""


class ServiceError(Exception):
    """Base class for errors raised by the complaint services."""

    status_code = 500
    default_message = "server error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class ValidationError(ServiceError):
    status_code = 400
    default_message = "invalid request"


class Unauthorized(ServiceError):
    status_code = 401
    default_message = "unauthorized"


class InvalidCredentials(Unauthorized):
    default_message = "invalid credentials"


class InvalidToken(Unauthorized):
    default_message = "invalid token"


class NotFound(ServiceError):
    status_code = 404
    default_message = "not found"


class UploadError(ServiceError):
    """Photo storage rejected or failed the upload; no complaint is created."""

    default_message = "photo upload failed"


class StoreError(ServiceError):
    """Persistence or connectivity failure in the database."""

    default_message = "server error"


class NotificationError(ServiceError):
    """Raised when email dispatch fails. Never surfaced to API callers."""

    default_message = "notification failed"
