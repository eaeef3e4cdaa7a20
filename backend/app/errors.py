"""Error taxonomy shared by services and routers."""
from typing import Optional


class RegistryError(Exception):
    """Base class for errors raised by the notification services."""


class ValidationError(RegistryError):
    """A required field is missing or malformed. Raised before store access."""

    def __init__(self, field: str, message: str):
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message


class NotFoundError(RegistryError):
    """The addressed record does not exist."""


class NotFoundOrUnauthorizedError(RegistryError):
    """No row matched the id and owner pair.

    The two cases are deliberately not distinguished.
    """

    def __init__(self, message: str = "Notification not found or not authorized"):
        super().__init__(message)


class StoreError(RegistryError):
    """Underlying database failure."""


class SerializationError(RegistryError):
    """A persisted JSON payload could not be decoded."""


class ExternalDeliveryError(RegistryError):
    """The web-push gateway rejected or failed a delivery."""


class ApiError(Exception):
    """Route-level failure rendered as ``{status, message, error}``.

    Wrapping a ``ValidationError`` yields a 400 with field detail.
    """

    def __init__(self, message: str, error: Optional[Exception] = None, status_code: int = 500):
        super().__init__(message)
        self.message = message
        self.error = str(error) if error is not None else None
        self.status_code = status_code
        self.field_errors = []
        if isinstance(error, ValidationError):
            self.status_code = 400
            self.field_errors = [{"field": error.field, "message": error.message}]
