class ServiceError(Exception):
    """Base class for failures raised by the service layer."""

    status_code = 500
    public_message = "Server error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.public_message)
        self.message = message or self.public_message


class ValidationError(ServiceError):
    """Input is missing or malformed; the caller must fix it before retrying."""

    status_code = 400
    public_message = "Invalid input"


class NotFoundError(ServiceError):
    """The referenced entity does not exist for this owner."""

    status_code = 404
    public_message = "Not found"


class InsufficientStockError(ServiceError):
    """A sale would take an item's quantity below zero."""

    status_code = 409
    public_message = "Insufficient stock quantity"


class StorageError(ServiceError):
    """The database failed. The message shown to callers never carries the cause."""

    status_code = 500
    public_message = "Server error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message)
        self.message = self.public_message
