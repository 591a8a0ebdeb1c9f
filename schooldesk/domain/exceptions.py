"""Domain-specific exceptions: framework-independent.

Every failure a store mutation can report derives from ``RecordStoreError``
and carries a human-readable ``message`` suitable for direct display.
"""


class RecordStoreError(Exception):
    """Base class for rejected store operations."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class RecordValidationError(RecordStoreError):
    """Raised when candidate fields fail the record type's rules."""


class PermissionDeniedError(RecordStoreError):
    """Raised when the viewer may not mutate the target record."""

    def __init__(self, message: str = "forbidden"):
        super().__init__(message)


class RecordNotFoundError(RecordStoreError):
    """Raised when a requested record does not exist."""

    def __init__(self, record_id: str):
        self.record_id = record_id
        super().__init__(f"Record with id '{record_id}' not found")


class CapacityExceededError(RecordStoreError):
    """Raised when the record-count ceiling has been reached."""

    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(f"Maximum number of records ({limit}) reached")


class BackendError(RecordStoreError):
    """Raised when the persistence backend reports a failure.

    ``detail`` is the backend's own message, passed through verbatim.
    """

    def __init__(self, message: str, detail: str | None = None):
        self.detail = detail
        super().__init__(f"{message}: {detail}" if detail else message)


class UnsupportedExportFormatError(RecordStoreError):
    """Raised when an export is requested in an unknown format."""

    def __init__(self, fmt: str):
        self.format = fmt
        super().__init__(f"Unsupported export format '{fmt}'")


class TooManyLoginAttemptsError(Exception):
    """Raised when a username has used up its failed-login allowance.

    Not a store error: it is raised before any credential is checked.
    ``retry_after`` is the number of seconds until the oldest counted
    failure leaves the window.
    """

    def __init__(self, username: str, retry_after: float):
        self.username = username
        self.retry_after = retry_after
        super().__init__(f"Too many failed login attempts for '{username}'")
