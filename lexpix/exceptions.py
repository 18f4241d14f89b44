"""
Exception hierarchy shared by the persistence shims, services and routes.
"""


class LexPixError(Exception):
    """Base class for every error raised by this package."""

    status_code = 500
    error = "Internal error"

    def __init__(self, message: str = ""):
        super().__init__(message or self.error)
        self.message = message or self.error


class ShimError(LexPixError):
    """Raised by the local persistence shims."""

    error = "Local store error"


class QueryError(ShimError):
    """A query could not be satisfied (bad filter, single() mismatch, ...)."""

    status_code = 400
    error = "Query error"


class CorruptTableError(ShimError):
    """A stored table is not a valid JSON array."""

    error = "Corrupt table data"


class StorageError(ShimError):
    """Object storage failure (missing bucket, duplicate path, ...)."""

    error = "Storage error"


class StorageQuotaExceeded(StorageError):
    """The key-value store quota would be exceeded by a write."""

    status_code = 507
    error = "Storage quota exceeded"


class ServiceError(LexPixError):
    """A domain service operation failed."""

    error = "Service error"


class NotFoundError(ServiceError):
    status_code = 404
    error = "Not found"


class ConflictError(ServiceError):
    """The write would duplicate something that must be unique."""

    status_code = 409
    error = "Conflict"


class InviteTokenError(ServiceError):
    """An invitation token is unknown, already used or expired."""

    status_code = 400
    error = "Invalid invitation"


class AuthError(LexPixError):
    status_code = 401
    error = "Authentication failed"
