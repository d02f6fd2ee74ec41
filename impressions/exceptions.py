"""
Error taxonomy for backend and configuration failures.
Route handlers catch these at the call site and translate them to HTTP responses.
"""
from typing import Optional


class ConfigurationError(Exception):
    """Required configuration is missing or invalid."""


class BackendError(Exception):
    """Base class for any failure reported by (or while reaching) the backend."""

    def __init__(self, message: str, code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.code = code


class BackendUnavailable(BackendError):
    """The backend could not be reached or answered with a server error."""


class QueryError(BackendError):
    """The backend rejected a query, save, delete or upload."""


class RecordNotFound(QueryError):
    """No record exists for the given identifier."""


class AuthenticationFailure(BackendError):
    """Username or password did not match."""


class SessionInvalid(BackendError):
    """The session is missing, expired or has been revoked."""
