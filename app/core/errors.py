"""
Error taxonomy. Every error carries a stable HTTP status code and a human readable
message; main.py turns them into ``{"error": ..., "details": ...}`` responses.
"""


class AppError(Exception):
    status_code = 500

    def __init__(self, message: str, details: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class AuthenticationError(AppError):
    """No credential, or the identity provider rejected it."""

    status_code = 401

    def __init__(self, message: str = "Unauthorized", reason: str = "invalid-credential", details: str | None = None) -> None:
        super().__init__(message, details)
        self.reason = reason


class AuthorizationError(AppError):
    """Authenticated identity does not own the requested resource."""

    status_code = 403


class ValidationError(AppError):
    status_code = 400


class NotFoundError(AppError):
    status_code = 404


class AnalysisError(AppError):
    """Model call failed or produced no usable text."""

    status_code = 502


class PersistenceError(AppError):
    status_code = 500


class ConfigurationError(AppError):
    """Missing credentials; raised once at process start, never per request."""

    status_code = 500
