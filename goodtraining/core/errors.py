"""
Domain-specific exceptions for the goodtraining web app.

Most of these wrap a failed backend call: the backend's own message is kept
in `message` so it can be shown to the user as-is. They are mapped to HTTP
status codes by the app-level exception handler.
"""

from typing import Any

APPROVAL_PENDING_MARKER = "승인 대기"


class GoodTrainingError(Exception):
    """Base exception for all goodtraining domain errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(GoodTrainingError):
    """
    Raised when input data fails validation.

    Examples:
    - Empty required form field
    - Password shorter than 8 characters
    - Backend answered 400 (duplicate email, bad reset link)

    HTTP Status: 400 Bad Request
    """

    pass


class UnauthorizedError(GoodTrainingError):
    """
    Raised when the user is not logged in or the session expired.

    HTTP Status: 401 Unauthorized
    """

    pass


class ForbiddenError(GoodTrainingError):
    """
    Raised when the user is logged in but not allowed to do something.

    Examples:
    - Trainee opening the admin dashboard
    - Backend answered 403

    HTTP Status: 403 Forbidden
    """

    pass


class ApprovalPendingError(ForbiddenError):
    """
    Raised when a supervisor account has not been approved by an admin yet.

    HTTP Status: 403 Forbidden
    """

    pass


class NotFoundError(GoodTrainingError):
    """
    Raised when a requested resource does not exist.

    Examples:
    - Supervisor ID not found
    - Article ID not found or malformed

    HTTP Status: 404 Not Found
    """

    pass


class BackendError(GoodTrainingError):
    """
    Raised when the backend answers with an unexpected error.

    HTTP Status: 502 Bad Gateway
    """

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        status_code: int | None = None,
    ):
        super().__init__(message, details)
        self.status_code = status_code


class BackendUnavailableError(GoodTrainingError):
    """
    Raised when the backend cannot be reached or the circuit is open.

    HTTP Status: 503 Service Unavailable
    """

    pass


# HTTP Status Code Mapping
ERROR_STATUS_MAP = {
    ValidationError: 400,
    UnauthorizedError: 401,
    ForbiddenError: 403,
    ApprovalPendingError: 403,
    NotFoundError: 404,
    BackendError: 502,
    BackendUnavailableError: 503,
}


def get_status_code(error: Exception) -> int:
    """
    Get the HTTP status code for a given exception.

    Args:
        error: The exception instance

    Returns:
        HTTP status code (defaults to 500 for unknown errors)
    """
    return ERROR_STATUS_MAP.get(type(error), 500)


def is_approval_pending(message: str | None) -> bool:
    """Whether a backend message says the account is still awaiting approval."""
    return bool(message) and APPROVAL_PENDING_MARKER in message
