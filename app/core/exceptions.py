"""Domain exceptions for the marketplace.

Every exception carries two messages:
- ``message`` for logs, which may include ids and internal context
- ``user_message`` that is safe to return to the client

``status_code`` is the HTTP status the API layer maps the error to.
"""


class MarketplaceError(Exception):
    """Base exception for expected, request-scoped failures."""

    status_code: int = 500
    default_user_message: str = "An error occurred while processing your request."

    def __init__(self, message: str, user_message: str | None = None):
        """
        Initialize marketplace error.

        Args:
            message: Internal error message for logging/debugging
            user_message: Safe message to show to users (defaults to the class message)
        """
        super().__init__(message)
        self.user_message = user_message or self.default_user_message


class ValidationFailedError(MarketplaceError):
    """Input is well-formed but violates a domain rule."""

    status_code = 400
    default_user_message = "Validation error"


class DuplicateApplicationError(ValidationFailedError):
    """A trucker applied twice to the same job."""

    default_user_message = "You have already applied for this job"


class InvalidTransitionError(ValidationFailedError):
    """A status change that the lifecycle does not allow."""

    default_user_message = "Invalid status transition"


class AuthenticationError(MarketplaceError):
    """Missing session or bad credentials."""

    status_code = 401
    default_user_message = "Unauthorized"


class AccountStatusError(MarketplaceError):
    """Correct credentials, but the account lifecycle blocks login."""

    status_code = 403
    default_user_message = "Your account is not currently active. Please contact support for assistance."


class PermissionDeniedError(MarketplaceError):
    """Authenticated, but wrong role or not the owner."""

    status_code = 403
    default_user_message = "Forbidden"


class NotFoundError(MarketplaceError):
    """Referenced entity does not exist."""

    status_code = 404
    default_user_message = "Not found"
