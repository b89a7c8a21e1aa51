"""
Unit tests for custom exception classes.
Tests exception hierarchy, user messages and HTTP status mapping.
"""

import pytest

from app.core.exceptions import (
    AccountStatusError,
    AuthenticationError,
    DuplicateApplicationError,
    InvalidTransitionError,
    MarketplaceError,
    NotFoundError,
    PermissionDeniedError,
    ValidationFailedError,
)


class TestMarketplaceError:
    """Tests for base MarketplaceError class."""

    def test_default_user_message(self):
        error = MarketplaceError("Internal error details")

        assert str(error) == "Internal error details"
        assert error.user_message == "An error occurred while processing your request."
        assert error.status_code == 500

    def test_custom_user_message(self):
        error = MarketplaceError("Internal details", user_message="Custom user message")

        assert str(error) == "Internal details"
        assert error.user_message == "Custom user message"

    def test_can_be_raised_and_caught(self):
        with pytest.raises(MarketplaceError) as exc_info:
            raise MarketplaceError("Test error")

        assert str(exc_info.value) == "Test error"


class TestSubclasses:
    """Tests for the domain error subclasses."""

    @pytest.mark.parametrize(
        "error_class,status_code,user_message",
        [
            (ValidationFailedError, 400, "Validation error"),
            (DuplicateApplicationError, 400, "You have already applied for this job"),
            (InvalidTransitionError, 400, "Invalid status transition"),
            (AuthenticationError, 401, "Unauthorized"),
            (PermissionDeniedError, 403, "Forbidden"),
            (NotFoundError, 404, "Not found"),
        ],
    )
    def test_status_and_default_message(self, error_class, status_code, user_message):
        error = error_class("internal")

        assert error.status_code == status_code
        assert error.user_message == user_message
        assert isinstance(error, MarketplaceError)

    def test_account_status_error_is_forbidden(self):
        error = AccountStatusError("blocked", "Your account is awaiting review.")

        assert error.status_code == 403
        assert error.user_message == "Your account is awaiting review."

    def test_duplicate_application_is_validation_failure(self):
        """Catching ValidationFailedError also catches duplicate applications."""
        with pytest.raises(ValidationFailedError):
            raise DuplicateApplicationError("trucker 1 job 2")

    def test_internal_message_not_exposed(self):
        error = NotFoundError("Booking 17 missing for job 3", "Booking not found")

        assert "17" not in error.user_message
