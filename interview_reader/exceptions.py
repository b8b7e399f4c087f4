"""
Error taxonomy for the auth service.

Every error the API can surface is an ApiError carrying an HTTP status,
a human readable message and an optional dict of field level errors.
OAuth flow errors are never rendered to the browser; the callback route
maps them to redirect error codes instead.
"""

from typing import Optional


class ApiError(Exception):
    """Base error rendered as a structured JSON response."""

    status_code = 500
    default_message = "Something went wrong"

    def __init__(self, message: Optional[str] = None, errors: Optional[dict] = None):
        self.message = message or self.default_message
        self.errors = errors or {}
        super().__init__(self.message)


# =============================================================================
# Input / persistence errors
# =============================================================================


class InvalidInputError(ApiError):
    status_code = 400
    default_message = "Invalid input"


class DuplicateIdentityError(ApiError):
    """Email (or provider id) collides with an existing user on creation."""

    status_code = 409
    default_message = "A user with this identity already exists"


class ValidationFailureError(ApiError):
    status_code = 422
    default_message = "Validation failed"


class NotFoundError(ApiError):
    status_code = 404
    default_message = "Not found"


# =============================================================================
# Authentication errors
# =============================================================================


class AuthenticationError(ApiError):
    status_code = 401
    default_message = "Authentication failed"


class CredentialExpiredError(AuthenticationError):
    default_message = "Token has expired"


class CredentialMalformedError(AuthenticationError):
    default_message = "Invalid token"


class CredentialWrongKindError(AuthenticationError):
    default_message = "Invalid token type"


class NoCredentialError(AuthenticationError):
    default_message = "Access token required"


class UnknownSubjectError(AuthenticationError):
    default_message = "User not found"


class AccountDeactivatedError(AuthenticationError):
    default_message = "Account is deactivated"


class SessionInvalidError(AuthenticationError):
    default_message = "Invalid session"


# =============================================================================
# OAuth flow errors
# =============================================================================


class OAuthFlowError(ApiError):
    status_code = 502
    default_message = "OAuth flow failed"


class ProviderExchangeFailedError(OAuthFlowError):
    """A call to the provider's token or profile endpoint failed."""

    default_message = "OAuth provider exchange failed"

    def __init__(
        self,
        message: Optional[str] = None,
        upstream_status: Optional[int] = None,
        errors: Optional[dict] = None,
    ):
        super().__init__(message, errors)
        self.upstream_status = upstream_status


class MissingAuthorizationCodeError(OAuthFlowError):
    status_code = 400
    default_message = "No authorization code received"


class EmailUnavailableError(OAuthFlowError):
    default_message = "Unable to retrieve email from provider"


# Redirect error codes shown to the client application.
OAUTH_FAILED = "oauth_failed"
INVALID_REQUEST = "invalid_request"
UNAUTHORIZED = "unauthorized"
NO_CODE = "no_code"
EMAIL_EXISTS = "email_exists"
VALIDATION_FAILED = "validation_failed"


def redirect_error_code(error: Exception) -> str:
    """Map any login failure onto the closed set of redirect error codes."""
    if isinstance(error, MissingAuthorizationCodeError):
        return NO_CODE
    if isinstance(error, ProviderExchangeFailedError):
        if error.upstream_status == 400:
            return INVALID_REQUEST
        if error.upstream_status == 401:
            return UNAUTHORIZED
        return OAUTH_FAILED
    if isinstance(error, DuplicateIdentityError):
        return EMAIL_EXISTS
    if isinstance(error, ValidationFailureError):
        return VALIDATION_FAILED
    if isinstance(error, InvalidInputError):
        return INVALID_REQUEST
    return OAUTH_FAILED
