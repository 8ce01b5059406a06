"""
Error taxonomy shared by the service layer and the HTTP boundary.

Every error carries the HTTP status it maps to; route handlers never build
status codes themselves.
"""


class MatcherError(Exception):
    """Base class for all expected failures."""

    status_code = 500
    default_message = "Internal server error"
    body_key = None  # response body key; None lets the route decide

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(MatcherError):
    status_code = 400
    default_message = "Invalid request"


class ConflictError(MatcherError):
    status_code = 400
    default_message = "Email already exists"


class AuthError(MatcherError):
    status_code = 401
    default_message = "Please authenticate"


class TokenError(AuthError):
    """A protected route was called without a usable bearer token."""
    body_key = "error"


class NotFoundError(MatcherError):
    status_code = 404
    default_message = "User not found"


class PayloadTooLargeError(MatcherError):
    status_code = 400
    default_message = "File too large"


class UnsupportedFormatError(MatcherError):
    status_code = 400
    default_message = "File must be a PDF"


class ExtractionError(MatcherError):
    status_code = 500
    default_message = "Failed to extract text from PDF"


class MalformedResponseError(MatcherError):
    """The external model replied with something we cannot decode."""
    status_code = 502
    default_message = "Failed to generate analysis"


class ExternalServiceError(MatcherError):
    """The external model could not be reached or refused the call."""
    status_code = 502
    default_message = "AI service unavailable"


class ServerError(MatcherError):
    status_code = 500
