from abc import ABC


class UserError(ABC, Exception):
    """Base class for user-related errors.

    All errors that inherit from UserError will have their messages
    displayed to the user. These errors should not contain any
    sensitive information.
    """

    code = "BAD_REQUEST"


class NotFoundError(UserError):
    """Raised when a requested resource is not found."""

    code = "NOT_FOUND"

    def __init__(self, message: str = "Document not found") -> None:
        super().__init__(message)


class AuthenticationError(UserError):
    """Raised when authentication fails."""

    code = "UNAUTHORIZED"

    def __init__(self, message: str = "Authentication failed") -> None:
        super().__init__(message)


class ValidationError(UserError):
    """Raised when user input fails validation."""

    code = "VALIDATION_ERROR"


class NotFoundEmailError(NotFoundError):
    """Raised when no account is registered under the given email."""

    code = "NOT_FOUND_EMAIL"

    def __init__(self, message: str = "No account found for this email") -> None:
        super().__init__(message)


class NotFoundUserError(NotFoundError):
    """Raised when a token subject no longer exists."""

    code = "NOT_FOUND_USER"

    def __init__(self, message: str = "User not found") -> None:
        super().__init__(message)


class WrongPasswordError(AuthenticationError):
    """Raised when the presented password does not match."""

    code = "WRONG_PASSWORD"

    def __init__(self, message: str = "Wrong password") -> None:
        super().__init__(message)


class UnauthorizedUserError(AuthenticationError):
    """Raised for any missing, invalid, expired or superseded token.

    The message never says which check failed.
    """

    code = "UNAUTHORIZED_USER"

    def __init__(self, message: str = "Unauthorized user") -> None:
        super().__init__(message)


class RateLimitedError(UserError):
    """Raised when a client exhausted its login attempts for the current window."""

    code = "RATE_LIMITED"

    def __init__(self, retry_after: int, message: str = "Too many login attempts. Try again later.") -> None:
        super().__init__(message)
        self.retry_after = retry_after
