"""
Domain errors raised by the security and session helpers.

Route handlers translate these into HTTP responses with abort(); the helpers
themselves never touch the request.
"""


class ConfigError(RuntimeError):
    """Required configuration is missing or unsafe."""


class AuthError(Exception):
    """Base class for authentication failures (HTTP 401)."""

    status = 401
    default_message = "Unauthorized"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return self.args[0]


class InvalidCredentials(AuthError):
    # Same message for unknown email and wrong password
    default_message = "Invalid credentials"


class InvalidToken(AuthError):
    default_message = "Invalid token"


class InvalidSignature(InvalidToken):
    default_message = "Invalid token signature"


class TokenExpired(InvalidToken):
    default_message = "Token expired"
