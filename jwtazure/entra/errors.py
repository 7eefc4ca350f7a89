"""
Errors raised while extracting and validating Entra bearer tokens.

Two families matter to callers:

* ``AuthHeaderError`` subclasses describe a malformed request (no header,
  wrong scheme). Their message is safe to return to the client as-is.
* ``TokenValidationError`` subclasses describe why a token was rejected.
  They are logged server-side but the client only ever sees the generic
  ``TokenInvalidError`` message, so the API does not act as an oracle for
  token forgery attempts.

Never put the raw token into an error message.
"""

from __future__ import annotations


class AuthError(Exception):
    """Base class for all bearer-token authentication failures."""

    default_message = "authentication failed"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)


class AuthHeaderError(AuthError):
    """The Authorization header could not yield a token."""


class MissingAuthHeaderError(AuthHeaderError):
    default_message = "authorization header is required"


class InvalidAuthHeaderFormatError(AuthHeaderError):
    default_message = "authorization header format must be 'Bearer {token}'"


class TokenValidationError(AuthError):
    """A token was presented but failed validation."""


class TokenParsingFailedError(TokenValidationError):
    default_message = "failed to parse token"


class TokenInvalidError(TokenValidationError):
    default_message = "token is invalid (possibly expired or not yet active)"


class InvalidIssuerError(TokenValidationError):
    default_message = "invalid token issuer"

    def __init__(self, received: object) -> None:
        super().__init__(f"{self.default_message}. Received: {received}")
        self.received = received


class InvalidAudienceError(TokenValidationError):
    default_message = "invalid token audience"

    def __init__(self, received: object) -> None:
        super().__init__(f"{self.default_message}. Received: {received}")
        self.received = received


class ConfigurationError(ValueError):
    """Invalid validator configuration. Raised at construction time only."""


class JWKSError(Exception):
    """Base class for key-set lookup failures."""


class JWKSFetchError(JWKSError):
    """The discovery endpoint could not be fetched or returned garbage."""


class KeyNotFoundError(JWKSError):
    """No key with the requested ``kid`` exists in the key set."""

    def __init__(self, kid: str, jwks_uri: str) -> None:
        super().__init__(f"key id {kid!r} not found in {jwks_uri}")
        self.kid = kid
        self.jwks_uri = jwks_uri
