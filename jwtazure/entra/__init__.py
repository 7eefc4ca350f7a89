"""
Validate Azure Entra ID bearer tokens and expose their claims.

This package has no dependency on the web layer (jwtazure.security).
Build a ``TokenValidator`` once from a ``ValidatorConfig`` and call
``validate_token()`` with a bearer token string to get ``UserClaims``.
"""

from .claims import UserClaims, build_user_claims
from .config import ValidatorConfig, load_validator_config
from .errors import (
    AuthError,
    AuthHeaderError,
    ConfigurationError,
    InvalidAudienceError,
    InvalidAuthHeaderFormatError,
    InvalidIssuerError,
    JWKSError,
    JWKSFetchError,
    KeyNotFoundError,
    MissingAuthHeaderError,
    TokenInvalidError,
    TokenParsingFailedError,
    TokenValidationError,
)
from .jwks_cache import JWKSCache
from .resolver import DualKeySetResolver
from .validator import TokenValidator

__all__ = [
    "AuthError",
    "AuthHeaderError",
    "ConfigurationError",
    "DualKeySetResolver",
    "InvalidAudienceError",
    "InvalidAuthHeaderFormatError",
    "InvalidIssuerError",
    "JWKSCache",
    "JWKSError",
    "JWKSFetchError",
    "KeyNotFoundError",
    "MissingAuthHeaderError",
    "TokenInvalidError",
    "TokenParsingFailedError",
    "TokenValidationError",
    "TokenValidator",
    "UserClaims",
    "ValidatorConfig",
    "build_user_claims",
    "load_validator_config",
]
