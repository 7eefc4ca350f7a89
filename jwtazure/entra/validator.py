"""
Validate Entra-signed JWT (access token) and extract claims.

Background for newcomers:
    When a client sends ``Authorization: Bearer <token>`` to this API, the
    token is a JWT signed by Azure Entra ID. Before we trust **anything** in
    that token we must:

    1. Parse it and make sure it claims the one algorithm we accept (RS256).
       Accepting whatever ``alg`` the token names invites algorithm-confusion
       attacks.
    2. Verify the **signature** with the published public key named by the
       token's ``kid`` (also rejects expired / not-yet-valid tokens).
    3. Check the **issuer** (``iss``) is one of our tenant's two issuers. v1
       tokens come from ``sts.windows.net``, v2.0 tokens from
       ``login.microsoftonline.com``.
    4. Check the **audience** (``aud``) names our API, unless disabled.

    Only then do we read the claims and build ``UserClaims``.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Any

import jwt

from .claims import UserClaims, audience_list, build_user_claims
from .config import ValidatorConfig
from .errors import (
    InvalidAudienceError,
    InvalidIssuerError,
    JWKSError,
    TokenInvalidError,
    TokenParsingFailedError,
)
from .jwks_cache import JWKSCache
from .resolver import DualKeySetResolver, KeySet

if TYPE_CHECKING:
    from starlette.types import ASGIApp

    from jwtazure.settings import Settings

ALLOWED_ALGORITHM = "RS256"


class TokenValidator:
    """
    Validates Azure Entra ID access tokens and extracts claims.

    Construction fetches both key sets (v1 and v2.0) and starts their
    background refresh; it raises if either first fetch fails. Pass a
    ``threading.Event`` as ``stop_event`` to tie the refresh threads to your
    own shutdown signal, or call ``close()``.

    One instance is meant to be shared by every request.
    """

    def __init__(
        self,
        config: ValidatorConfig,
        *,
        logger: logging.Logger | None = None,
        stop_event: threading.Event | None = None,
        v1_keys: KeySet | None = None,
        v2_keys: KeySet | None = None,
    ) -> None:
        self._config = config
        self._logger = logger or logging.getLogger(__name__)
        self._stop = stop_event or threading.Event()
        self._owned: list[JWKSCache] = []

        if v1_keys is None:
            v1_keys = self._build_cache(config.jwks_v1_uri)
        if v2_keys is None:
            try:
                v2_keys = self._build_cache(config.jwks_v2_uri)
            except Exception:
                self.close()
                raise

        self._resolver = DualKeySetResolver(primary=v2_keys, fallback=v1_keys)
        self._audiences = frozenset(config.audiences)

    def _build_cache(self, uri: str) -> JWKSCache:
        cache = JWKSCache(
            uri,
            refresh_interval=self._config.jwks_refresh_interval_seconds,
            refresh_unknown_kid_interval=self._config.jwks_refresh_unknown_kid_seconds,
            timeout=self._config.jwks_http_timeout_seconds,
            stop_event=self._stop,
        )
        self._owned.append(cache)
        return cache

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        logger: logging.Logger | None = None,
        stop_event: threading.Event | None = None,
    ) -> TokenValidator:
        return cls(ValidatorConfig.from_settings(settings), logger=logger, stop_event=stop_event)

    @property
    def config(self) -> ValidatorConfig:
        return self._config

    @property
    def logger(self) -> logging.Logger:
        return self._logger

    def validate_token(self, token: str) -> UserClaims:
        """
        Run the full validation pipeline on a raw token string.

        Raises a ``TokenValidationError`` subclass on failure:
        ``TokenParsingFailedError`` (malformed, or not RS256),
        ``TokenInvalidError`` (key not found, bad signature, expired),
        ``InvalidIssuerError`` or ``InvalidAudienceError``.
        """
        try:
            header = jwt.get_unverified_header(token)
        except jwt.PyJWTError as e:
            raise TokenParsingFailedError(f"failed to parse token: {e}") from e

        alg = header.get("alg")
        if alg != ALLOWED_ALGORITHM:
            raise TokenParsingFailedError(f"failed to parse token: signing method {alg} is invalid")

        kid = header.get("kid")
        if not isinstance(kid, str) or not kid:
            raise TokenInvalidError("token is invalid: missing key id")

        try:
            signing_key = self._resolver.resolve(kid)
        except JWKSError as e:
            raise TokenInvalidError(f"token is invalid: {e}") from e

        if signing_key.key_type != "RSA":
            raise TokenInvalidError(f"token is invalid: key {kid} is {signing_key.key_type}, not RSA")

        try:
            payload: dict[str, Any] = jwt.decode(
                token,
                signing_key.key,
                algorithms=[ALLOWED_ALGORITHM],
                leeway=self._config.clock_skew_seconds,
                options={
                    "verify_signature": True,
                    "verify_exp": True,
                    "verify_nbf": True,
                    # issuer and audience are checked below, against our own rules
                    "verify_iss": False,
                    "verify_aud": False,
                    # optional claims are type-guarded during normalization
                    "verify_iat": False,
                    "verify_sub": False,
                    "verify_jti": False,
                },
            )
        except jwt.InvalidSignatureError as e:
            raise TokenInvalidError(f"{TokenInvalidError.default_message}: {e}") from e
        except jwt.DecodeError as e:
            raise TokenParsingFailedError(f"failed to parse token: {e}") from e
        except jwt.PyJWTError as e:
            raise TokenInvalidError(f"{TokenInvalidError.default_message}: {e}") from e

        issuer = payload.get("iss")
        if issuer not in self._config.valid_issuers:
            raise InvalidIssuerError(issuer)

        if self._config.audience_check:
            audience = audience_list(payload)
            if self._audiences.isdisjoint(audience):
                raise InvalidAudienceError(list(audience))

        return build_user_claims(payload)

    def middleware(self, app: ASGIApp) -> ASGIApp:
        """Wrap an ASGI app so every request must carry a valid bearer token."""
        from jwtazure.security.middleware import BearerAuthMiddleware

        return BearerAuthMiddleware(app, validator=self)

    def close(self) -> None:
        """
        Stop background key refresh for the key sets this validator created.

        This sets ``stop_event``, so anything else watching it stops too.
        """
        self._stop.set()
        for cache in self._owned:
            cache.close()

    def __enter__(self) -> TokenValidator:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
