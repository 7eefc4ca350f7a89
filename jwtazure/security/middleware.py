from __future__ import annotations

from starlette.concurrency import run_in_threadpool
from starlette.requests import HTTPConnection, Request
from starlette.status import WS_1008_POLICY_VIOLATION
from starlette.types import ASGIApp, Receive, Scope, Send
from starlette.websockets import WebSocketClose

from jwtazure.entra.claims import UserClaims
from jwtazure.entra.errors import (
    AuthError,
    InvalidAuthHeaderFormatError,
    MissingAuthHeaderError,
    TokenInvalidError,
    TokenValidationError,
)
from jwtazure.entra.validator import TokenValidator
from jwtazure.security.context import set_claims
from jwtazure.security.problem import problem_from_error

BEARER_PREFIX = "Bearer "


def extract_bearer_token(header_value: str | None) -> str:
    """
    Pull the token out of an ``Authorization`` header value.

    The scheme is matched case-insensitively (RFC 6750); the token after it is
    returned verbatim.
    """
    if not header_value:
        raise MissingAuthHeaderError()

    prefix_len = len(BEARER_PREFIX)
    if len(header_value) > prefix_len and header_value[:prefix_len].lower() == BEARER_PREFIX.lower():
        return header_value[prefix_len:]

    raise InvalidAuthHeaderFormatError()


class BearerAuthMiddleware:
    """
    Requires a valid Entra bearer token on every HTTP request and WebSocket
    connection.

    Header problems are reported to the client as-is. Validation failures are
    logged with their real cause but the client only sees the generic
    ``TokenInvalidError`` message. A rejected WebSocket is closed with code
    1008 before it is accepted. On success the claims are readable via
    ``jwtazure.security.context.get_claims``.
    """

    def __init__(self, app: ASGIApp, validator: TokenValidator) -> None:
        self.app = app
        self.validator = validator

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] not in ("http", "websocket"):
            await self.app(scope, receive, send)
            return

        connection = HTTPConnection(scope, receive)
        try:
            claims = await self._authenticate(connection)
        except AuthError as e:
            if scope["type"] == "websocket":
                await WebSocketClose(code=WS_1008_POLICY_VIOLATION, reason=str(e))(scope, receive, send)
            else:
                response = problem_from_error(e, 401, Request(scope, receive))
                await response(scope, receive, send)
            return

        set_claims(connection, claims)
        await self.app(scope, receive, send)

    async def _authenticate(self, connection: HTTPConnection) -> UserClaims:
        """Raise ``AuthHeaderError`` or the generic ``TokenInvalidError``."""
        logger = self.validator.logger
        token = extract_bearer_token(connection.headers.get("Authorization"))

        try:
            # A kid miss may hit the network; keep that off the event loop.
            claims = await run_in_threadpool(self.validator.validate_token, token)
        except TokenValidationError as e:
            remote_addr = connection.client.host if connection.client else ""
            logger.warning("Token validation failed error=%s remote_addr=%s", e, remote_addr)
            raise TokenInvalidError() from e

        logger.debug("Token validated sub=%s tid=%s", claims.subject, claims.tenant_id)
        return claims
