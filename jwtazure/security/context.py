from __future__ import annotations

from starlette.requests import HTTPConnection

from jwtazure.entra.claims import UserClaims


class _UserClaimsKey:
    """
    Key for the claims slot in the ASGI scope.

    Servers only ever put string keys in the scope, so an instance of a
    private class cannot collide with them or be forged by a client.
    """

    __slots__ = ()

    def __repr__(self) -> str:
        return "<user claims>"


_USER_CLAIMS_KEY = _UserClaimsKey()


def set_claims(connection: HTTPConnection, claims: UserClaims) -> None:
    """Attach validated claims to the current request's scope."""
    connection.scope[_USER_CLAIMS_KEY] = claims


def get_claims(connection: HTTPConnection) -> tuple[UserClaims | None, bool]:
    """Return ``(claims, True)`` if the request was authenticated, else ``(None, False)``."""
    claims = connection.scope.get(_USER_CLAIMS_KEY)
    if isinstance(claims, UserClaims):
        return claims, True
    return None, False
