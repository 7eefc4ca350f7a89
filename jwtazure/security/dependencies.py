from __future__ import annotations

from fastapi import HTTPException, Request, status

from jwtazure.entra.claims import UserClaims
from jwtazure.security.context import get_claims


def get_current_claims(request: Request) -> UserClaims:
    """
    FastAPI dependency returning the caller's validated claims.

    Only useful behind ``BearerAuthMiddleware``; a route reached without it
    (or excluded from it) gets a 401 instead of a crash.
    """
    claims, ok = get_claims(request)
    if not ok or claims is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")
    return claims

