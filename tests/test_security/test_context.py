"""Tests for the request-scoped claims slot and the FastAPI dependency."""

from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient
from starlette.requests import Request

from jwtazure.entra.claims import UserClaims, build_user_claims
from jwtazure.security.context import get_claims, set_claims
from jwtazure.security.dependencies import get_current_claims


def _request() -> Request:
    return Request({"type": "http", "method": "GET", "path": "/", "headers": []})


def test_get_claims_absent():
    assert get_claims(_request()) == (None, False)


def test_set_then_get_claims():
    request = _request()
    claims = build_user_claims({"sub": "u1"})

    set_claims(request, claims)

    assert get_claims(request) == (claims, True)


def test_string_key_cannot_forge_claims():
    request = _request()
    request.scope["user_claims"] = build_user_claims({"sub": "forged"})
    request.state.user_claims = build_user_claims({"sub": "forged"})

    assert get_claims(request) == (None, False)


def test_dependency_without_middleware_is_401():
    app = FastAPI()

    @app.get("/me")
    def me(claims: UserClaims = Depends(get_current_claims)) -> dict[str, str]:
        return {"sub": claims.subject}

    resp = TestClient(app).get("/me")

    assert resp.status_code == 401
    assert resp.json() == {"detail": "Authentication required"}
