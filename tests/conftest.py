"""
Pytest fixtures for the test suite.

Tokens are signed with freshly generated RSA keys and the Entra discovery
endpoints are replaced by mocked ``requests.Session`` objects, so no test
touches the network.
"""
from __future__ import annotations

import time
from unittest.mock import MagicMock

import jwt
import pytest
from cryptography.hazmat.primitives.asymmetric import rsa
from jwt import PyJWK
from jwt.algorithms import RSAAlgorithm

from jwtazure.entra.config import ValidatorConfig
from jwtazure.entra.errors import KeyNotFoundError

TENANT = "contoso"
AUDIENCE = "api://myapp"
V1_ISSUER = f"https://sts.windows.net/{TENANT}/"
V2_ISSUER = f"https://login.microsoftonline.com/{TENANT}/v2.0"


class FakeKeySet:
    """In-memory stand-in for JWKSCache. Records every kid it is asked for."""

    def __init__(self, keys: dict[str, PyJWK] | None = None, name: str = "fake") -> None:
        self.keys = dict(keys or {})
        self.name = name
        self.lookups: list[str] = []

    def get_signing_key(self, kid: str) -> PyJWK:
        self.lookups.append(kid)
        try:
            return self.keys[kid]
        except KeyError:
            raise KeyNotFoundError(kid, self.name) from None


@pytest.fixture(scope="session")
def rsa_key():
    """An RS256 signing key shared by the whole session (generation is slow)."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def other_rsa_key():
    """A different key pair (signatures won't match ``rsa_key``)."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture
def make_jwk():
    """Return ``(private_key, kid) -> public JWK dict``."""

    def _make(private_key, kid: str) -> dict:
        jwk = RSAAlgorithm.to_jwk(private_key.public_key(), as_dict=True)
        jwk["kid"] = kid
        jwk["use"] = "sig"
        return jwk

    return _make


@pytest.fixture
def make_pyjwk(make_jwk):
    def _make(private_key, kid: str) -> PyJWK:
        return PyJWK.from_dict(make_jwk(private_key, kid))

    return _make


@pytest.fixture
def mint():
    """
    Return a function that signs a token.

    Defaults produce a valid v2.0 token for TENANT/AUDIENCE; pass a claim as
    ``None`` to drop it.
    """

    def _mint(private_key, kid: str | None = "kid-v2", algorithm: str = "RS256", **claims) -> str:
        now = int(time.time())
        payload = {
            "sub": "u1",
            "iss": V2_ISSUER,
            "aud": [AUDIENCE],
            "exp": now + 3600,
            "nbf": now - 60,
            "iat": now - 60,
        }
        payload.update(claims)
        payload = {k: v for k, v in payload.items() if v is not None}
        headers = {"kid": kid} if kid is not None else {}
        return jwt.encode(payload, private_key, algorithm=algorithm, headers=headers)

    return _mint


@pytest.fixture
def config() -> ValidatorConfig:
    return ValidatorConfig(tenant_id=TENANT, audiences=(AUDIENCE,))


@pytest.fixture
def key_sets(rsa_key, make_pyjwk):
    """(v1, v2) fake key sets; ``rsa_key`` is published as kid-v1 and kid-v2."""
    v1 = FakeKeySet({"kid-v1": make_pyjwk(rsa_key, "kid-v1")}, name="v1")
    v2 = FakeKeySet({"kid-v2": make_pyjwk(rsa_key, "kid-v2")}, name="v2")
    return v1, v2


@pytest.fixture
def jwks_session():
    """
    Return ``(*responses) -> MagicMock session``.

    Each response is either a JWKS dict (served as JSON) or an exception
    raised by ``session.get``. The last response repeats.
    """

    def _session(*responses):
        session = MagicMock()
        remaining = list(responses)

        def _get(url, timeout=None):
            item = remaining.pop(0) if len(remaining) > 1 else remaining[0]
            if isinstance(item, BaseException):
                raise item
            resp = MagicMock()
            resp.json.return_value = item
            return resp

        session.get.side_effect = _get
        return session

    return _session


@pytest.fixture
def fake_key_set():
    return FakeKeySet
