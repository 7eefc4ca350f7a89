"""Normalized claims produced after validating an Entra access token."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any


@dataclass(frozen=True)
class UserClaims:
    """
    Typed, read-only view over a validated token's claims.

    Works for both delegated (user) tokens, which carry ``name`` and ``scp``,
    and application (client credentials) tokens, which carry ``roles``.
    Missing optional claims come back as ``""`` or an empty tuple.
    """

    subject: str
    """``sub`` claim."""

    issuer: str
    audience: tuple[str, ...]

    name: str = ""
    """Display name; delegated tokens only."""

    preferred_username: str = ""
    """Usually the UPN / email. For display only; do not use for authorization."""

    tenant_id: str = ""
    """``tid`` claim."""

    scopes: str = ""
    """Raw ``scp`` claim (space-separated delegated permissions)."""

    roles: tuple[str, ...] = ()
    """App roles; typically application tokens."""

    raw_claims: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    """Every claim in the token, for callers that need uncommon ones."""

    @property
    def scope_list(self) -> tuple[str, ...]:
        return tuple(self.scopes.split())

    def to_dict(self) -> dict[str, object]:
        """Return a JSON-serializable dict (raw claims excluded)."""
        return {
            "subject": self.subject,
            "name": self.name,
            "preferred_username": self.preferred_username,
            "tenant_id": self.tenant_id,
            "audience": list(self.audience),
            "issuer": self.issuer,
            "scopes": self.scopes,
            "roles": list(self.roles),
        }


def _str_claim(payload: Mapping[str, Any], name: str) -> str:
    value = payload.get(name)
    return value if isinstance(value, str) else ""


def audience_list(payload: Mapping[str, Any]) -> tuple[str, ...]:
    """``aud`` may be a single string or a list of strings."""
    aud = payload.get("aud")
    if isinstance(aud, str):
        return (aud,)
    if isinstance(aud, list):
        return tuple(a for a in aud if isinstance(a, str))
    return ()


def build_user_claims(payload: Mapping[str, Any]) -> UserClaims:
    """
    Build ``UserClaims`` from a validated JWT payload. Never raises.

    ``roles`` keeps only string entries, in order; anything that is not a
    list yields no roles.
    """
    roles: tuple[str, ...] = ()
    raw_roles = payload.get("roles")
    if isinstance(raw_roles, list):
        roles = tuple(r for r in raw_roles if isinstance(r, str))

    return UserClaims(
        subject=_str_claim(payload, "sub"),
        issuer=_str_claim(payload, "iss"),
        audience=audience_list(payload),
        name=_str_claim(payload, "name"),
        preferred_username=_str_claim(payload, "preferred_username"),
        tenant_id=_str_claim(payload, "tid"),
        scopes=_str_claim(payload, "scp"),
        roles=roles,
        raw_claims=MappingProxyType(dict(payload)),
    )
