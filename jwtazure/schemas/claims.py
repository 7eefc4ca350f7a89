from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class ClaimsOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    subject: str
    name: str
    preferred_username: str
    tenant_id: str
    audience: list[str]
    issuer: str
    scopes: str
    roles: list[str]
