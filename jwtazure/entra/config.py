"""Validator configuration. Built once at startup, read-only afterwards."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml
from pydantic import BaseModel, Field

from .errors import ConfigurationError

if TYPE_CHECKING:
    from jwtazure.settings import Settings

DEFAULT_AUTHORITY_HOST = "login.microsoftonline.com"
DEFAULT_STS_HOST = "sts.windows.net"


@dataclass(frozen=True)
class ValidatorConfig:
    """
    Azure Entra ID token validation settings.

    Required:
        tenant_id: Tenant (directory) ID. Issuers and discovery URLs derive from it.

    Audience:
        audiences: Accepted ``aud`` values. A token passes if any of its
            audiences is in this set. Must be non-empty unless
            ``audience_check`` is False.
        audience_check: Set to False to skip the audience check entirely.
            Generally not recommended in production.

    Key sets:
        jwks_refresh_interval_seconds: Background refresh period (default 3600).
        jwks_refresh_unknown_kid_seconds: Minimum gap between refreshes
            triggered by an unknown ``kid`` (default 300).
        jwks_http_timeout_seconds: Timeout for each discovery fetch (default 10).

    Lifetime:
        clock_skew_seconds: Tolerance applied to exp/nbf (default 0).
    """

    tenant_id: str
    audiences: tuple[str, ...] = ()
    audience_check: bool = True
    authority_host: str = DEFAULT_AUTHORITY_HOST
    sts_host: str = DEFAULT_STS_HOST
    jwks_refresh_interval_seconds: float = 3600.0
    jwks_refresh_unknown_kid_seconds: float = 300.0
    jwks_http_timeout_seconds: float = 10.0
    clock_skew_seconds: float = 0.0
    valid_issuers: tuple[str, ...] = field(init=False)

    def __post_init__(self) -> None:
        tenant = (self.tenant_id or "").strip()
        if not tenant:
            raise ConfigurationError("tenant_id must not be empty")
        audiences = tuple(a.strip() for a in self.audiences if a and a.strip())
        if self.audience_check and not audiences:
            raise ConfigurationError(
                "audience validation is enabled but no valid audiences were provided"
            )
        if self.jwks_refresh_interval_seconds <= 0:
            raise ConfigurationError("jwks_refresh_interval_seconds must be positive")

        # frozen: bypass __setattr__ for normalized and derived fields
        object.__setattr__(self, "tenant_id", tenant)
        object.__setattr__(self, "audiences", audiences)
        object.__setattr__(
            self,
            "valid_issuers",
            (
                f"https://{self.sts_host}/{tenant}/",
                f"https://{self.authority_host}/{tenant}/v2.0",
            ),
        )

    @property
    def jwks_v1_uri(self) -> str:
        return f"https://{self.authority_host}/{self.tenant_id}/discovery/keys"

    @property
    def jwks_v2_uri(self) -> str:
        return f"https://{self.authority_host}/{self.tenant_id}/discovery/v2.0/keys"

    @classmethod
    def from_settings(cls, settings: Settings) -> ValidatorConfig:
        if settings.config_path:
            return load_validator_config(Path(settings.config_path))
        if not settings.tenant_id:
            raise ConfigurationError("JWTAZURE_TENANT_ID must be set")
        return cls(
            tenant_id=settings.tenant_id,
            audiences=tuple(settings.audiences),
            audience_check=not settings.disable_audience_check,
            jwks_refresh_interval_seconds=settings.jwks_refresh_interval_seconds,
            jwks_http_timeout_seconds=settings.jwks_http_timeout_seconds,
            clock_skew_seconds=settings.clock_skew_seconds,
        )


class ValidatorConfigModel(BaseModel):
    tenant_id: str
    audiences: list[str] = Field(default_factory=list)
    disable_audience_check: bool = False
    authority_host: str = DEFAULT_AUTHORITY_HOST
    sts_host: str = DEFAULT_STS_HOST
    jwks_refresh_interval_seconds: float = 3600.0
    jwks_refresh_unknown_kid_seconds: float = 300.0
    jwks_http_timeout_seconds: float = 10.0
    clock_skew_seconds: float = 0.0


def load_validator_config(path: Path) -> ValidatorConfig:
    """
    Read a YAML file shaped like::

        validator:
          tenant_id: contoso
          audiences: ["api://myapp"]
    """
    raw_text = path.read_text(encoding="utf-8")
    raw: dict[str, Any] = yaml.safe_load(raw_text) or {}

    if "validator" not in raw:
        raise ConfigurationError(f"Missing top-level 'validator' key in config: {path}")

    model = ValidatorConfigModel.model_validate(raw["validator"])
    return ValidatorConfig(
        tenant_id=model.tenant_id,
        audiences=tuple(model.audiences),
        audience_check=not model.disable_audience_check,
        authority_host=model.authority_host,
        sts_host=model.sts_host,
        jwks_refresh_interval_seconds=model.jwks_refresh_interval_seconds,
        jwks_refresh_unknown_kid_seconds=model.jwks_refresh_unknown_kid_seconds,
        jwks_http_timeout_seconds=model.jwks_http_timeout_seconds,
        clock_skew_seconds=model.clock_skew_seconds,
    )
