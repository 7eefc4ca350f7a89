from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    App settings.

    Notes:
    - Every field can be overridden with a ``JWTAZURE_`` env var, e.g.
      ``JWTAZURE_TENANT_ID=contoso``.
    - ``JWTAZURE_AUDIENCES`` is a JSON list: ``'["api://myapp"]'``.
    - If ``config_path`` is set, the validator is configured from that YAML
      file instead of the tenant/audience fields below.
    """

    model_config = SettingsConfigDict(env_prefix="JWTAZURE_", extra="ignore")

    tenant_id: str | None = None
    audiences: list[str] = Field(default_factory=list)
    disable_audience_check: bool = False
    jwks_refresh_interval_seconds: float = 3600.0
    jwks_http_timeout_seconds: float = 10.0
    clock_skew_seconds: float = 0.0
    config_path: str | None = None
    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    return Settings()
