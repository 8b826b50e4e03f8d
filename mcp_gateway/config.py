"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache) — single instance per process
    - No api_key and no api_secret → authentication disabled (development mode)

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support (ADR: developer UX)
    - Defaults provided for all non-secret settings: works out-of-the-box locally
"""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from mcp_gateway.core.domain_types import LoadBalancingStrategy

APP_NAME = "MCP Gateway"
APP_VERSION = "1.0.0"

class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Server
    host: str = "0.0.0.0"
    port: int = 3000
    environment: str = "development"
    debug: bool = False

    # Auth — both optional; unset means development mode
    api_key: str | None = None
    api_secret: str | None = None

    # API
    cors_origins: list[str] = ["*"]

    # Rate limit (fixed window, per client host)
    rate_limit_window_ms: int = 900_000
    rate_limit_max_requests: int = 100

    # Registry
    health_check_interval_seconds: float = 30.0
    load_balancing_strategy: LoadBalancingStrategy = LoadBalancingStrategy.ROUND_ROBIN

    # Built-in services
    bazi_instances: int = 1

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"

    @field_validator("api_key", "api_secret", mode="before")
    @classmethod
    def blank_is_unset(cls, v: str | None) -> str | None:
        """Docker env files often ship API_KEY= with no value."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("bazi_instances")
    @classmethod
    def at_least_one_instance(cls, v: int) -> int:
        if v < 1:
            raise ValueError("bazi_instances must be >= 1")
        return v

    @property
    def auth_enabled(self) -> bool:
        return bool(self.api_key or self.api_secret)


@lru_cache
def get_settings() -> Settings:
    return Settings()
