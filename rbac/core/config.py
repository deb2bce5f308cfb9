"""Application configuration (settings and environment).

Single source of truth for all configuration. Uses pydantic-settings
with .env support. Cache backend and default application code are
validated at load time.
"""

from functools import lru_cache

from pydantic import SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

CACHE_BACKENDS = ("memory", "redis")


class Settings(BaseSettings):
    """Application settings loaded from environment and .env."""

    # App
    app_name: str = "rbac"
    app_version: str = "1.0.0"
    debug: bool = False

    # Database: SQLite (aiosqlite) for local use, Postgres (asyncpg) in production
    database_url: str = "sqlite+aiosqlite:///./rbac.db"
    database_echo: bool = False
    # Create missing tables at startup (no migration tooling)
    database_create_tables: bool = True
    # Optional pool overrides (None = use defaults in database.py); ignored for SQLite
    db_pool_size: int | None = None
    db_max_overflow: int | None = None

    # Security: bearer tokens identify the calling subject (sub claim)
    secret_key: SecretStr = SecretStr("")
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 480  # 8 hours

    # CORS
    allowed_origins: str = "http://localhost:3000,http://localhost:8080"

    # Permission codes with fewer than three segments are qualified with this application
    default_application_code: str = "rbac"

    # Resolution cache (per-subject unscoped permissions and roles)
    cache_enabled: bool = True
    cache_backend: str = "memory"
    cache_ttl_permissions: int = 300
    cache_max_entries: int = 10_000

    # Redis (cache_backend = "redis")
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_db: int = 0
    redis_password: SecretStr | None = None

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    @model_validator(mode="after")
    def validate_cache_and_application(self) -> "Settings":
        """Validate cache backend choice and default application code."""
        if self.cache_backend not in CACHE_BACKENDS:
            raise ValueError(
                f"Invalid cache_backend '{self.cache_backend}'. "
                f"Must be one of: {', '.join(repr(b) for b in CACHE_BACKENDS)}"
            )
        if self.cache_ttl_permissions <= 0:
            raise ValueError("cache_ttl_permissions must be a positive number of seconds")
        code = self.default_application_code
        if not code or ":" in code or code.strip() != code:
            raise ValueError(
                "DEFAULT_APPLICATION_CODE must be a non-empty code without ':' or surrounding whitespace"
            )
        return self


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings (single instance per process).

    Validation runs on first call, not at import time. In tests, call
    get_settings.cache_clear() before overriding env vars so the next
    get_settings() uses the new values.
    """
    return Settings()
