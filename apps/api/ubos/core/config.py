from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "UBOS API"
    app_env: str = "local"
    app_debug: bool = True
    api_port: int = 8000
    database_url: str = "sqlite+pysqlite:///./ubos.db"
    redis_url: str = "redis://redis:6379/0"
    session_secret: str = "replace-me"
    session_algorithm: str = "HS256"
    session_cookie_name: str = "ubos_session"
    session_ttl_seconds: int = 7 * 24 * 60 * 60
    allow_header_auth: bool = True
    default_organization_name: str = "My Organization"
    rate_limit_disabled: bool = False
    rate_limit_mutations_per_minute: int = 60
    metrics_enabled: bool = False
    otel_enabled: bool = False
    overdue_sweep_enabled: bool = True
    overdue_sweep_interval_seconds: int = 3600

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=False)

    @property
    def is_production(self) -> bool:
        return self.app_env.lower() in {"prod", "production"}

    @property
    def header_auth_enabled(self) -> bool:
        return self.allow_header_auth and not self.is_production


@lru_cache
def get_settings() -> Settings:
    return Settings()
