from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_env: str = "local"
    app_name: str = "Business Service Management Backend"
    api_v1_prefix: str = "/api/v1"

    # Security
    secret_key: str = "changeme"  # override in .env
    access_token_expire_minutes: int = 60
    jwt_issuer: str = "bizservice-api"
    jwt_audience: str = "bizservice-clients"
    jwt_allow_legacy_tokens: bool = True

    # Database
    database_url: str | None = None

    # Redis
    redis_url: str | None = None
    permission_cache_ttl_seconds: int = 300
    cache_key_prefix: str = "bizservice:"

    # Logging
    log_level: str = "INFO"
    log_format: str = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

    # HTTP
    cors_origins: list[str] = ["http://localhost:3000"]

    # Listing
    default_page_size: int = 10
    max_page_size: int = 100

    # Startup
    seed_permissions_on_startup: bool = True

    # Pydantic v2 style config
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Cached settings instance so the .env is parsed once.
    """
    return Settings()
