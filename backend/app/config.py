"""Settings for the LockerDrop API, read from the environment and ``.env``."""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """LockerDrop API settings."""

    # Storage: the API talks to Supabase with a server-side key only
    supabase_url: str
    supabase_secret_key: str

    # Bearer tokens issued to customers and workers
    jwt_secret_key: str
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 60 * 24 * 7

    # Marketplace rules, passed through to lockerdrop.config.MarketplaceConfig
    platform_fee_rate: float = 0.10
    default_package_size: str = "small"
    confirmation_code_digits: int = 4

    debug: bool = False
    log_level: str = "INFO"
    # Browser origins of the customer and courier web apps
    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    """Settings are read once per process."""
    return Settings()
