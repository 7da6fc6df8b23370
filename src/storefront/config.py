"""Runtime settings for the storefront engine.

Values come from the environment (prefix ``STOREFRONT_``) or a local ``.env``
file. Protean's own persistence configuration lives in ``domain.toml``.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # --- Tax jurisdiction ---
    default_country_code: str = "RO"

    # --- Order codes ---
    order_code_salt: str = "storefront-order-codes"

    # --- Caching ---
    cache_backend: str = "memory"
    redis_url: str = "redis://localhost:6379/0"
    idempotency_ttl: int = 300
    geo_cache_ttl: int = 7 * 24 * 60 * 60

    # --- Geolocation ---
    geo_url: str = "http://ip-api.com/json/{ip}"
    geo_timeout: float = 2.0

    # --- Stock locking ---
    lock_wait_timeout: float = 5.0
    lock_lease: float = 30.0

    model_config = SettingsConfigDict(
        env_prefix="STOREFRONT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
