"""Library settings loaded from environment variables via pydantic-settings.

Values are read from (highest priority first):

  1. Environment variables prefixed with ``DOCCACHE_``,
     e.g. ``DOCCACHE_CACHE_BACKEND=redis``
  2. A ``.env`` file in the working directory
  3. The defaults below

Explicit keyword arguments passed to ``DocumentDataSource.initialize`` or
``create_caching_methods`` always win over settings.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict

from doccache.models.options import FlushStrategy


class Settings(BaseSettings):
    """doccache settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(
        env_prefix="DOCCACHE_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # === Cache backend ===
    cache_backend: str = "memory"  # "memory" or "redis"
    cache_max_size: int = 1000     # LRU bound for the in-memory backend
    redis_url: str = "redis://localhost:6379/0"

    # === Cache keys ===
    store_kind: str = "db"
    backing_name: str = "mongo"

    # === Invalidation ===
    allow_flushing_collection_cache: bool = False
    flush_strategy: FlushStrategy = FlushStrategy.KEY_INDEX

    # === Diagnostics ===
    debug: bool = False
    log_level: str = "INFO"
    app_env: str = "development"
