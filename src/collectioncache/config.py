from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="COLLECTIONCACHE_", env_file=".env", extra="ignore"
    )

    # Redis
    redis_url: str = Field(default="redis://localhost:6379/0", validation_alias="REDIS_URL")

    # Collection defaults
    key_prefix: str = "CollectionCache"
    batch_operation_threshold_limit: int = Field(default=2500, gt=0)
    use_compression: bool = True
    default_expiration_seconds: int | None = None

    # Resilient execution (retry + per-call timeout)
    retry_max_attempts: int = Field(default=3, ge=0)
    retry_delay_initial: float = 0.2
    retry_delay_multiplier: float = 2.0
    retry_delay_max: float = 2.0
    operation_timeout: float = 10.0

    # Observability
    log_level: str = "INFO"
    log_json: bool = True
    enable_metrics: bool = True


settings = Settings()
