"""Runtime configuration for the inventory engine.

Values come from environment variables prefixed with ``INVENTORY_`` (and an
optional ``.env`` file). Persistence is configured in ``domain.toml``; its
database URI reads ``INVENTORY_DATABASE_URL``.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_LEVEL_BY_ENV = {
    "production": "INFO",
    "staging": "INFO",
    "development": "DEBUG",
    "test": "WARNING",
}


class InventorySettings(BaseSettings):
    # App
    env: str = "development"
    log_level: str | None = None
    log_dir: str = "logs"
    create_schema: bool = True

    # Stock engine
    transaction_max_attempts: int = Field(default=5, ge=1)
    retry_base_delay_seconds: float = Field(default=0.02, ge=0)
    retry_max_delay_seconds: float = Field(default=0.5, ge=0)
    history_default_limit: int = Field(default=50, ge=1)
    # Restock reports are cached per process; a positive TTL lets one
    # process serve reports up to that many seconds behind writes made by
    # another process. Zero disables the cache.
    report_cache_ttl_seconds: float = Field(default=0.0, ge=0)

    model_config = SettingsConfigDict(
        env_prefix="INVENTORY_",
        env_file=".env",
        extra="ignore",
    )

    @property
    def effective_log_level(self) -> str:
        """Explicit level if set, otherwise derived from the environment name."""
        if self.log_level:
            return self.log_level.upper()
        return _LEVEL_BY_ENV.get(self.env.lower(), "INFO")
