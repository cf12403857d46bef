"""Runtime tuning for registrar migrations.

Provides centralized rate-limit, retry and polling configuration using
Pydantic BaseSettings with environment variable support for operational tuning.
"""

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def default_data_dir() -> Path:
    """Directory holding the migration database and logs."""
    base = os.getenv("XDG_DATA_HOME") or str(Path.home() / ".local" / "share")
    return Path(base) / "registrar-migrate"


class MigrationSettings(BaseSettings):
    """Rate limits, retry budgets and polling intervals."""

    # GoDaddy publishes 60 requests/minute; stay below it
    godaddy_rate_limit: int = Field(
        55, alias="GODADDY_RATE_LIMIT", description="GoDaddy requests per window"
    )
    godaddy_rate_window: float = Field(
        60.0, alias="GODADDY_RATE_WINDOW", description="GoDaddy window in seconds"
    )

    # Cloudflare publishes 1200 requests/5 minutes
    cloudflare_rate_limit: int = Field(
        1100, alias="CLOUDFLARE_RATE_LIMIT", description="Cloudflare requests per window"
    )
    cloudflare_rate_window: float = Field(
        300.0, alias="CLOUDFLARE_RATE_WINDOW", description="Cloudflare window in seconds"
    )

    concurrency: int = Field(
        8, alias="MIGRATION_CONCURRENCY", ge=1, description="Domains migrated in parallel"
    )
    http_timeout: float = Field(30.0, alias="HTTP_TIMEOUT", description="HTTP timeout in seconds")

    lock_max_retries: int = Field(
        4, alias="LOCK_MAX_RETRIES", ge=0, description="Retries on GoDaddy resource lock"
    )
    lock_base_delay: float = Field(
        5.0, alias="LOCK_BASE_DELAY", description="Linear backoff base delay in seconds"
    )

    privacy_settle_delay: float = Field(
        5.0,
        alias="PRIVACY_SETTLE_DELAY",
        description="Pause after privacy removal before the next mutation",
    )
    unlock_poll_attempts: int = Field(
        6, alias="UNLOCK_POLL_ATTEMPTS", ge=1, description="Reads while waiting for unlock"
    )
    unlock_poll_interval: float = Field(
        5.0, alias="UNLOCK_POLL_INTERVAL", description="Delay between unlock reads in seconds"
    )

    zone_poll_interval: float = Field(
        10.0, alias="ZONE_POLL_INTERVAL", description="Delay between zone status reads"
    )
    zone_activation_timeout: float = Field(
        300.0, alias="ZONE_ACTIVATION_TIMEOUT", description="Zone activation budget in seconds"
    )

    data_dir: Path = Field(
        default_factory=default_data_dir,
        alias="REGISTRAR_MIGRATE_DATA_DIR",
        description="Directory for the migration database",
    )

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", populate_by_name=True)

    @property
    def store_path(self) -> Path:
        return self.data_dir / "migrations.db"
