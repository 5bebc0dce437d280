from __future__ import annotations

from devkit.config import ServiceSettings
from devkit.timezone import configure_local_timezone
from pydantic import Field

from provider_directory.core.batching import DEFAULT_BATCH_SIZE
from provider_directory.feed.fetcher import NRPZS_OPEN_DATA_URL

MONTHLY_REFRESH_CRON = "0 2 2 * *"


class ProviderDirectorySettings(ServiceSettings):
    SERVICE_NAME: str = "provider-directory"
    OPEN_DATA_URL: str = NRPZS_OPEN_DATA_URL
    SNAPSHOT_DIR: str = "runtime/snapshots"
    REFRESH_BATCH_SIZE: int = Field(default=DEFAULT_BATCH_SIZE, gt=0)
    REFRESH_CRON: str = MONTHLY_REFRESH_CRON
    REFRESH_SCHEDULE_ENABLED: bool = True
    FETCH_CONNECT_TIMEOUT_SECONDS: float = Field(default=10.0, ge=0)
    FETCH_READ_TIMEOUT_SECONDS: float = Field(default=300.0, ge=0)
    FETCH_MAX_ATTEMPTS: int = Field(default=1, gt=0)
    FETCH_RETRY_BASE_DELAY_SECONDS: float = Field(default=5.0, ge=0)
    PROVIDER_DIRECTORY_HOST: str = "0.0.0.0"
    PROVIDER_DIRECTORY_PORT: int = 8010


def load_provider_directory_settings() -> ProviderDirectorySettings:
    settings = ProviderDirectorySettings()
    configure_local_timezone(settings.LOCAL_TIMEZONE)
    return settings
