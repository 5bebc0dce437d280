from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict

from devkit.timezone import configure_local_timezone


class ServiceSettings(BaseSettings):
    model_config = SettingsConfigDict(extra="ignore")

    SERVICE_NAME: str = "service"
    DATABASE_URL: str | None = None
    LOCAL_TIMEZONE: str = "Europe/Prague"
    LOG_LEVEL: str = "INFO"


def load_settings(service_name: str) -> ServiceSettings:
    settings = ServiceSettings(SERVICE_NAME=service_name)
    configure_local_timezone(settings.LOCAL_TIMEZONE)
    return settings
