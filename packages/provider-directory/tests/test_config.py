import pytest
from pydantic import ValidationError

from provider_directory.config import MONTHLY_REFRESH_CRON, ProviderDirectorySettings


def test_settings_defaults(monkeypatch) -> None:
    for name in ("REFRESH_BATCH_SIZE", "REFRESH_CRON", "FETCH_MAX_ATTEMPTS", "SNAPSHOT_DIR"):
        monkeypatch.delenv(name, raising=False)

    settings = ProviderDirectorySettings()

    assert settings.SERVICE_NAME == "provider-directory"
    assert settings.REFRESH_BATCH_SIZE == 500
    assert settings.REFRESH_CRON == MONTHLY_REFRESH_CRON
    assert settings.FETCH_MAX_ATTEMPTS == 1
    assert settings.SNAPSHOT_DIR == "runtime/snapshots"


def test_settings_read_environment(monkeypatch) -> None:
    monkeypatch.setenv("REFRESH_BATCH_SIZE", "250")
    monkeypatch.setenv("REFRESH_SCHEDULE_ENABLED", "false")

    settings = ProviderDirectorySettings()

    assert settings.REFRESH_BATCH_SIZE == 250
    assert settings.REFRESH_SCHEDULE_ENABLED is False


def test_settings_reject_non_positive_batch_size(monkeypatch) -> None:
    monkeypatch.setenv("REFRESH_BATCH_SIZE", "0")

    with pytest.raises(ValidationError):
        ProviderDirectorySettings()
