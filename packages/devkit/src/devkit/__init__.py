"""Common runtime devkit for service infrastructure concerns."""

from devkit.config import ServiceSettings, load_settings
from devkit.db import (
    AsyncDatabaseManager,
    Base,
    create_all_tables,
    create_async_engine,
    create_session_factory,
    is_transient_db_error,
    load_database_url,
    normalize_postgres_dsn,
)
from devkit.observability import configure_logging, configure_otel, configure_probe_access_log_filter
from devkit.timezone import configure_local_timezone, now_local, today_local

__all__ = [
    "AsyncDatabaseManager",
    "Base",
    "ServiceSettings",
    "configure_local_timezone",
    "configure_logging",
    "configure_otel",
    "configure_probe_access_log_filter",
    "create_all_tables",
    "create_async_engine",
    "create_session_factory",
    "is_transient_db_error",
    "load_database_url",
    "load_settings",
    "normalize_postgres_dsn",
    "now_local",
    "today_local",
]
