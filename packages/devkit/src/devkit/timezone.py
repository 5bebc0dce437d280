from __future__ import annotations

from datetime import date, datetime
import os
import time
from zoneinfo import ZoneInfo

DEFAULT_ZONE_NAME = "Europe/Prague"

_configured_zone: str | None = None


def configure_local_timezone(zone_name: str = DEFAULT_ZONE_NAME) -> None:
    global _configured_zone
    if _configured_zone == zone_name:
        return
    ZoneInfo(zone_name)
    os.environ["TZ"] = zone_name
    if hasattr(time, "tzset"):
        time.tzset()
    _configured_zone = zone_name


def local_zone(zone_name: str | None = None) -> ZoneInfo:
    return ZoneInfo(zone_name or _configured_zone or DEFAULT_ZONE_NAME)


def now_local(zone_name: str | None = None) -> datetime:
    return datetime.now(local_zone(zone_name))


def today_local(zone_name: str | None = None) -> date:
    return now_local(zone_name).date()
