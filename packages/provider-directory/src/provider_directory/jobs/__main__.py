from __future__ import annotations

import asyncio
import logging

from devkit.observability import configure_logging

from provider_directory.config import load_provider_directory_settings
from provider_directory.core.exceptions import RefreshCycleError
from provider_directory.core.models import UpdateStatus
from provider_directory.monitoring.state import refresh_metrics
from provider_directory.runtime import ProviderDirectoryRuntime, build_runtime

logger = logging.getLogger(__name__)


async def run_refresh_once(runtime: ProviderDirectoryRuntime) -> UpdateStatus:
    """Adopt the snapshot already on disk, then run one cycle behind any running one."""
    try:
        await runtime.service.recover_published_snapshot()
        return await runtime.orchestrator.run_update(wait=True)
    finally:
        await runtime.repository.close()


def main() -> None:
    settings = load_provider_directory_settings()
    configure_logging(settings.LOG_LEVEL)
    runtime = build_runtime(settings, metrics=refresh_metrics)
    try:
        status = asyncio.run(run_refresh_once(runtime))
    except RefreshCycleError as exc:
        logger.error("refresh_job_failed", extra={"component": "refresh_job", "error_code": exc.code})
        raise SystemExit(1) from exc
    logger.info(
        "refresh_job_completed",
        extra={
            "component": "refresh_job",
            "last_update": status.last_update,
            "record_count": status.provider_count,
            "snapshot_path": str(status.snapshot_path),
        },
    )


if __name__ == "__main__":
    main()
