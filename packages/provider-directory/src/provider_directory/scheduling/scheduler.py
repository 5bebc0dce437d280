from __future__ import annotations

import logging
from datetime import datetime

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from provider_directory.config import MONTHLY_REFRESH_CRON
from provider_directory.core.exceptions import RefreshCycleError, UpdateInProgressError
from provider_directory.core.models import UpdateStatus
from provider_directory.core.refresh import RefreshOrchestrator

logger = logging.getLogger(__name__)

REFRESH_JOB_ID = "provider_directory_refresh"


class RefreshScheduler:
    def __init__(
        self,
        orchestrator: RefreshOrchestrator,
        cron: str = MONTHLY_REFRESH_CRON,
        timezone: str = "Europe/Prague",
    ) -> None:
        self._orchestrator = orchestrator
        self._trigger = CronTrigger.from_crontab(cron, timezone=timezone)
        self._timezone = timezone
        self._scheduler: AsyncIOScheduler | None = None

    @property
    def running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    def start(self) -> None:
        if self.running:
            return
        scheduler = AsyncIOScheduler(timezone=self._timezone)
        scheduler.add_job(
            self.trigger,
            self._trigger,
            id=REFRESH_JOB_ID,
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )
        scheduler.start()
        self._scheduler = scheduler
        logger.info(
            "refresh_scheduler_started",
            extra={"component": "scheduler", "next_run_time": str(self.next_run_time())},
        )

    def shutdown(self) -> None:
        if self._scheduler is None:
            return
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
        self._scheduler = None
        logger.info("refresh_scheduler_stopped", extra={"component": "scheduler"})

    def next_run_time(self) -> datetime | None:
        if self._scheduler is None:
            return None
        job = self._scheduler.get_job(REFRESH_JOB_ID)
        return job.next_run_time if job else None

    async def trigger(self) -> UpdateStatus | None:
        try:
            return await self._orchestrator.run_update(wait=False)
        except UpdateInProgressError:
            logger.info("refresh_skipped_busy", extra={"component": "scheduler"})
        except RefreshCycleError as exc:
            # Traceback already logged by the orchestrator.
            logger.warning("scheduled_refresh_failed", extra={"component": "scheduler", "error_code": exc.code})
        return None
