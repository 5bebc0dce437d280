from __future__ import annotations

from dataclasses import dataclass
from functools import partial

from devkit.timezone import today_local

from provider_directory.config import ProviderDirectorySettings
from provider_directory.core.metrics import InMemoryRefreshMetricsCollector
from provider_directory.core.publication import PublicationGate
from provider_directory.core.refresh import FeedFetcher, RecordParser, RefreshOrchestrator
from provider_directory.feed.fetcher import OpenDataFeedFetcher
from provider_directory.feed.parser import NrpzsCsvParser
from provider_directory.scheduling.scheduler import RefreshScheduler
from provider_directory.service import ProviderDirectoryService
from provider_directory.snapshot.builder import SnapshotBuilder
from provider_directory.storage import ProviderRepository, build_repository


@dataclass
class ProviderDirectoryRuntime:
    settings: ProviderDirectorySettings
    repository: ProviderRepository
    gate: PublicationGate
    orchestrator: RefreshOrchestrator
    service: ProviderDirectoryService
    scheduler: RefreshScheduler
    metrics: InMemoryRefreshMetricsCollector

    async def start(self) -> None:
        await self.service.recover_published_snapshot()
        if self.settings.REFRESH_SCHEDULE_ENABLED:
            self.scheduler.start()

    async def stop(self) -> None:
        self.scheduler.shutdown()
        await self.repository.close()


def build_runtime(
    settings: ProviderDirectorySettings,
    metrics: InMemoryRefreshMetricsCollector | None = None,
    repository: ProviderRepository | None = None,
    fetcher: FeedFetcher | None = None,
    parser: RecordParser | None = None,
) -> ProviderDirectoryRuntime:
    metrics = metrics or InMemoryRefreshMetricsCollector()
    repository = repository or build_repository(settings.DATABASE_URL)
    gate = PublicationGate()
    snapshot_builder = SnapshotBuilder(
        repository,
        snapshot_dir=settings.SNAPSHOT_DIR,
        batch_size=settings.REFRESH_BATCH_SIZE,
        metrics=metrics,
    )
    fetcher = fetcher or OpenDataFeedFetcher(
        url=settings.OPEN_DATA_URL,
        connect_timeout_seconds=settings.FETCH_CONNECT_TIMEOUT_SECONDS,
        read_timeout_seconds=settings.FETCH_READ_TIMEOUT_SECONDS,
        max_attempts=settings.FETCH_MAX_ATTEMPTS,
        retry_base_delay_seconds=settings.FETCH_RETRY_BASE_DELAY_SECONDS,
        metrics=metrics,
    )
    orchestrator = RefreshOrchestrator(
        fetcher=fetcher,
        parser=parser or NrpzsCsvParser(metrics=metrics),
        repository=repository,
        gate=gate,
        snapshot_builder=snapshot_builder,
        batch_size=settings.REFRESH_BATCH_SIZE,
        today_fn=partial(today_local, settings.LOCAL_TIMEZONE),
        metrics=metrics,
    )
    service = ProviderDirectoryService(
        repository=repository,
        gate=gate,
        ledger=orchestrator.ledger,
        snapshot_builder=snapshot_builder,
    )
    scheduler = RefreshScheduler(
        orchestrator,
        cron=settings.REFRESH_CRON,
        timezone=settings.LOCAL_TIMEZONE,
    )
    return ProviderDirectoryRuntime(
        settings=settings,
        repository=repository,
        gate=gate,
        orchestrator=orchestrator,
        service=service,
        scheduler=scheduler,
        metrics=metrics,
    )
