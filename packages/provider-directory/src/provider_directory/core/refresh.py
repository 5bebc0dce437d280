from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import date
from time import perf_counter
from typing import Awaitable, TypeVar
from uuid import uuid4

from opentelemetry import trace

from provider_directory.core.batching import DEFAULT_BATCH_SIZE
from provider_directory.core.exceptions import (
    EmptyDatasetError,
    FetchError,
    ParseError,
    PersistenceError,
    RefreshCycleError,
    SnapshotWriteError,
    UpdateInProgressError,
)
from provider_directory.core.metrics import InMemoryRefreshMetricsCollector
from provider_directory.core.models import ProviderRecord, UpdateStatus, format_update_label
from provider_directory.core.persistence import BatchPersister, CategorySeeder, UpdateLedger
from provider_directory.core.publication import PublicationGate
from provider_directory.snapshot.builder import SnapshotBuilder
from provider_directory.storage.base import ProviderRepository

R = TypeVar("R")
logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

SUCCESS_MESSAGE = "Data successfully updated."


class FeedFetcher(ABC):
    @abstractmethod
    async def fetch(self) -> bytes:
        raise NotImplementedError


class RecordParser(ABC):
    @abstractmethod
    def parse(self, raw: bytes) -> list[ProviderRecord]:
        raise NotImplementedError


def _failure_status(exc: Exception) -> str:
    if isinstance(exc, EmptyDatasetError):
        return "empty_dataset"
    if isinstance(exc, ParseError):
        return "parse_error"
    if isinstance(exc, FetchError):
        return "fetch_error"
    if isinstance(exc, PersistenceError):
        return "persistence_error"
    if isinstance(exc, SnapshotWriteError):
        return "snapshot_error"
    return "failed"


class RefreshOrchestrator:
    """Runs the fetch → parse → persist → snapshot → publish cycle, one at a time."""

    def __init__(
        self,
        fetcher: FeedFetcher,
        parser: RecordParser,
        repository: ProviderRepository,
        gate: PublicationGate,
        snapshot_builder: SnapshotBuilder,
        batch_size: int = DEFAULT_BATCH_SIZE,
        today_fn: Callable[[], date] = date.today,
        metrics: InMemoryRefreshMetricsCollector | None = None,
        cycle_id_factory: Callable[[], str] = lambda: uuid4().hex,
    ) -> None:
        self._fetcher = fetcher
        self._parser = parser
        self._gate = gate
        self._snapshot_builder = snapshot_builder
        self._metrics = metrics
        self._cycle_id_factory = cycle_id_factory
        self._seeder = CategorySeeder(repository)
        self._persister = BatchPersister(repository, batch_size=batch_size, metrics=metrics)
        self.ledger = UpdateLedger(repository, today_fn=today_fn)

    async def run_update(self, *, wait: bool = False) -> UpdateStatus:
        """Run one cycle.

        With ``wait=False`` a call made while another cycle runs fails fast with
        ``UpdateInProgressError``; with ``wait=True`` it queues behind it.
        """
        try:
            async with self._gate.refresh_cycle(wait=wait):
                return await self._run_cycle()
        except UpdateInProgressError:
            self._count("busy")
            logger.info("refresh_rejected_busy", extra={"component": "refresh"})
            raise

    async def _run_cycle(self) -> UpdateStatus:
        cycle_id = self._cycle_id_factory()
        started = perf_counter()
        logger.info("refresh_cycle_started", extra={"component": "refresh", "cycle_id": cycle_id})
        try:
            with tracer.start_as_current_span("refresh.cycle"):
                raw = await self._stage("fetch", self._fetcher.fetch)
                records = await self._stage("parse", lambda: asyncio.to_thread(self._parse, raw))
                if not records:
                    raise EmptyDatasetError("feed contained no providers")
                await self._stage("seed_categories", self._seeder.seed)
                persisted = await self._stage("persist", lambda: self._persister.persist(records, cycle_id))
                await self._stage("purge_stale", lambda: self._persister.purge_stale(cycle_id))
                update_date = self.ledger.today()
                label = format_update_label(update_date)
                snapshot = await self._stage("snapshot", lambda: self._snapshot_builder.build(label))
                try:
                    await self._stage("ledger", lambda: self.ledger.record_successful_update(update_date))
                except PersistenceError:
                    if snapshot.path != self._gate.published_path:
                        self._snapshot_builder.discard(snapshot.path)
                    raise
                previous = self._gate.publish(snapshot.path)
                if previous is not None and previous != snapshot.path:
                    self._snapshot_builder.discard(previous)
        except Exception as exc:
            self._count(_failure_status(exc))
            logger.exception(
                "refresh_cycle_failed",
                extra={"component": "refresh", "cycle_id": cycle_id, "status": _failure_status(exc)},
            )
            if isinstance(exc, RefreshCycleError):
                raise
            raise RefreshCycleError("refresh cycle failed unexpectedly") from exc

        duration = perf_counter() - started
        self._count("success")
        if self._metrics:
            self._metrics.observe_cycle_duration(duration)
        logger.info(
            "refresh_cycle_completed",
            extra={
                "component": "refresh",
                "cycle_id": cycle_id,
                "record_count": persisted.record_count,
                "batch_count": persisted.batch_count,
                "last_update": label,
                "duration_seconds": round(duration, 3),
            },
        )
        return UpdateStatus(
            message=SUCCESS_MESSAGE,
            last_update=label,
            provider_count=persisted.record_count,
            batch_count=persisted.batch_count,
            snapshot_path=snapshot.path,
        )

    def _parse(self, raw: bytes) -> list[ProviderRecord]:
        try:
            return list(self._parser.parse(raw))
        except ParseError:
            raise
        except Exception as exc:
            raise ParseError("feed parsing failed") from exc

    async def _stage(self, stage: str, action: Callable[[], Awaitable[R]]) -> R:
        started = perf_counter()
        with tracer.start_as_current_span(f"refresh.{stage}"):
            result = await action()
        if self._metrics:
            self._metrics.observe_stage_duration(stage, (perf_counter() - started) * 1000.0)
        return result

    def _count(self, status: str) -> None:
        if self._metrics:
            self._metrics.increment_run(status)
