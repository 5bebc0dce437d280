from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from datetime import date

from provider_directory.core.batching import DEFAULT_BATCH_SIZE, batch_bounds
from provider_directory.core.exceptions import PersistenceError
from provider_directory.core.metrics import InMemoryRefreshMetricsCollector
from provider_directory.core.models import HealthcareCategory, ProviderRecord, format_update_label
from provider_directory.storage.base import ProviderRepository

logger = logging.getLogger(__name__)


class CategorySeeder:
    def __init__(
        self,
        repository: ProviderRepository,
        taxonomy: Iterable[str] = tuple(HealthcareCategory),
    ) -> None:
        self._repository = repository
        self._taxonomy = tuple(str(value) for value in taxonomy)

    async def seed(self) -> int:
        try:
            seeded = await self._repository.replace_categories(self._taxonomy)
        except Exception as exc:
            raise PersistenceError("category seeding failed") from exc
        logger.info("categories_seeded", extra={"component": "category_seeder", "category_count": seeded})
        return seeded


@dataclass(frozen=True)
class PersistResult:
    record_count: int
    batch_count: int


class BatchPersister:
    """Writes records in fixed-size batches, one transaction per batch.

    A failing batch aborts the run. Batches committed before it stay committed;
    the published snapshot, not raw storage, is what readers trust.
    """

    def __init__(
        self,
        repository: ProviderRepository,
        batch_size: int = DEFAULT_BATCH_SIZE,
        metrics: InMemoryRefreshMetricsCollector | None = None,
    ) -> None:
        if batch_size <= 0:
            raise ValueError("batch_size must be > 0")
        self._repository = repository
        self._batch_size = batch_size
        self._metrics = metrics

    async def persist(self, records: Sequence[ProviderRecord], cycle_id: str) -> PersistResult:
        bounds = batch_bounds(len(records), self._batch_size)
        saved = 0
        for bound in bounds:
            batch = records[bound.start : bound.end]
            try:
                await self._repository.save_batch(batch, cycle_id)
            except Exception as exc:
                logger.exception(
                    "provider_batch_failed",
                    extra={"component": "batch_persister", "cycle_id": cycle_id, "batch_index": bound.index},
                )
                raise PersistenceError(
                    f"provider batch {bound.index + 1}/{len(bounds)} failed after {saved} records committed"
                ) from exc
            saved += bound.size
            if self._metrics:
                self._metrics.add_persisted_batch(bound.size)
            logger.debug(
                "provider_batch_saved",
                extra={"component": "batch_persister", "batch_index": bound.index, "record_count": bound.size},
            )
        return PersistResult(record_count=saved, batch_count=len(bounds))

    async def purge_stale(self, cycle_id: str) -> int:
        try:
            purged = await self._repository.purge_stale(cycle_id)
        except Exception as exc:
            raise PersistenceError("stale provider purge failed") from exc
        if self._metrics:
            self._metrics.set_purged_records(purged)
        logger.info("stale_providers_purged", extra={"component": "batch_persister", "record_count": purged})
        return purged


class UpdateLedger:
    def __init__(
        self,
        repository: ProviderRepository,
        today_fn: Callable[[], date] = date.today,
    ) -> None:
        self._repository = repository
        self._today_fn = today_fn

    def today(self) -> date:
        return self._today_fn()

    async def record_successful_update(self, value: date | None = None) -> str:
        update_date = value or self.today()
        try:
            await self._repository.record_update(update_date)
        except Exception as exc:
            raise PersistenceError("update ledger write failed") from exc
        label = format_update_label(update_date)
        logger.info("update_ledger_recorded", extra={"component": "update_ledger", "last_update": label})
        return label

    async def current_update_label(self) -> str | None:
        last = await self._repository.last_update()
        return format_update_label(last) if last else None
