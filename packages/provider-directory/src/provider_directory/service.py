from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from provider_directory.core.exceptions import NotFoundError
from provider_directory.core.models import DirectoryStatus, ProviderId, ProviderRecord
from provider_directory.core.persistence import UpdateLedger
from provider_directory.core.publication import PublicationGate
from provider_directory.snapshot.builder import SnapshotBuilder
from provider_directory.storage.base import ProviderRepository

logger = logging.getLogger(__name__)


class ProviderDirectoryService:
    """Read side of the directory: detail lookups, snapshot access and status."""

    def __init__(
        self,
        repository: ProviderRepository,
        gate: PublicationGate,
        ledger: UpdateLedger,
        snapshot_builder: SnapshotBuilder,
    ) -> None:
        self._repository = repository
        self._gate = gate
        self._ledger = ledger
        self._snapshot_builder = snapshot_builder

    def current_snapshot_path(self) -> Path:
        return self._gate.current_snapshot_path()

    async def lookup_provider_detail(self, provider_id: ProviderId) -> ProviderRecord:
        record = await self._repository.get(provider_id)
        if record is None:
            raise NotFoundError(
                f"provider not found: location_id={provider_id.location_id}, "
                f"institution_id={provider_id.institution_id}"
            )
        return record

    async def lookup_multiple_provider_details(self, provider_ids: Iterable[ProviderId]) -> list[ProviderRecord]:
        return [await self.lookup_provider_detail(provider_id) for provider_id in provider_ids]

    async def status(self) -> DirectoryStatus:
        return DirectoryStatus(
            last_update=await self._ledger.current_update_label(),
            updating=self._gate.is_updating,
        )

    async def recover_published_snapshot(self) -> Path | None:
        removed = self._snapshot_builder.remove_partials()
        if removed:
            logger.warning("snapshot_partials_removed", extra={"component": "directory_service", "count": removed})
        label = await self._ledger.current_update_label()
        path = self._snapshot_builder.find_existing(label) if label else None
        if path is None:
            path = self._snapshot_builder.find_latest()
            if path is None:
                if label is not None:
                    logger.warning(
                        "snapshot_missing_for_ledger",
                        extra={"component": "directory_service", "last_update": label},
                    )
                return None
            logger.warning(
                "snapshot_recovered_from_latest_archive",
                extra={"component": "directory_service", "last_update": label, "path": str(path)},
            )
        await self._gate.restore(path)
        return path
