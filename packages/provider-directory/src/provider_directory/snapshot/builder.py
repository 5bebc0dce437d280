from __future__ import annotations

import asyncio
import io
import json
import logging
import os
import re
import zipfile
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date
from pathlib import Path

from provider_directory.core.batching import DEFAULT_BATCH_SIZE, batch_bounds
from provider_directory.core.exceptions import SnapshotWriteError
from provider_directory.core.metrics import InMemoryRefreshMetricsCollector
from provider_directory.core.models import SimpleProvider
from provider_directory.storage.base import ProviderRepository

logger = logging.getLogger(__name__)

SNAPSHOT_ENTRY_NAME = "providers.json"
PARTIAL_SUFFIX = ".part"
_SNAPSHOT_NAME = re.compile(r"providers-(\d{4})-(\d{1,2})-(\d{1,2})\.zip")

ArchiveFactory = Callable[[Path], zipfile.ZipFile]


def snapshot_file_name(label: str) -> str:
    return f"providers-{label}.zip"


def _default_archive_factory(path: Path) -> zipfile.ZipFile:
    return zipfile.ZipFile(path, "w", compression=zipfile.ZIP_DEFLATED)


@dataclass(frozen=True)
class SnapshotResult:
    path: Path
    entry_count: int


class SnapshotBuilder:
    def __init__(
        self,
        repository: ProviderRepository,
        snapshot_dir: str | Path,
        batch_size: int = DEFAULT_BATCH_SIZE,
        metrics: InMemoryRefreshMetricsCollector | None = None,
        archive_factory: ArchiveFactory | None = None,
    ) -> None:
        if batch_size <= 0:
            raise ValueError("batch_size must be > 0")
        self._repository = repository
        self._snapshot_dir = Path(snapshot_dir)
        self._batch_size = batch_size
        self._metrics = metrics
        self._archive_factory = archive_factory or _default_archive_factory

    def path_for(self, label: str) -> Path:
        return self._snapshot_dir / snapshot_file_name(label)

    async def build(self, label: str) -> SnapshotResult:
        """Write the snapshot for ``label`` and return its final path.

        The archive is written next to its destination and renamed into place
        only once complete, so an existing file at that path is never torn.
        """
        try:
            providers = await self._collect()
        except Exception as exc:
            raise SnapshotWriteError("reading providers for snapshot failed") from exc
        path = self.path_for(label)
        await asyncio.to_thread(self._write_archive, path, providers)
        if self._metrics:
            self._metrics.set_snapshot_entries(len(providers))
        logger.info(
            "snapshot_written",
            extra={"component": "snapshot_builder", "path": str(path), "entry_count": len(providers)},
        )
        return SnapshotResult(path=path, entry_count=len(providers))

    async def _collect(self) -> list[SimpleProvider]:
        total = await self._repository.count()
        collected: dict[SimpleProvider, None] = {}
        for bound in batch_bounds(total, self._batch_size):
            page = await self._repository.find_page(bound.index, self._batch_size)
            for record in page:
                collected.setdefault(record.simplify(), None)
        return list(collected)

    def _write_archive(self, path: Path, providers: list[SimpleProvider]) -> None:
        partial = path.with_name(path.name + PARTIAL_SUFFIX)
        try:
            self._snapshot_dir.mkdir(parents=True, exist_ok=True)
            with self._archive_factory(partial) as archive:
                with io.TextIOWrapper(archive.open(SNAPSHOT_ENTRY_NAME, "w"), encoding="utf-8") as writer:
                    json.dump(
                        [provider.to_payload() for provider in providers],
                        writer,
                        ensure_ascii=False,
                        allow_nan=False,
                    )
            os.replace(partial, path)
        except Exception as exc:
            partial.unlink(missing_ok=True)
            raise SnapshotWriteError(f"writing snapshot {path.name} failed") from exc

    def discard(self, path: Path) -> bool:
        try:
            path.unlink(missing_ok=True)
        except OSError:
            logger.exception("snapshot_discard_failed", extra={"component": "snapshot_builder", "path": str(path)})
            return False
        logger.info("snapshot_discarded", extra={"component": "snapshot_builder", "path": str(path)})
        return True

    def find_existing(self, label: str) -> Path | None:
        path = self.path_for(label)
        return path if path.is_file() else None

    def find_latest(self) -> Path | None:
        """Return the archive with the newest date label, ignoring unrecognised names."""
        if not self._snapshot_dir.is_dir():
            return None
        dated: list[tuple[date, Path]] = []
        for path in self._snapshot_dir.glob("providers-*.zip"):
            match = _SNAPSHOT_NAME.fullmatch(path.name)
            if match is None or not path.is_file():
                continue
            try:
                dated.append((date(*(int(part) for part in match.groups())), path))
            except ValueError:
                continue
        return max(dated)[1] if dated else None

    def remove_partials(self) -> int:
        if not self._snapshot_dir.is_dir():
            return 0
        removed = 0
        for partial in self._snapshot_dir.glob(f"*{PARTIAL_SUFFIX}"):
            partial.unlink(missing_ok=True)
            removed += 1
        return removed
