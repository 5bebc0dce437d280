from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import date

from provider_directory.core.models import ProviderId, ProviderRecord
from provider_directory.storage.base import ProviderRepository


class InMemoryProviderRepository(ProviderRepository):
    def __init__(self) -> None:
        self._providers: dict[ProviderId, tuple[ProviderRecord, str]] = {}
        self._categories: set[str] = set()
        self._last_update: date | None = None
        self._ordered_keys: list[ProviderId] | None = None
        self.ledger_rows = 0

    async def replace_categories(self, values: Iterable[str]) -> int:
        self._categories = set(values)
        return len(self._categories)

    async def list_categories(self) -> list[str]:
        return sorted(self._categories)

    async def save_batch(self, records: Sequence[ProviderRecord], cycle_id: str) -> int:
        # Staged first: all-or-nothing per batch.
        staged = {record.provider_id: (record, cycle_id) for record in records}
        self._providers.update(staged)
        self._ordered_keys = None
        return len(records)

    async def purge_stale(self, cycle_id: str) -> int:
        stale = [key for key, (_, stamp) in self._providers.items() if stamp != cycle_id]
        for key in stale:
            del self._providers[key]
        if stale:
            self._ordered_keys = None
        return len(stale)

    async def count(self) -> int:
        return len(self._providers)

    async def find_page(self, page: int, size: int) -> list[ProviderRecord]:
        if self._ordered_keys is None:
            self._ordered_keys = sorted(self._providers)
        ordered = self._ordered_keys
        start = page * size
        return [self._providers[key][0] for key in ordered[start : start + size]]

    async def get(self, provider_id: ProviderId) -> ProviderRecord | None:
        entry = self._providers.get(provider_id)
        return entry[0] if entry else None

    async def last_update(self) -> date | None:
        return self._last_update

    async def record_update(self, value: date) -> None:
        if self.ledger_rows == 0:
            self.ledger_rows = 1
        self._last_update = value
