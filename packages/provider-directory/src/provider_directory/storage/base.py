from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
from datetime import date

from provider_directory.core.models import ProviderId, ProviderRecord


class ProviderRepository(ABC):
    """Durable provider, category and update-ledger storage.

    Every write method is one transaction: it either commits fully or leaves
    storage untouched.
    """

    @abstractmethod
    async def replace_categories(self, values: Iterable[str]) -> int:
        raise NotImplementedError

    @abstractmethod
    async def list_categories(self) -> list[str]:
        raise NotImplementedError

    @abstractmethod
    async def save_batch(self, records: Sequence[ProviderRecord], cycle_id: str) -> int:
        raise NotImplementedError

    @abstractmethod
    async def purge_stale(self, cycle_id: str) -> int:
        """Delete providers that were not written by ``cycle_id``."""
        raise NotImplementedError

    @abstractmethod
    async def count(self) -> int:
        raise NotImplementedError

    @abstractmethod
    async def find_page(self, page: int, size: int) -> list[ProviderRecord]:
        """Return page ``page`` (0-based) ordered by ``(location_id, institution_id)``."""
        raise NotImplementedError

    @abstractmethod
    async def get(self, provider_id: ProviderId) -> ProviderRecord | None:
        raise NotImplementedError

    @abstractmethod
    async def last_update(self) -> date | None:
        raise NotImplementedError

    @abstractmethod
    async def record_update(self, value: date) -> None:
        """Create the ledger row on first use, otherwise move its date."""
        raise NotImplementedError

    async def close(self) -> None:
        return None
