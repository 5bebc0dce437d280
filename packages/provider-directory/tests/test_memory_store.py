import pytest

from provider_directory.core.models import ProviderRecord
from provider_directory.storage.memory import InMemoryProviderRepository


def _record(location_id: int) -> ProviderRecord:
    return ProviderRecord(location_id=location_id, institution_id=1, title=f"Ordinace {location_id}")


@pytest.mark.asyncio
async def test_find_page_orders_by_composite_id() -> None:
    repository = InMemoryProviderRepository()
    await repository.save_batch([_record(3), _record(1), _record(2)], cycle_id="c1")

    first = await repository.find_page(0, 2)
    second = await repository.find_page(1, 2)

    assert [record.location_id for record in first] == [1, 2]
    assert [record.location_id for record in second] == [3]


@pytest.mark.asyncio
async def test_find_page_sees_later_writes_and_purges() -> None:
    repository = InMemoryProviderRepository()
    await repository.save_batch([_record(2), _record(4)], cycle_id="old")
    assert [record.location_id for record in await repository.find_page(0, 10)] == [2, 4]

    await repository.save_batch([_record(1), _record(4)], cycle_id="new")
    assert [record.location_id for record in await repository.find_page(0, 10)] == [1, 2, 4]

    await repository.purge_stale("new")
    assert [record.location_id for record in await repository.find_page(0, 10)] == [1, 4]
