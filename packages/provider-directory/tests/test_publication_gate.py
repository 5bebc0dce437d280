from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from provider_directory.core.exceptions import SnapshotUnavailableError, UpdateInProgressError
from provider_directory.core.publication import PublicationGate


def test_gate_without_published_snapshot() -> None:
    gate = PublicationGate()

    assert gate.is_updating is False
    with pytest.raises(SnapshotUnavailableError):
        gate.current_snapshot_path()


@pytest.mark.asyncio
async def test_gate_hides_snapshot_while_updating() -> None:
    gate = PublicationGate()
    first = Path("providers-2026-3-2.zip")
    async with gate.refresh_cycle():
        gate.publish(first)

    async with gate.refresh_cycle():
        assert gate.is_updating is True
        with pytest.raises(UpdateInProgressError):
            gate.current_snapshot_path()

    assert gate.is_updating is False
    assert gate.current_snapshot_path() == first


@pytest.mark.asyncio
async def test_gate_rejects_second_cycle() -> None:
    gate = PublicationGate()

    async with gate.refresh_cycle():
        with pytest.raises(UpdateInProgressError):
            async with gate.refresh_cycle():
                pass


@pytest.mark.asyncio
async def test_gate_resets_updating_after_failure() -> None:
    gate = PublicationGate()

    with pytest.raises(RuntimeError):
        async with gate.refresh_cycle():
            raise RuntimeError("cycle blew up")

    assert gate.is_updating is False


@pytest.mark.asyncio
async def test_gate_queues_waiting_cycle() -> None:
    gate = PublicationGate()
    order: list[str] = []
    release = asyncio.Event()

    async def first() -> None:
        async with gate.refresh_cycle():
            order.append("first-start")
            await release.wait()
            order.append("first-end")

    async def second() -> None:
        async with gate.refresh_cycle(wait=True):
            order.append("second")

    first_task = asyncio.create_task(first())
    await asyncio.sleep(0)
    second_task = asyncio.create_task(second())
    await asyncio.sleep(0)
    release.set()
    await asyncio.gather(first_task, second_task)

    assert order == ["first-start", "first-end", "second"]


@pytest.mark.asyncio
async def test_gate_publish_returns_previous_path() -> None:
    gate = PublicationGate()

    async with gate.refresh_cycle():
        assert gate.publish(Path("a.zip")) is None
    async with gate.refresh_cycle():
        assert gate.publish(Path("b.zip")) == Path("a.zip")

    assert gate.published_path == Path("b.zip")


def test_gate_publish_requires_cycle() -> None:
    with pytest.raises(RuntimeError):
        PublicationGate().publish(Path("a.zip"))


@pytest.mark.asyncio
async def test_gate_restore_only_when_nothing_published() -> None:
    gate = PublicationGate()

    assert await gate.restore(Path("restored.zip")) is True
    assert await gate.restore(Path("other.zip")) is False
    assert gate.current_snapshot_path() == Path("restored.zip")
