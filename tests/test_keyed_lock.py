import asyncio

import pytest

from helpers.keyed_lock import KeyedLock


@pytest.mark.asyncio
async def test_same_key_is_serialized() -> None:
    locks = KeyedLock()
    order: list[str] = []

    async def worker(name: str) -> None:
        async with locks.hold("guild"):
            order.append(f"{name}-in")
            await asyncio.sleep(0.01)
            order.append(f"{name}-out")

    await asyncio.gather(worker("a"), worker("b"))
    assert order == ["a-in", "a-out", "b-in", "b-out"]


@pytest.mark.asyncio
async def test_different_keys_overlap() -> None:
    locks = KeyedLock()
    inside = asyncio.Event()

    async def first() -> None:
        async with locks.hold("a"):
            await asyncio.wait_for(inside.wait(), timeout=1)

    async def second() -> None:
        async with locks.hold("b"):
            inside.set()

    await asyncio.gather(first(), second())


@pytest.mark.asyncio
async def test_locks_are_released_and_forgotten() -> None:
    locks = KeyedLock()
    async with locks.hold(("user", "1", "2")):
        assert locks.locked(("user", "1", "2"))
        assert len(locks) == 1
    assert not locks.locked(("user", "1", "2"))
    assert len(locks) == 0


@pytest.mark.asyncio
async def test_lock_released_on_error() -> None:
    locks = KeyedLock()
    with pytest.raises(RuntimeError):
        async with locks.hold("k"):
            raise RuntimeError("boom")
    assert len(locks) == 0
