import asyncio

import pytest
from marina.utils.locks import KeyedLocks


@pytest.mark.asyncio
async def test_same_key_is_serialised() -> None:
    locks = KeyedLocks()
    order: list[str] = []

    async def worker(name: str) -> None:
        async with locks.hold(1):
            order.append(f"{name}-in")
            await asyncio.sleep(0)
            await asyncio.sleep(0)
            order.append(f"{name}-out")

    await asyncio.gather(worker("a"), worker("b"))
    assert order == ["a-in", "a-out", "b-in", "b-out"]
    assert len(locks) == 0


@pytest.mark.asyncio
async def test_different_keys_do_not_block_each_other() -> None:
    locks = KeyedLocks()
    entered = asyncio.Event()

    async def holder() -> None:
        async with locks.hold(1):
            await entered.wait()

    async def other() -> None:
        async with locks.hold(2):
            entered.set()

    await asyncio.wait_for(asyncio.gather(holder(), other()), timeout=1)
    assert len(locks) == 0


@pytest.mark.asyncio
async def test_lock_released_on_error() -> None:
    locks = KeyedLocks()
    with pytest.raises(RuntimeError):
        async with locks.hold("x"):
            raise RuntimeError("boom")
    assert len(locks) == 0
    async with locks.hold("x"):
        assert len(locks) == 1
